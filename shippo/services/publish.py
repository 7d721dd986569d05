"""Publish a packaged bundle as a GitHub release.

The release is created first (tag, name, changelog body, draft and
prerelease flags), then every regular file of the bundle directory is
uploaded to it one after the other, in name order. A failed upload stops
the run; assets uploaded before it stay attached to the release.
"""

from __future__ import annotations

import os
import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from shippo.core.config import ShippoConfig
from shippo.core.result import Err, Ok, Result
from shippo.git.vcs import VcsProtocol
from shippo.output.console import ConsoleProtocol, NullConsole
from shippo.platform.files import list_dir

from .http import HttpClient

__all__ = [
    "GITHUB_API",
    "PublishError",
    "PublishedRelease",
    "ReleaseInput",
    "changelog_body",
    "publish_github",
    "release_input",
    "resolve_token",
]

GITHUB_API = "https://api.github.com"
TOKEN_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


@dataclass(frozen=True, slots=True)
class PublishError:
    kind: Literal["not_configured", "token_missing", "network", "io"]
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseInput:
    owner: str
    repo: str
    tag: str
    name: str
    draft: bool
    prerelease: bool
    changelog_mode: str
    bundle_dir: Path
    changelog_file: Path | None = None


@dataclass(frozen=True, slots=True)
class PublishedRelease:
    url: str | None
    uploaded: tuple[str, ...]


def resolve_token(environ: Mapping[str, str] | None = None) -> Result[str, PublishError]:
    env = os.environ if environ is None else environ
    for var in TOKEN_VARS:
        token = env.get(var, "").strip()
        if token:
            return Ok(token)
    return Err(
        PublishError(
            kind="token_missing",
            message="no GitHub token found",
            hint="Set GITHUB_TOKEN or GH_TOKEN",
        )
    )


def release_input(
    config: ShippoConfig,
    tag: str,
    bundle_dir: Path,
    *,
    root: Path,
    draft: bool | None = None,
    prerelease: bool = False,
) -> Result[ReleaseInput, PublishError]:
    """Combine ``[release]``/``[changelog]`` with command-line overrides.

    ``draft=None`` keeps the configured value; ``prerelease`` is ORed with it.
    """
    release = config.release
    if release is None or release.github is None:
        return Err(
            PublishError(
                kind="not_configured",
                message="no release target configured",
                hint="Add [release.github] with owner and repo to the config",
            )
        )
    changelog_file: Path | None = None
    mode = "auto"
    if config.changelog is not None:
        mode = config.changelog.mode
        if config.changelog.file:
            changelog_file = root / config.changelog.file
    return Ok(
        ReleaseInput(
            owner=release.github.owner,
            repo=release.github.repo,
            tag=tag,
            name=tag,
            draft=release.draft if draft is None else draft,
            prerelease=prerelease or release.prerelease,
            changelog_mode=mode,
            bundle_dir=bundle_dir,
            changelog_file=changelog_file,
        )
    )


def changelog_body(release: ReleaseInput, vcs: VcsProtocol) -> str:
    """Release notes: the changelog file if configured, else commits since the last tag."""
    if release.changelog_file is not None:
        try:
            text = release.changelog_file.read_text(encoding="utf-8").strip()
        except OSError:
            text = ""
        if text:
            return text

    fallback = f"Release {release.tag}"
    prev = vcs.latest_tag()
    if prev is None or prev == release.tag:
        return fallback
    return vcs.changelog_between(prev, release.tag, release.changelog_mode) or fallback


def _headers(token: str) -> dict[str, str]:
    return {
        "Accept": "application/vnd.github+json",
        "Authorization": f"Bearer {token}",
    }


def _bundle_files(bundle_dir: Path) -> Result[list[Path], PublishError]:
    if not bundle_dir.is_dir():
        return Err(
            PublishError(
                kind="io",
                message=f"bundle directory not found: {bundle_dir}",
                hint="Run `shippo package` first",
            )
        )
    try:
        return Ok(list_dir(bundle_dir, Path.is_file))
    except OSError as e:
        return Err(
            PublishError(kind="io", message=f"cannot list {bundle_dir}: {e.strerror or e}")
        )


def publish_github(
    token: str,
    release: ReleaseInput,
    *,
    vcs: VcsProtocol,
    http: HttpClient,
    console: ConsoleProtocol | None = None,
    api_base: str = GITHUB_API,
) -> Result[PublishedRelease, PublishError]:
    """Create the release and upload the bundle.

    Returns:
        Ok(PublishedRelease) with the release page URL and uploaded names,
        or Err(PublishError) at the first failing request.
    """
    console = console or NullConsole()
    files = _bundle_files(release.bundle_dir)
    if isinstance(files, Err):
        return files

    url = f"{api_base}/repos/{release.owner}/{release.repo}/releases"
    payload = {
        "tag_name": release.tag,
        "name": release.name,
        "body": changelog_body(release, vcs),
        "draft": release.draft,
        "prerelease": release.prerelease,
    }
    created = http.post_json(url, payload, _headers(token))
    if isinstance(created, Err):
        hint = (
            "Check that the token can write releases to this repository"
            if created.error.is_auth_error
            else None
        )
        return Err(
            PublishError(
                kind="network", message=f"release creation failed: {created.error}", hint=hint
            )
        )

    upload_url = created.value.get("upload_url")
    if not isinstance(upload_url, str) or not upload_url:
        return Err(PublishError(kind="network", message="release response has no upload_url"))
    upload_url = upload_url.split("{", 1)[0]

    uploaded: list[str] = []
    for path in files.value:
        console.debug(f"uploading {path.name}")
        asset_url = f"{upload_url}?name={urllib.parse.quote(path.name)}"
        result = http.upload(asset_url, path, _headers(token))
        if isinstance(result, Err):
            return Err(
                PublishError(
                    kind="network",
                    message=f"upload of {path.name} failed: {result.error}",
                    hint=f"{len(uploaded)} asset(s) were uploaded before the failure",
                )
            )
        uploaded.append(path.name)

    html_url = created.value.get("html_url")
    return Ok(
        PublishedRelease(
            url=html_url if isinstance(html_url, str) else None,
            uploaded=tuple(uploaded),
        )
    )
