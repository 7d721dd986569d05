"""Version-control queries used by planning, packaging and publishing.

The VCS is a best-effort oracle: every query returns ``None`` (or a plain
fallback string) when git is missing, the directory is not a repository, or
the repository has no tags yet. Nothing here is ever fatal.

Usage:
    vcs = GitVcs(Path("."))
    tag = vcs.latest_tag()          # "v1.2.0" or None
    commit = vcs.current_commit()   # full sha or None
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from shippo.core.result import Err
from shippo.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0

__all__ = ["VcsProtocol", "GitVcs", "StaticVcs"]


@runtime_checkable
class VcsProtocol(Protocol):
    """Read-only view of the repository being released."""

    def current_commit(self) -> str | None: ...

    def repo_url(self) -> str | None: ...

    def latest_tag(self) -> str | None: ...

    def changelog_between(self, prev: str, curr: str, mode: str) -> str:
        """Return commit subjects in ``prev..curr``.

        ``mode="conventional"`` renders ``* subject`` bullets, anything else
        renders ``<short sha> subject``.
        """
        ...


class GitVcs:
    """VCS backed by the ``git`` executable."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def current_commit(self) -> str | None:
        return self._query(["rev-parse", "HEAD"])

    def repo_url(self) -> str | None:
        return self._query(["config", "--get", "remote.origin.url"])

    def latest_tag(self) -> str | None:
        return self._query(["describe", "--tags", "--abbrev=0"])

    def changelog_between(self, prev: str, curr: str, mode: str) -> str:
        fmt = "* %s" if mode == "conventional" else "%h %s"
        result = run_process(
            ["git", "log", f"{prev}..{curr}", f"--pretty=format:{fmt}"],
            cwd=self.root,
            timeout=_GIT_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return ""
        return result.value.strip()

    def _query(self, args: list[str]) -> str | None:
        result = run_process(["git", *args], cwd=self.root, timeout=_GIT_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return None
        value = result.value.strip()
        return value or None


@dataclass
class StaticVcs:
    """In-memory VCS with fixed answers (tests, dry runs outside a repo)."""

    commit: str | None = None
    url: str | None = None
    tag: str | None = None
    changelog: str = ""

    def current_commit(self) -> str | None:
        return self.commit

    def repo_url(self) -> str | None:
        return self.url

    def latest_tag(self) -> str | None:
        return self.tag

    def changelog_between(self, prev: str, curr: str, mode: str) -> str:
        return self.changelog
