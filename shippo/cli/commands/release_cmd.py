"""Release command - build, package and publish to GitHub."""

from __future__ import annotations

import typer

from shippo.cli.commands._helpers import (
    build_or_exit,
    exit_with_code,
    load_or_exit,
    package_or_exit,
    plan_or_exit,
)
from shippo.cli.context import build_context
from shippo.core.result import Err
from shippo.output.errors import print_publish_error, publish_error_exit_code
from shippo.services.http import RealHttpClient
from shippo.services.publish import publish_github, release_input, resolve_token


def release(
    ctx: typer.Context,
    dry_run: bool = typer.Option(False, "--dry-run", help="Package but do not publish"),
    draft: bool | None = typer.Option(
        None, "--draft/--no-draft", help="Override [release] draft", show_default=False
    ),
    prerelease: bool = typer.Option(False, "--prerelease", help="Mark as prerelease"),
) -> None:
    """Build, package and publish a release."""
    cli = build_context(ctx)
    config = load_or_exit(cli)
    resolved = plan_or_exit(cli, config)

    target = release_input(
        config,
        resolved.version,
        cli.bundle_dir,
        root=cli.root,
        draft=draft,
        prerelease=prerelease,
    )
    if isinstance(target, Err) and not dry_run:
        print_publish_error(target.error, cli.console)
        exit_with_code(publish_error_exit_code(target.error))

    token = resolve_token()
    if isinstance(token, Err) and not dry_run:
        print_publish_error(token.error, cli.console)
        exit_with_code(publish_error_exit_code(token.error))

    built = build_or_exit(cli, resolved)
    package_or_exit(cli, resolved, built, sign=True)

    if dry_run or isinstance(target, Err) or isinstance(token, Err):
        cli.console.info(f"dry run: {resolved.version} packaged in {cli.bundle_dir}, not published")
        return

    published = publish_github(
        token.value,
        target.value,
        vcs=cli.vcs,
        http=RealHttpClient(),
        console=cli.console,
    )
    if isinstance(published, Err):
        print_publish_error(published.error, cli.console)
        exit_with_code(publish_error_exit_code(published.error))

    where = published.value.url or f"{target.value.owner}/{target.value.repo}"
    cli.console.success(
        f"published {resolved.version} with {len(published.value.uploaded)} asset(s): {where}"
    )
