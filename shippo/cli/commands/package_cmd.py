"""Package command - build, then write the release bundle."""

from __future__ import annotations

import typer

from shippo.cli.commands._helpers import (
    build_or_exit,
    load_or_exit,
    package_or_exit,
    plan_or_exit,
)
from shippo.cli.context import build_context


def package(
    ctx: typer.Context,
    sign: bool = typer.Option(True, "--sign/--no-sign", help="Sign archives and SBOMs"),
) -> None:
    """Build and package every planned package into the output directory."""
    cli = build_context(ctx)
    resolved = plan_or_exit(cli, load_or_exit(cli))
    built = build_or_exit(cli, resolved)
    manifest = package_or_exit(cli, resolved, built, sign=sign)

    placeholders = sum(
        1
        for pkg in manifest.packages
        for target in pkg.targets
        for sig in target.signatures
        if sig.placeholder
    )
    if placeholders:
        cli.console.warning(f"{placeholders} placeholder signature(s) in the bundle")
    cli.console.success(
        f"packaged {len(manifest.all_files())} file(s) into {cli.bundle_dir}"
    )
