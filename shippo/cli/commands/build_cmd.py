"""Build command - run the native toolchains for every planned package."""

from __future__ import annotations

import typer

from shippo.cli.commands._helpers import build_or_exit, load_or_exit, plan_or_exit
from shippo.cli.context import build_context


def build(ctx: typer.Context) -> None:
    """Build every package of the plan."""
    cli = build_context(ctx)
    resolved = plan_or_exit(cli, load_or_exit(cli))

    for output in build_or_exit(cli, resolved):
        for artifact in output.artifacts:
            cli.console.print(f"  {output.package} ({output.target}): {artifact}")
    cli.console.success(f"built {len(resolved.packages)} package(s) for {resolved.version}")
