"""Plan command - show the resolved release plan."""

from __future__ import annotations

import json

import typer

from shippo.cli.commands._helpers import load_or_exit, plan_or_exit
from shippo.cli.context import build_context
from shippo.core.plan import NodeSettings, PythonSettings


def plan(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON"),
) -> None:
    """Resolve the config into a release plan without building anything."""
    cli = build_context(ctx)
    resolved = plan_or_exit(cli, load_or_exit(cli))

    if as_json:
        typer.echo(json.dumps(resolved.to_dict(), indent=2, sort_keys=True))
        return

    cli.console.header(f"Release {resolved.version}")
    cli.console.debug(f"version source: {resolved.version_source}")
    for pkg in resolved.packages:
        cli.console.newline()
        cli.console.print(f"{pkg.name} ({pkg.ecosystem}) at {pkg.path}")
        cli.console.print(f"  targets: {', '.join(pkg.targets)}")
        cli.console.print(f"  formats: {', '.join(pkg.packaging.formats)}")
        cli.console.print(f"  sbom:    {pkg.sbom.format if pkg.sbom.enabled else 'off'}")
        cli.console.print(f"  sign:    {pkg.sign.method if pkg.sign.enabled else 'off'}")
        match pkg.subconfig:
            case NodeSettings(mode=mode):
                cli.console.print(f"  node:    {mode}")
            case PythonSettings(mode=mode):
                cli.console.print(f"  python:  {mode}")
            case None:
                pass
