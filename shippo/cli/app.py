from __future__ import annotations

from pathlib import Path

import typer

from shippo import __version__
from shippo.cli.commands.build_cmd import build
from shippo.cli.commands.init_cmd import init
from shippo.cli.commands.package_cmd import package
from shippo.cli.commands.plan_cmd import plan
from shippo.cli.commands.release_cmd import release
from shippo.cli.commands.verify_cmd import verify
from shippo.cli.context import GlobalOptions
from shippo.core.detect import DEFAULT_CONFIG_NAME


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Polyglot release orchestrator.",
)


# Commands
app.command()(init)
app.command()(plan)
app.command()(build)
app.command()(package)
app.command()(release)
app.command()(verify)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_show_version, is_eager=True, help="Show version and exit."
    ),
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_NAME), "--config", "-c", help="Path to the config file"
    ),
    only: str | None = typer.Option(
        None, "--only", help="Restrict to one package", show_default=False
    ),
    tag: str | None = typer.Option(
        None, "--tag", help="Release version (overrides config and git)", show_default=False
    ),
    output: Path = typer.Option(Path("dist"), "--output", "-o", help="Bundle directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    ctx.obj = GlobalOptions(config=config, only=only, tag=tag, output=output, verbose=verbose)


def main() -> None:
    app()
