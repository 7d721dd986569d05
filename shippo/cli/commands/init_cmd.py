"""Init command - write a starter config from the projects found on disk."""

from __future__ import annotations

import typer

from shippo.cli.commands._helpers import exit_with_code
from shippo.cli.context import build_context
from shippo.core.detect import detect_projects, render_starter_config
from shippo.core.errors import ErrorCode
from shippo.output.console import Style


def init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
) -> None:
    """Detect projects and write a starter config."""
    cli = build_context(ctx)
    path = cli.config_path

    if path.exists() and not force:
        cli.console.error(f"{path} already exists")
        cli.console.print("hint: pass --force to overwrite it", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))

    projects = detect_projects(cli.root)
    if not projects:
        cli.console.error(f"no projects found under {cli.root}")
        cli.console.print(
            "hint: expected Cargo.toml, go.mod, package.json or pyproject.toml "
            "in a sub-directory",
            Style.DIM,
        )
        exit_with_code(int(ErrorCode.USER_ERROR))

    for project in projects:
        cli.console.print(f"  {project.name} ({project.project_type}) at {project.path}")
    try:
        path.write_text(render_starter_config(projects), encoding="utf-8")
    except OSError as e:
        cli.console.error(f"cannot write {path}: {e.strerror or e}")
        exit_with_code(int(ErrorCode.IO_ERROR))
    cli.console.success(f"wrote {path}")
