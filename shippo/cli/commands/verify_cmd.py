"""Verify command - check a bundle against its manifest."""

from __future__ import annotations

from pathlib import Path

import typer

from shippo.cli.commands._helpers import exit_with_code
from shippo.cli.context import build_context
from shippo.core.errors import ErrorCode
from shippo.core.result import Err
from shippo.output.errors import print_verification_error
from shippo.pack.engine import MANIFEST_NAME
from shippo.pack.verify import verify_manifest


def verify(
    ctx: typer.Context,
    manifest: Path | None = typer.Option(
        None,
        "--manifest",
        help="Manifest to check (default: <output>/manifest.json)",
        show_default=False,
    ),
) -> None:
    """Verify checksums and signatures of a packaged bundle."""
    cli = build_context(ctx)
    bundle_dir = manifest.parent if manifest is not None else cli.bundle_dir
    manifest_path = manifest if manifest is not None else bundle_dir / MANIFEST_NAME

    result = verify_manifest(manifest_path, bundle_dir, console=cli.console)
    if isinstance(result, Err):
        print_verification_error(result.error, cli.console)
        exit_with_code(int(ErrorCode.VERIFY_ERROR))

    report = result.value
    summary = f"{report.files_checked} file(s) verified"
    if report.placeholder_signatures:
        summary += f", {report.placeholder_signatures} placeholder signature(s)"
    cli.console.success(summary)
