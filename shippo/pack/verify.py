"""Prove a bundle directory still matches its manifest.

Archives and SBOMs are checked strictly: each must exist and hash to the
recorded SHA-256, and the first failure aborts verification. Signatures must
exist; placeholder signatures are accepted when they hold the artifact's
hash, and real signatures are handed to an external checker whose verdict is
advisory only (reported in ``VerifyReport.notes``, never an error).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from shippo.core.result import Err, Ok, Result
from shippo.output.console import ConsoleProtocol, NullConsole
from shippo.platform.files import sha256_file

from .errors import VerificationError
from .manifest import Manifest, ManifestArtifact, ManifestSignature
from .signing import ExternalSignatureChecker, SignatureCheckerProtocol, is_placeholder

__all__ = ["VerifyReport", "load_manifest", "verify_manifest"]


def _no_notes() -> list[str]:
    return []


@dataclass
class VerifyReport:
    manifest: Manifest
    files_checked: int = 0
    placeholder_signatures: int = 0
    signatures_checked: int = 0
    notes: list[str] = field(default_factory=_no_notes)


def load_manifest(path: Path) -> Result[Manifest, VerificationError]:
    try:
        return Ok(Manifest.from_json(path.read_text(encoding="utf-8")))
    except OSError as e:
        return Err(
            VerificationError(
                kind="manifest_unreadable",
                filename=path.name,
                message=f"cannot read manifest {path}: {e.strerror or e}",
            )
        )
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        return Err(
            VerificationError(
                kind="manifest_unreadable",
                filename=path.name,
                message=f"invalid manifest {path}: {e}",
            )
        )


def _not_in_bundle(filename: str, what: str) -> VerificationError | None:
    """Manifest entries must be plain file names inside the bundle directory."""
    if Path(filename).name == filename and filename not in ("", ".", ".."):
        return None
    return VerificationError(
        kind="missing",
        filename=filename,
        message=f"{what} {filename!r} is not a file name inside the bundle directory",
    )


def _check_file(
    bundle_dir: Path, artifact: ManifestArtifact, what: str
) -> VerificationError | None:
    if (err := _not_in_bundle(artifact.filename, what)) is not None:
        return err
    path = bundle_dir / artifact.filename
    if not path.is_file():
        return VerificationError(
            kind="missing",
            filename=artifact.filename,
            message=f"missing {what} {artifact.filename}",
        )
    try:
        sha = sha256_file(path)
    except OSError as e:
        return VerificationError(
            kind="missing",
            filename=artifact.filename,
            message=f"cannot read {what} {artifact.filename}: {e.strerror or e}",
        )
    if sha != artifact.sha256:
        return VerificationError(
            kind="mismatch",
            filename=artifact.filename,
            message=f"sha256 mismatch for {what} {artifact.filename}",
        )
    return None


def _check_signature(
    bundle_dir: Path,
    sig: ManifestSignature,
    checker: SignatureCheckerProtocol,
    report: VerifyReport,
) -> VerificationError | None:
    if (err := _not_in_bundle(sig.filename, "signature")) is not None:
        return err
    sig_path = bundle_dir / sig.filename
    if not sig_path.is_file():
        return VerificationError(
            kind="missing_signature",
            filename=sig.filename,
            message=f"missing signature {sig.filename}",
        )

    base = sig.filename.removesuffix(".sig")
    artifact = bundle_dir / base
    if base == sig.filename or not artifact.is_file():
        report.notes.append(f"{sig.filename}: signed file not found, signature not checked")
        return None

    try:
        if is_placeholder(sig_path, sha256_file(artifact)):
            report.placeholder_signatures += 1
            return None
    except OSError as e:
        report.notes.append(f"{sig.filename}: unreadable ({e.strerror or e}), not checked")
        return None

    verdict = checker.check(artifact, sig_path, sig.method)
    if verdict is None:
        report.notes.append(f"{sig.filename}: no {sig.method or 'signature'} tool, not checked")
    elif not verdict:
        report.notes.append(f"{sig.filename}: {sig.method} verification failed (advisory)")
    else:
        report.signatures_checked += 1
    return None


def verify_manifest(
    manifest_path: Path,
    bundle_dir: Path,
    *,
    checker: SignatureCheckerProtocol | None = None,
    console: ConsoleProtocol | None = None,
) -> Result[VerifyReport, VerificationError]:
    """Check every file recorded in ``manifest_path`` against ``bundle_dir``.

    Returns:
        Ok(VerifyReport) when all archives, SBOMs and signature files are
        present and unmodified; Err(VerificationError) naming the first
        offending file otherwise.
    """
    checker = checker or ExternalSignatureChecker()
    console = console or NullConsole()

    loaded = load_manifest(manifest_path)
    if isinstance(loaded, Err):
        return loaded
    report = VerifyReport(manifest=loaded.value)

    for pkg in loaded.value.packages:
        for target in pkg.targets:
            for artifact in target.artifacts:
                err = _check_file(bundle_dir, artifact, "artifact")
                if err is not None:
                    return Err(err)
                report.files_checked += 1
            if target.sbom is not None:
                err = _check_file(bundle_dir, target.sbom, "sbom")
                if err is not None:
                    return Err(err)
                report.files_checked += 1
            for sig in target.signatures:
                err = _check_signature(bundle_dir, sig, checker, report)
                if err is not None:
                    return Err(err)
            console.debug(f"{pkg.name}/{target.target}: ok")

    for note in report.notes:
        console.warning(note)
    return Ok(report)
