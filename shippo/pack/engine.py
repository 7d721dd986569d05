"""Turn builder outputs into a checksummed, optionally signed release bundle.

For every package of the plan and every builder output of that package:

1. one archive per configured format, named from the file name template;
2. one SBOM stub;
3. when signing is enabled both by the caller and by the package policy,
   one signature per archive and for the SBOM.

Each file is hashed and appended to the checksum ledger as it is produced.
Then ``manifest.json`` is written, its own hash appended, ``SHA256SUMS``
flushed and ``provenance.json`` written.

The bundle directory is single-writer: concurrent runs against the same
directory interleave their files. Any error stops the run and leaves the
files written so far in place for inspection.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from shippo import __version__
from shippo.core.plan import PackagePlan, Plan, naming_template
from shippo.core.result import Err, Ok, Result
from shippo.output.console import ConsoleProtocol, NullConsole
from shippo.platform.detection import detect_host, is_ci
from shippo.platform.files import atomic_write_text, sha256_file

from .archive import create_archive
from .errors import PackagingError
from .ledger import LEDGER_NAME, ChecksumLedger
from .manifest import (
    BuildEnvInfo,
    Manifest,
    ManifestArtifact,
    ManifestPackage,
    ManifestProject,
    ManifestSignature,
    ManifestTarget,
    format_timestamp,
)
from .sbom import sbom_filename, write_sbom
from .signing import ExternalSigner, SignerProtocol, sign_file, signature_name
from .tooling import SubprocessToolProbe, ToolProbe, detect_tooling

__all__ = [
    "MANIFEST_NAME",
    "PROVENANCE_NAME",
    "BuiltOutput",
    "PackagingHooks",
    "build_env",
    "package_outputs",
]

MANIFEST_NAME = "manifest.json"
PROVENANCE_NAME = "provenance.json"


@dataclass(frozen=True, slots=True)
class BuiltOutput:
    """Files the builder produced for one (package, target) pair."""

    package: str
    target: str
    artifacts: tuple[Path, ...]


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class PackagingHooks:
    """Injectable collaborators of ``package_outputs``.

    Defaults talk to the real host (signing tools, toolchains, clock, CI
    environment); tests replace them with fakes.
    """

    signer: SignerProtocol = field(default_factory=ExternalSigner)
    probe: ToolProbe = field(default_factory=SubprocessToolProbe)
    clock: Callable[[], datetime] = _utc_now
    environ: Mapping[str, str] | None = None


def build_env(environ: Mapping[str, str] | None = None) -> BuildEnvInfo:
    host = detect_host()
    return BuildEnvInfo(os=str(host.os), arch=host.arch, ci=is_ci(environ))


def _claim(filename: str, ledger: ChecksumLedger) -> PackagingError | None:
    """Refuse a bundle file name that an earlier file of this run already took."""
    if filename in ledger or filename in (MANIFEST_NAME, PROVENANCE_NAME, LEDGER_NAME):
        return PackagingError(
            kind="duplicate_name",
            message=f"duplicate bundle file name: {filename}",
        )
    return None


def _record(
    bundle_dir: Path, filename: str, ledger: ChecksumLedger
) -> Result[ManifestArtifact, PackagingError]:
    path = bundle_dir / filename
    try:
        sha = sha256_file(path)
        size = path.stat().st_size
    except OSError as e:
        return Err(PackagingError.from_os_error("read", path, e))
    ledger.add(sha, filename)
    return Ok(ManifestArtifact(filename=filename, bytes=size, sha256=sha))


def _package_target(
    pkg: PackagePlan,
    version: str,
    output: BuiltOutput,
    bundle_dir: Path,
    ledger: ChecksumLedger,
    *,
    sign: bool,
    signer: SignerProtocol,
    console: ConsoleProtocol,
) -> Result[ManifestTarget, PackagingError]:
    stem = naming_template(pkg.packaging.name_template, pkg.name, version, output.target)

    artifacts: list[ManifestArtifact] = []
    for fmt in pkg.packaging.formats:
        archive_name = f"{stem}.{fmt}"
        if (clash := _claim(archive_name, ledger)) is not None:
            return Err(clash)
        console.debug(f"archiving {len(output.artifacts)} output(s) into {archive_name}")
        created = create_archive(
            bundle_dir / archive_name,
            fmt,
            output.artifacts,
            include=pkg.packaging.include,
            exclude=pkg.packaging.exclude,
        )
        if isinstance(created, Err):
            return created
        recorded = _record(bundle_dir, archive_name, ledger)
        if isinstance(recorded, Err):
            return recorded
        artifacts.append(recorded.value)

    sbom_name = sbom_filename(stem, pkg.sbom.format)
    if (clash := _claim(sbom_name, ledger)) is not None:
        return Err(clash)
    try:
        write_sbom(bundle_dir / sbom_name, pkg.name, version, output.target, pkg.sbom.format)
    except OSError as e:
        return Err(PackagingError.from_os_error("write", bundle_dir / sbom_name, e))
    sbom = _record(bundle_dir, sbom_name, ledger)
    if isinstance(sbom, Err):
        return sbom

    signatures: list[ManifestSignature] = []
    if sign and pkg.sign.enabled:
        for artifact in [*artifacts, sbom.value]:
            if (clash := _claim(signature_name(artifact.filename), ledger)) is not None:
                return Err(clash)
            signed = sign_file(bundle_dir, artifact.filename, pkg.sign, signer, console)
            if isinstance(signed, Err):
                return signed
            sig_record = _record(bundle_dir, signed.value.filename, ledger)
            if isinstance(sig_record, Err):
                return sig_record
            signatures.append(signed.value)

    return Ok(
        ManifestTarget(
            target=output.target,
            artifacts=tuple(artifacts),
            sbom=sbom.value,
            signatures=tuple(signatures),
        )
    )


def package_outputs(
    plan: Plan,
    built: Sequence[BuiltOutput],
    bundle_dir: Path,
    *,
    repo_url: str | None = None,
    commit: str | None = None,
    sign: bool = True,
    hooks: PackagingHooks | None = None,
    console: ConsoleProtocol | None = None,
) -> Result[Manifest, PackagingError]:
    """Package builder outputs into ``bundle_dir`` and write the manifest.

    Args:
        plan: Resolved release plan.
        built: Builder outputs. Outputs of packages outside the plan are
            ignored; plan packages without outputs contribute no targets.
        bundle_dir: Output directory, created if missing.
        repo_url: Remote URL recorded in the manifest.
        commit: Commit hash recorded in the manifest.
        sign: Caller-level signing switch (ANDed with each package policy).
        hooks: Signer, tool probe, clock and environment overrides.
        console: Progress sink.

    Returns:
        Ok(Manifest) as written to ``manifest.json``, or Err(PackagingError).
    """
    hooks = hooks or PackagingHooks()
    console = console or NullConsole()
    environ = hooks.environ if hooks.environ is not None else os.environ

    try:
        bundle_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return Err(PackagingError.from_os_error("create directory", bundle_dir, e))

    ledger = ChecksumLedger()
    packages: list[ManifestPackage] = []
    for pkg in plan.packages:
        targets: list[ManifestTarget] = []
        for output in (b for b in built if b.package == pkg.name):
            result = _package_target(
                pkg,
                plan.version,
                output,
                bundle_dir,
                ledger,
                sign=sign,
                signer=hooks.signer,
                console=console,
            )
            if isinstance(result, Err):
                return result
            targets.append(result.value)
        if not targets:
            console.debug(f"{pkg.name}: no build outputs, nothing packaged")
        packages.append(
            ManifestPackage(
                name=pkg.name,
                project_type=str(pkg.ecosystem),
                path=pkg.path,
                targets=tuple(targets),
            )
        )

    generated_at = hooks.clock()
    env = build_env(environ)
    manifest = Manifest(
        shippo_version=__version__,
        generated_at=generated_at,
        project=ManifestProject(repo_url=repo_url, commit=commit, version=plan.version),
        packages=tuple(packages),
        tooling=detect_tooling(hooks.probe),
        build_env=env,
    )

    manifest_path = bundle_dir / MANIFEST_NAME
    provenance_path = bundle_dir / PROVENANCE_NAME
    try:
        atomic_write_text(manifest_path, manifest.to_json())
        ledger.add(sha256_file(manifest_path), MANIFEST_NAME)
        ledger.write(bundle_dir)
        provenance = {
            "version": plan.version,
            "generated_at": format_timestamp(generated_at),
            "ci": env.ci,
        }
        atomic_write_text(provenance_path, json.dumps(provenance, indent=2, sort_keys=True) + "\n")
    except OSError as e:
        return Err(PackagingError.from_os_error("write", Path(e.filename or bundle_dir), e))

    console.debug(f"wrote {MANIFEST_NAME}, SHA256SUMS ({len(ledger)} entries), {PROVENANCE_NAME}")
    return Ok(manifest)
