"""Plans and build outputs shared by the packaging tests."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from shippo.core.config import Ecosystem
from shippo.core.plan import PackagePlan, PackagingOptions, Plan, SbomPolicy, SignPolicy
from shippo.pack.engine import BuiltOutput, PackagingHooks
from shippo.pack.signing import UnavailableSigner
from shippo.pack.tooling import StaticToolProbe

FIXED_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def package_plan(
    name: str = "app",
    *,
    formats: tuple[str, ...] = ("tar.gz", "zip"),
    template: str = "{name}-{version}-{target}",
    sign: bool = False,
    method: str = "cosign",
    sbom_format: str = "cyclonedx",
) -> PackagePlan:
    return PackagePlan(
        name=name,
        ecosystem=Ecosystem.RUST,
        path=name,
        targets=("native",),
        packaging=PackagingOptions(formats=formats, name_template=template),
        sbom=SbomPolicy(enabled=True, format=sbom_format, mode="auto"),
        sign=SignPolicy(enabled=sign, method=method, cosign_mode="keyless"),
    )


def plan(*packages: PackagePlan, version: str = "v1.0.0") -> Plan:
    return Plan(version=version, packages=packages or (package_plan(),))


def built_binary(root: Path, package: str = "app", target: str = "native") -> BuiltOutput:
    out = root / "build" / package / target
    out.mkdir(parents=True, exist_ok=True)
    binary = out / package
    binary.write_bytes(b"\x7fELF" + package.encode() + target.encode())
    return BuiltOutput(package=package, target=target, artifacts=(binary,))


def hooks() -> PackagingHooks:
    """Offline, deterministic collaborators: no signer, fixed clock and tools."""
    return PackagingHooks(
        signer=UnavailableSigner(),
        probe=StaticToolProbe({"rustc": "rustc 1.78.0"}),
        clock=lambda: FIXED_TIME,
        environ={},
    )
