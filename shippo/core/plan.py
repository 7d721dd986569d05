"""Plan resolution: layered configuration in, concrete release plan out.

A ``Plan`` carries one release version and an ordered list of
``PackagePlan`` entries in which every optional setting has been collapsed
to a concrete value (package level > global level > compiled-in default,
see ``shippo.core.cascade``).

The version is resolved once per invocation and shared by every package:

    explicit override > [version] manual > latest VCS tag > "v0.1.0"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from shippo.git.vcs import VcsProtocol

from .cascade import (
    DEFAULT_COSIGN_MODE,
    DEFAULT_FORMATS,
    DEFAULT_FRONTEND_DIR,
    DEFAULT_NAME_TEMPLATE,
    DEFAULT_NODE_ENTRY,
    DEFAULT_NODE_MODE,
    DEFAULT_NODE_TOOL,
    DEFAULT_PYINSTALLER_ENTRY,
    DEFAULT_PYINSTALLER_MODE,
    DEFAULT_PYTHON_MODE,
    DEFAULT_SBOM_ENABLED,
    DEFAULT_SBOM_FORMAT,
    DEFAULT_SBOM_MODE,
    DEFAULT_SIGN_ENABLED,
    DEFAULT_SIGN_METHOD,
    DEFAULT_TARGETS,
    FALLBACK_VERSION,
    cascade,
)
from .config import (
    BuildConfig,
    Ecosystem,
    NodeConfig,
    PackageConfig,
    PackageEntry,
    PythonConfig,
    SbomConfig,
    ShippoConfig,
    SignConfig,
)
from .result import Err, Ok, Result

__all__ = [
    "NodeSettings",
    "PackagePlan",
    "PackagingOptions",
    "Plan",
    "PlanError",
    "PythonSettings",
    "SbomPolicy",
    "SignPolicy",
    "VersionInfo",
    "build_plan",
    "naming_template",
    "resolve_version",
]

VersionSourceKind = Literal["override", "manual", "tag", "git", "fallback"]


@dataclass(frozen=True, slots=True)
class PlanError:
    kind: Literal["no_packages_selected", "invalid_selector", "invalid_version"]
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class VersionInfo:
    value: str
    source: VersionSourceKind


# -----------------------------------------------------------------------------
# Resolved settings
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PackagingOptions:
    formats: tuple[str, ...]
    name_template: str
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SbomPolicy:
    enabled: bool
    format: str
    mode: str


@dataclass(frozen=True, slots=True)
class SignPolicy:
    enabled: bool
    method: str
    cosign_mode: str


@dataclass(frozen=True, slots=True)
class NodeSettings:
    """Resolved node sub-config. ``binary_*`` apply to cli-binary mode."""

    mode: str
    binary_tool: str
    binary_entry: str
    binary_targets: tuple[str, ...]
    frontend_build_dir: str
    frontend_build_cmd: str | None

    @property
    def is_frontend(self) -> bool:
        return self.mode == "frontend"


@dataclass(frozen=True, slots=True)
class PythonSettings:
    mode: str
    pyinstaller_mode: str
    pyinstaller_entry: str
    hidden_imports: tuple[str, ...]
    data: tuple[str, ...]

    @property
    def uses_pyinstaller(self) -> bool:
        return self.mode == "pyinstaller"


type EcosystemSettings = NodeSettings | PythonSettings | None


@dataclass(frozen=True, slots=True)
class PackagePlan:
    name: str
    ecosystem: Ecosystem
    path: str
    targets: tuple[str, ...]
    packaging: PackagingOptions
    sbom: SbomPolicy
    sign: SignPolicy
    subconfig: EcosystemSettings = None
    env: tuple[tuple[str, str], ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "ecosystem": str(self.ecosystem),
            "path": self.path,
            "targets": list(self.targets),
            "packaging": {
                "formats": list(self.packaging.formats),
                "name_template": self.packaging.name_template,
                "include": list(self.packaging.include),
                "exclude": list(self.packaging.exclude),
            },
            "sbom_policy": {
                "enabled": self.sbom.enabled,
                "format": self.sbom.format,
                "mode": self.sbom.mode,
            },
            "sign_policy": {
                "enabled": self.sign.enabled,
                "method": self.sign.method,
                "cosign_mode": self.sign.cosign_mode,
            },
            "ecosystem_subconfig": _subconfig_dict(self.subconfig),
        }


@dataclass(frozen=True, slots=True)
class Plan:
    """Resolved release plan. Never empty."""

    version: str
    packages: tuple[PackagePlan, ...]
    version_source: VersionSourceKind = "manual"

    def to_dict(self) -> dict[str, object]:
        return {"version": self.version, "packages": [p.to_dict() for p in self.packages]}

    def package(self, name: str) -> PackagePlan | None:
        return next((p for p in self.packages if p.name == name), None)


def _subconfig_dict(sub: EcosystemSettings) -> dict[str, object] | None:
    match sub:
        case NodeSettings():
            return {
                "mode": sub.mode,
                "binary": {
                    "tool": sub.binary_tool,
                    "entry": sub.binary_entry,
                    "targets": list(sub.binary_targets),
                },
                "frontend": {
                    "build_dir": sub.frontend_build_dir,
                    "build_cmd": sub.frontend_build_cmd,
                },
            }
        case PythonSettings():
            return {
                "mode": sub.mode,
                "pyinstaller": {
                    "mode": sub.pyinstaller_mode,
                    "entry": sub.pyinstaller_entry,
                    "hidden_imports": list(sub.hidden_imports),
                    "data": list(sub.data),
                },
            }
        case None:
            return None


# -----------------------------------------------------------------------------
# Version
# -----------------------------------------------------------------------------


def resolve_version(
    config: ShippoConfig,
    vcs: VcsProtocol,
    tag_override: str | None = None,
) -> VersionInfo:
    """Resolve the single release version for this invocation.

    A blank ``tag_override`` counts as unset here; ``build_plan`` rejects it
    before resolving.
    """
    if tag_override is not None and tag_override.strip():
        return VersionInfo(tag_override.strip(), "override")

    version_cfg = config.version
    if version_cfg is not None and version_cfg.source == "manual":
        if version_cfg.manual is not None:
            return VersionInfo(version_cfg.manual, "manual")
        return VersionInfo(FALLBACK_VERSION, "fallback")

    tag = vcs.latest_tag()
    if tag is None:
        return VersionInfo(FALLBACK_VERSION, "fallback")
    source: VersionSourceKind = "git"
    if version_cfg is not None and version_cfg.source == "tag":
        source = "tag"
    return VersionInfo(tag, source)


# -----------------------------------------------------------------------------
# Per-package cascade
# -----------------------------------------------------------------------------


def _resolve_targets(own: BuildConfig | None, shared: BuildConfig | None) -> tuple[str, ...]:
    return cascade(
        own.targets if own else None,
        shared.targets if shared else None,
        DEFAULT_TARGETS,
    )


def _resolve_env(
    own: BuildConfig | None, shared: BuildConfig | None
) -> tuple[tuple[str, str], ...]:
    env = cascade(own.env if own else None, shared.env if shared else None, {})
    return tuple(sorted(env.items()))


def _resolve_packaging(
    own: PackageConfig | None, shared: PackageConfig | None
) -> PackagingOptions:
    o = own or PackageConfig()
    s = shared or PackageConfig()
    return PackagingOptions(
        formats=cascade(o.formats, s.formats, DEFAULT_FORMATS),
        name_template=cascade(o.name_template, s.name_template, DEFAULT_NAME_TEMPLATE),
        include=cascade(o.include, s.include, ()),
        exclude=cascade(o.exclude, s.exclude, ()),
    )


def _resolve_sbom(own: SbomConfig | None, shared: SbomConfig | None) -> SbomPolicy:
    o = own or SbomConfig()
    s = shared or SbomConfig()
    return SbomPolicy(
        enabled=cascade(o.enabled, s.enabled, DEFAULT_SBOM_ENABLED),
        format=cascade(o.format, s.format, DEFAULT_SBOM_FORMAT),
        mode=cascade(o.mode, s.mode, DEFAULT_SBOM_MODE),
    )


def _resolve_sign(own: SignConfig | None, shared: SignConfig | None) -> SignPolicy:
    o = own or SignConfig()
    s = shared or SignConfig()
    return SignPolicy(
        enabled=cascade(o.enabled, s.enabled, DEFAULT_SIGN_ENABLED),
        method=cascade(o.method, s.method, DEFAULT_SIGN_METHOD),
        cosign_mode=cascade(o.cosign_mode, s.cosign_mode, DEFAULT_COSIGN_MODE),
    )


def _resolve_node(own: NodeConfig | None, shared: NodeConfig | None) -> NodeSettings:
    o = own or NodeConfig()
    s = shared or NodeConfig()
    # Sub-tables cascade as a unit.
    binary = cascade(o.binary, s.binary, None)
    frontend = cascade(o.frontend, s.frontend, None)
    return NodeSettings(
        mode=cascade(o.mode, s.mode, DEFAULT_NODE_MODE),
        binary_tool=(binary.tool if binary else None) or DEFAULT_NODE_TOOL,
        binary_entry=(binary.entry if binary else None) or DEFAULT_NODE_ENTRY,
        binary_targets=(binary.targets if binary else None) or (),
        frontend_build_dir=(frontend.build_dir if frontend else None) or DEFAULT_FRONTEND_DIR,
        frontend_build_cmd=frontend.build_cmd if frontend else None,
    )


def _resolve_python(own: PythonConfig | None, shared: PythonConfig | None) -> PythonSettings:
    o = own or PythonConfig()
    s = shared or PythonConfig()
    pyi = cascade(o.pyinstaller, s.pyinstaller, None)
    return PythonSettings(
        mode=cascade(o.mode, s.mode, DEFAULT_PYTHON_MODE),
        pyinstaller_mode=(pyi.mode if pyi else None) or DEFAULT_PYINSTALLER_MODE,
        pyinstaller_entry=(pyi.entry if pyi else None) or DEFAULT_PYINSTALLER_ENTRY,
        hidden_imports=(pyi.hidden_imports if pyi else None) or (),
        data=(pyi.data if pyi else None) or (),
    )


def _resolve_entry(entry: PackageEntry, config: ShippoConfig) -> PackagePlan:
    ecosystem = entry.ecosystem
    if ecosystem is None:
        # validate_config rejects unknown tags before planning
        raise ValueError(f"unsupported project type '{entry.project_type}' for {entry.name}")

    subconfig: EcosystemSettings = None
    match ecosystem:
        case Ecosystem.NODE:
            subconfig = _resolve_node(entry.node, config.node)
        case Ecosystem.PYTHON:
            subconfig = _resolve_python(entry.python, config.python)
        case Ecosystem.RUST | Ecosystem.GO:
            subconfig = None

    return PackagePlan(
        name=entry.name,
        ecosystem=ecosystem,
        path=entry.path,
        targets=_resolve_targets(entry.build, config.build),
        packaging=_resolve_packaging(entry.package, config.package),
        sbom=_resolve_sbom(entry.sbom, config.sbom),
        sign=_resolve_sign(entry.sign, config.sign),
        subconfig=subconfig,
        env=_resolve_env(entry.build, config.build),
    )


def _entries(config: ShippoConfig) -> list[PackageEntry]:
    """Declared packages in order; single-project mode is a one-entry list
    with no package-level overrides."""
    if config.project is not None:
        p = config.project
        return [PackageEntry(name=p.name, project_type=p.project_type, path=p.path)]
    return list(config.packages)


def build_plan(
    config: ShippoConfig,
    vcs: VcsProtocol,
    *,
    only: str | None = None,
    tag_override: str | None = None,
) -> Result[Plan, PlanError]:
    """Resolve a validated configuration into a release plan.

    Args:
        config: Configuration that already passed ``validate_config``.
        vcs: Source of the latest tag when the version comes from git.
        only: Restrict the plan to the package with this name.
        tag_override: Explicit release version (``--tag``).

    Returns:
        Ok(Plan) with packages in declaration order, or Err(PlanError) when
        the selection is empty or ``only`` / ``tag_override`` is blank.
    """
    if only is not None and not only.strip():
        return Err(
            PlanError(
                kind="invalid_selector",
                message="package selector must not be empty",
                hint="Pass a package name to --only, or omit it.",
            )
        )
    if tag_override is not None and not tag_override.strip():
        return Err(
            PlanError(
                kind="invalid_version",
                message="release version must not be empty",
                hint="Pass a version to --tag, or omit it.",
            )
        )

    version = resolve_version(config, vcs, tag_override)

    entries = _entries(config)
    selected = [e for e in entries if only is None or e.name == only]
    if not selected:
        available = ", ".join(e.name for e in entries)
        return Err(
            PlanError(
                kind="no_packages_selected",
                message=f"no packages selected (--only {only})" if only else "no packages selected",
                hint=f"Available: {available}" if available else None,
            )
        )

    return Ok(
        Plan(
            version=version.value,
            packages=tuple(_resolve_entry(e, config) for e in selected),
            version_source=version.source,
        )
    )


def naming_template(template: str, name: str, version: str, target: str) -> str:
    """Substitute ``{name}``, ``{version}`` and ``{target}`` in a file name template."""
    return (
        template.replace("{name}", name).replace("{version}", version).replace("{target}", target)
    )
