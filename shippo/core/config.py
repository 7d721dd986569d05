"""Typed configuration model, loading and validation.

The configuration is layered: global tables (``[build]``, ``[package]``,
``[sbom]``, ``[sign]``, ``[node]``, ``[python]``) provide defaults that any
``[[packages]]`` entry may override. Unset values are kept as ``None`` so
the plan resolver can tell "not set" apart from "set to the default".
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .cascade import DEFAULT_NODE_MODE, cascade
from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_str,
    get_str_list,
    get_str_map,
    get_table,
    get_table_list,
    require_str,
)

__all__ = [
    "BuildConfig",
    "ChangelogConfig",
    "ConfigError",
    "Ecosystem",
    "GitHubReleaseConfig",
    "NodeBinaryConfig",
    "NodeConfig",
    "NodeFrontendConfig",
    "PackageConfig",
    "PackageEntry",
    "ProjectConfig",
    "PyInstallerConfig",
    "PythonConfig",
    "ReleaseConfig",
    "SbomConfig",
    "ShippoConfig",
    "SignConfig",
    "VersionConfig",
    "load_config",
    "parse_config",
    "validate_config",
    "VERSION_SOURCES",
    "SBOM_FORMATS",
]

VERSION_SOURCES = ("git", "tag", "manual")
SBOM_FORMATS = ("cyclonedx", "spdx")


class Ecosystem(Enum):
    """Supported project kinds. The builder has one strategy per member."""

    RUST = "rust"
    GO = "go"
    NODE = "node"
    PYTHON = "python"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_tag(cls, tag: str) -> Ecosystem | None:
        """Look up an ecosystem by its config tag (``type = "rust"``)."""
        for member in cls:
            if member.value == tag.strip().lower():
                return member
        return None


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Configuration could not be read, parsed or validated."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class BuildConfig:
    targets: tuple[str, ...] | None = None
    env: dict[str, str] | None = None


@dataclass(frozen=True, slots=True)
class PackageConfig:
    """Archive options: formats, file name template and file filters."""

    formats: tuple[str, ...] | None = None
    name_template: str | None = None
    include: tuple[str, ...] | None = None
    exclude: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class SbomConfig:
    enabled: bool | None = None
    format: str | None = None
    mode: str | None = None


@dataclass(frozen=True, slots=True)
class SignConfig:
    enabled: bool | None = None
    method: str | None = None
    cosign_mode: str | None = None


@dataclass(frozen=True, slots=True)
class NodeBinaryConfig:
    """Single-executable packaging for node CLIs (``pkg`` and friends)."""

    tool: str | None = None
    entry: str | None = None
    targets: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class NodeFrontendConfig:
    build_dir: str | None = None
    build_cmd: str | None = None


@dataclass(frozen=True, slots=True)
class NodeConfig:
    mode: str | None = None
    binary: NodeBinaryConfig | None = None
    frontend: NodeFrontendConfig | None = None


@dataclass(frozen=True, slots=True)
class PyInstallerConfig:
    mode: str | None = None
    entry: str | None = None
    hidden_imports: tuple[str, ...] | None = None
    data: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class PythonConfig:
    mode: str | None = None
    pyinstaller: PyInstallerConfig | None = None


@dataclass(frozen=True, slots=True)
class VersionConfig:
    source: str = "git"
    manual: str | None = None


@dataclass(frozen=True, slots=True)
class GitHubReleaseConfig:
    owner: str
    repo: str


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    provider: str = "github"
    draft: bool = True
    prerelease: bool = False
    github: GitHubReleaseConfig | None = None


@dataclass(frozen=True, slots=True)
class ChangelogConfig:
    mode: str = "auto"
    file: str | None = None


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Single-project mode: the repository is one project."""

    name: str
    project_type: str
    path: str = "."

    @property
    def ecosystem(self) -> Ecosystem | None:
        return Ecosystem.from_tag(self.project_type)


@dataclass(frozen=True, slots=True)
class PackageEntry:
    """One ``[[packages]]`` entry of a monorepo. Every table is an override."""

    name: str
    project_type: str
    path: str = "."
    build: BuildConfig | None = None
    package: PackageConfig | None = None
    sbom: SbomConfig | None = None
    sign: SignConfig | None = None
    node: NodeConfig | None = None
    python: PythonConfig | None = None

    @property
    def ecosystem(self) -> Ecosystem | None:
        return Ecosystem.from_tag(self.project_type)


@dataclass(frozen=True, slots=True)
class ShippoConfig:
    """Root of the configuration file."""

    project: ProjectConfig | None = None
    packages: tuple[PackageEntry, ...] = ()
    version: VersionConfig | None = None
    build: BuildConfig | None = None
    package: PackageConfig | None = None
    sbom: SbomConfig | None = None
    sign: SignConfig | None = None
    node: NodeConfig | None = None
    python: PythonConfig | None = None
    release: ReleaseConfig | None = None
    changelog: ChangelogConfig | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ShippoConfig:
        """Create a config from a parsed TOML mapping.

        Raises:
            TypeError: A value has the wrong type.
            ValueError: A required key is missing.
        """
        project_tbl = get_table(data, "project")
        version_tbl = get_table(data, "version")
        release_tbl = get_table(data, "release")
        changelog_tbl = get_table(data, "changelog")

        return cls(
            project=_parse_project(project_tbl) if project_tbl is not None else None,
            packages=tuple(_parse_entry(t) for t in get_table_list(data, "packages") or []),
            version=_parse_version(version_tbl) if version_tbl is not None else None,
            build=_opt(data, "build", _parse_build),
            package=_opt(data, "package", _parse_package),
            sbom=_opt(data, "sbom", _parse_sbom),
            sign=_opt(data, "sign", _parse_sign),
            node=_opt(data, "node", _parse_node),
            python=_opt(data, "python", _parse_python),
            release=_parse_release(release_tbl) if release_tbl is not None else None,
            changelog=(
                ChangelogConfig(
                    mode=get_str(changelog_tbl, "mode") or "auto",
                    file=get_str(changelog_tbl, "file"),
                )
                if changelog_tbl is not None
                else None
            ),
        )

    @property
    def is_monorepo(self) -> bool:
        return bool(self.packages)


def _opt[T](data: Mapping[str, object], key: str, parse: Callable[[StrDict], T]) -> T | None:
    table = get_table(data, key)
    return parse(table) if table is not None else None


def _tuple(value: list[str] | None) -> tuple[str, ...] | None:
    return tuple(value) if value is not None else None


def _parse_project(t: StrDict) -> ProjectConfig:
    return ProjectConfig(
        name=require_str(t, "name", "project"),
        project_type=require_str(t, "type", "project"),
        path=get_str(t, "path") or ".",
    )


def _parse_entry(t: StrDict) -> PackageEntry:
    # A blank name is a validation error, not a parse error.
    name = t.get("name")
    return PackageEntry(
        name=name.strip() if isinstance(name, str) else "",
        project_type=require_str(t, "type", "packages"),
        path=get_str(t, "path") or ".",
        build=_opt(t, "build", _parse_build),
        package=_opt(t, "package", _parse_package),
        sbom=_opt(t, "sbom", _parse_sbom),
        sign=_opt(t, "sign", _parse_sign),
        node=_opt(t, "node", _parse_node),
        python=_opt(t, "python", _parse_python),
    )


def _parse_version(t: StrDict) -> VersionConfig:
    return VersionConfig(
        source=(get_str(t, "source") or "git").lower(),
        manual=get_str(t, "manual"),
    )


def _parse_build(t: StrDict) -> BuildConfig:
    return BuildConfig(targets=_tuple(get_str_list(t, "targets")), env=get_str_map(t, "env"))


def _parse_package(t: StrDict) -> PackageConfig:
    return PackageConfig(
        formats=_tuple(get_str_list(t, "formats")),
        name_template=get_str(t, "name_template"),
        include=_tuple(get_str_list(t, "include")),
        exclude=_tuple(get_str_list(t, "exclude")),
    )


def _parse_sbom(t: StrDict) -> SbomConfig:
    fmt = get_str(t, "format")
    return SbomConfig(
        enabled=get_bool(t, "enabled"),
        format=fmt.lower() if fmt else None,
        mode=get_str(t, "mode"),
    )


def _parse_sign(t: StrDict) -> SignConfig:
    return SignConfig(
        enabled=get_bool(t, "enabled"),
        method=get_str(t, "method"),
        cosign_mode=get_str(t, "cosign_mode"),
    )


def _parse_node(t: StrDict) -> NodeConfig:
    binary = get_table(t, "binary")
    frontend = get_table(t, "frontend")
    return NodeConfig(
        mode=get_str(t, "mode"),
        binary=(
            NodeBinaryConfig(
                tool=get_str(binary, "tool"),
                entry=get_str(binary, "entry"),
                targets=_tuple(get_str_list(binary, "targets")),
            )
            if binary is not None
            else None
        ),
        frontend=(
            NodeFrontendConfig(
                build_dir=get_str(frontend, "build_dir"),
                build_cmd=get_str(frontend, "build_cmd"),
            )
            if frontend is not None
            else None
        ),
    )


def _parse_python(t: StrDict) -> PythonConfig:
    pyi = get_table(t, "pyinstaller")
    return PythonConfig(
        mode=get_str(t, "mode"),
        pyinstaller=(
            PyInstallerConfig(
                mode=get_str(pyi, "mode"),
                entry=get_str(pyi, "entry"),
                hidden_imports=_tuple(get_str_list(pyi, "hidden_imports")),
                data=_tuple(get_str_list(pyi, "data")),
            )
            if pyi is not None
            else None
        ),
    )


def _parse_release(t: StrDict) -> ReleaseConfig:
    gh = get_table(t, "github")
    draft = get_bool(t, "draft")
    prerelease = get_bool(t, "prerelease")
    return ReleaseConfig(
        provider=get_str(t, "provider") or "github",
        draft=True if draft is None else draft,
        prerelease=False if prerelease is None else prerelease,
        github=(
            GitHubReleaseConfig(
                owner=require_str(gh, "owner", "release.github"),
                repo=require_str(gh, "repo", "release.github"),
            )
            if gh is not None
            else None
        ),
    )


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------


def validate_config(config: ShippoConfig) -> Result[None, ConfigError]:
    """Check the structural and semantic rules of a parsed configuration.

    Pure function: the first violated rule is returned as ``Err``.
    """
    if config.project is None and not config.packages:
        return Err(ConfigError("config must define [project] or [[packages]]"))
    if config.project is not None and config.packages:
        return Err(
            ConfigError("use either a single [project] or [[packages]] monorepo, not both")
        )

    if config.version is not None:
        if config.version.source not in VERSION_SOURCES:
            return Err(
                ConfigError(
                    f"unknown version.source '{config.version.source}' "
                    f"(expected one of: {', '.join(VERSION_SOURCES)})"
                )
            )
        if config.version.source == "manual" and config.version.manual is None:
            return Err(ConfigError("version.source=manual requires version.manual"))

    for where, layer in (("build", config.build), ("sbom", config.sbom)):
        err = _check_layer(where, layer)
        if err is not None:
            return Err(err)

    if config.project is not None:
        err = _check_project(config.project, config)
        if err is not None:
            return Err(err)

    seen: set[str] = set()
    for entry in config.packages:
        err = _check_entry(entry, config)
        if err is not None:
            return Err(err)
        if entry.name in seen:
            return Err(ConfigError(f"duplicate package name: {entry.name}"))
        seen.add(entry.name)

    return Ok(None)


def _check_layer(where: str, layer: BuildConfig | SbomConfig | None) -> ConfigError | None:
    match layer:
        case BuildConfig(targets=targets) if targets is not None and not targets:
            return ConfigError(f"{where}.targets must not be empty")
        case SbomConfig(format=fmt) if fmt is not None and fmt not in SBOM_FORMATS:
            return ConfigError(
                f"unsupported {where}.format '{fmt}' (expected one of: {', '.join(SBOM_FORMATS)})"
            )
        case _:
            return None


def _check_project(project: ProjectConfig, config: ShippoConfig) -> ConfigError | None:
    if project.ecosystem is None:
        return ConfigError(f"unsupported project type '{project.project_type}' for {project.name}")
    if project.ecosystem is Ecosystem.NODE:
        return _check_node(project.name, None, config.node)
    return None


def _check_entry(entry: PackageEntry, config: ShippoConfig) -> ConfigError | None:
    if not entry.name.strip():
        return ConfigError("package name required")
    if entry.ecosystem is None:
        return ConfigError(f"unsupported project type '{entry.project_type}' for {entry.name}")
    for where, layer in (
        (f"packages.{entry.name}.build", entry.build),
        (f"packages.{entry.name}.sbom", entry.sbom),
    ):
        err = _check_layer(where, layer)
        if err is not None:
            return err
    if entry.ecosystem is Ecosystem.NODE:
        return _check_node(entry.name, entry.node, config.node)
    return None


def _check_node(name: str, own: NodeConfig | None, shared: NodeConfig | None) -> ConfigError | None:
    if own is None and shared is None:
        return None
    mode = cascade(own.mode if own else None, shared.mode if shared else None, DEFAULT_NODE_MODE)
    binary = (own.binary if own else None) or (shared.binary if shared else None)
    if mode == "cli-binary" and binary is None:
        return ConfigError(f"node.cli-binary requires [node.binary] (package '{name}')")
    return None


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, mapping read and syntax errors to ConfigError."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except OSError as e:
        return Err(ConfigError(f"Cannot read config {path}: {e.strerror or e}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def parse_config(
    data: Mapping[str, object], path: Path | None = None
) -> Result[ShippoConfig, ConfigError]:
    """Build and validate a config from an already-parsed mapping."""
    try:
        config = ShippoConfig.from_dict(data)
    except (TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))

    validated = validate_config(config)
    if isinstance(validated, Err):
        return Err(ConfigError(validated.error.message, path=path))
    return Ok(config)


def load_config(path: Path) -> Result[ShippoConfig, ConfigError]:
    """Load, parse and validate a configuration file.

    Args:
        path: Path to the TOML configuration (usually ``.shippo.toml``).

    Returns:
        Ok(ShippoConfig) on success, Err(ConfigError) on failure.
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result
    return parse_config(result.value, path=path)
