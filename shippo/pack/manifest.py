"""Release manifest model and its on-disk JSON form.

The manifest is the only persisted entity: verification and publishing
both start from it. Serialization is deterministic: keys are emitted in
sorted order with two-space indentation, so serializing an unchanged
manifest twice gives identical bytes (only ``generated_at`` varies between
runs).
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime

from shippo.core.structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_int,
    get_str,
    get_table_list,
    require_str,
)

__all__ = [
    "BuildEnvInfo",
    "Manifest",
    "ManifestArtifact",
    "ManifestPackage",
    "ManifestProject",
    "ManifestSignature",
    "ManifestTarget",
    "ToolingInfo",
    "format_timestamp",
]

_WHERE = "manifest"


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with a ``Z`` suffix, e.g. ``2024-05-01T12:00:00Z``."""
    return moment.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _each(table: Mapping[str, object], key: str) -> list[StrDict]:
    return get_table_list(table, key) or []


@dataclass(frozen=True, slots=True)
class ManifestArtifact:
    """One physical file in the bundle directory."""

    filename: str
    bytes: int
    sha256: str

    def to_dict(self) -> dict[str, object]:
        return {"filename": self.filename, "bytes": self.bytes, "sha256": self.sha256}

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ManifestArtifact:
        size = get_int(data, "bytes")
        if size is None:
            raise ValueError(f"{_WHERE}.bytes is required")
        return cls(
            filename=require_str(data, "filename", _WHERE),
            bytes=size,
            sha256=require_str(data, "sha256", _WHERE),
        )


@dataclass(frozen=True, slots=True)
class ManifestSignature:
    """A detached signature file.

    ``placeholder`` is true when no signer was available and the file only
    holds the signed artifact's SHA-256. Such a bundle verifies but is not
    cryptographically signed.
    """

    filename: str
    method: str
    placeholder: bool = False

    def to_dict(self) -> dict[str, object]:
        return {"filename": self.filename, "method": self.method, "placeholder": self.placeholder}

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ManifestSignature:
        return cls(
            filename=require_str(data, "filename", _WHERE),
            method=get_str(data, "method") or "",
            placeholder=get_bool(data, "placeholder") or False,
        )


@dataclass(frozen=True, slots=True)
class ManifestTarget:
    target: str
    artifacts: tuple[ManifestArtifact, ...]
    sbom: ManifestArtifact | None = None
    signatures: tuple[ManifestSignature, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "target": self.target,
            "artifacts": [a.to_dict() for a in self.artifacts],
            "sbom": self.sbom.to_dict() if self.sbom is not None else None,
            "signatures": [s.to_dict() for s in self.signatures],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ManifestTarget:
        sbom = data.get("sbom")
        sbom_tbl = as_str_dict(sbom) if sbom is not None else None
        if sbom is not None and sbom_tbl is None:
            raise TypeError("manifest field 'sbom' must be an object or null")
        return cls(
            target=require_str(data, "target", _WHERE),
            artifacts=tuple(ManifestArtifact.from_dict(a) for a in _each(data, "artifacts")),
            sbom=ManifestArtifact.from_dict(sbom_tbl) if sbom_tbl is not None else None,
            signatures=tuple(ManifestSignature.from_dict(s) for s in _each(data, "signatures")),
        )

    def files(self) -> list[ManifestArtifact]:
        """Hashed files of this target: archives, then the SBOM."""
        out = list(self.artifacts)
        if self.sbom is not None:
            out.append(self.sbom)
        return out


@dataclass(frozen=True, slots=True)
class ManifestPackage:
    name: str
    project_type: str
    path: str
    targets: tuple[ManifestTarget, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "type": self.project_type,
            "path": self.path,
            "targets": [t.to_dict() for t in self.targets],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ManifestPackage:
        return cls(
            name=require_str(data, "name", _WHERE),
            project_type=require_str(data, "type", _WHERE),
            path=get_str(data, "path") or ".",
            targets=tuple(ManifestTarget.from_dict(t) for t in _each(data, "targets")),
        )


@dataclass(frozen=True, slots=True)
class ManifestProject:
    repo_url: str | None
    commit: str | None
    version: str


@dataclass(frozen=True, slots=True)
class ToolingInfo:
    """Best-effort toolchain versions; None when a toolchain is unavailable."""

    rust: str | None = None
    go: str | None = None
    node: str | None = None
    python: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {"rust": self.rust, "go": self.go, "node": self.node, "python": self.python}


@dataclass(frozen=True, slots=True)
class BuildEnvInfo:
    os: str
    arch: str
    ci: bool


def _unknown_env() -> BuildEnvInfo:
    return BuildEnvInfo(os="unknown", arch="unknown", ci=False)


@dataclass(frozen=True, slots=True)
class Manifest:
    shippo_version: str
    generated_at: datetime
    project: ManifestProject
    packages: tuple[ManifestPackage, ...] = ()
    tooling: ToolingInfo = field(default_factory=ToolingInfo)
    build_env: BuildEnvInfo = field(default_factory=_unknown_env)

    def to_dict(self) -> dict[str, object]:
        return {
            "build_env": {
                "arch": self.build_env.arch,
                "ci": self.build_env.ci,
                "os": self.build_env.os,
            },
            "generated_at": format_timestamp(self.generated_at),
            "packages": [p.to_dict() for p in self.packages],
            "project": {
                "commit": self.project.commit,
                "repo_url": self.project.repo_url,
                "version": self.project.version,
            },
            "shippo_version": self.shippo_version,
            "tooling": self.tooling.to_dict(),
        }

    def to_json(self) -> str:
        """Deterministic JSON: sorted keys, two-space indent, trailing newline."""
        return json.dumps(self.to_dict(), indent=2, sort_keys=True) + "\n"

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Manifest:
        """Rebuild a manifest from its JSON form.

        Raises:
            TypeError: A field has the wrong type.
            ValueError: A required field is missing or malformed.
        """
        project = as_str_dict(data.get("project")) or {}
        tooling = as_str_dict(data.get("tooling")) or {}
        env = as_str_dict(data.get("build_env")) or {}
        return cls(
            shippo_version=require_str(data, "shippo_version", _WHERE),
            generated_at=_parse_timestamp(require_str(data, "generated_at", _WHERE)),
            project=ManifestProject(
                repo_url=get_str(project, "repo_url"),
                commit=get_str(project, "commit"),
                version=require_str(project, "version", _WHERE),
            ),
            packages=tuple(ManifestPackage.from_dict(p) for p in _each(data, "packages")),
            tooling=ToolingInfo(
                rust=get_str(tooling, "rust"),
                go=get_str(tooling, "go"),
                node=get_str(tooling, "node"),
                python=get_str(tooling, "python"),
            ),
            build_env=BuildEnvInfo(
                os=get_str(env, "os") or "unknown",
                arch=get_str(env, "arch") or "unknown",
                ci=get_bool(env, "ci") or False,
            ),
        )

    @classmethod
    def from_json(cls, text: str) -> Manifest:
        """Parse manifest JSON.

        Raises:
            json.JSONDecodeError, TypeError, ValueError: The text is not a
            valid manifest.
        """
        data = as_str_dict(json.loads(text))
        if data is None:
            raise ValueError("manifest root must be a JSON object")
        return cls.from_dict(data)

    def all_files(self) -> list[str]:
        """Every bundle file the manifest records, in manifest order."""
        names: list[str] = []
        for pkg in self.packages:
            for target in pkg.targets:
                names.extend(a.filename for a in target.files())
                names.extend(s.filename for s in target.signatures)
        return names
