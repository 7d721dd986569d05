"""Project detection and starter configuration for ``shippo init``."""

from __future__ import annotations

from pathlib import Path

from .config import Ecosystem, ProjectConfig

__all__ = ["DEFAULT_CONFIG_NAME", "detect_projects", "render_starter_config"]

DEFAULT_CONFIG_NAME = ".shippo.toml"

# Marker file -> ecosystem; a directory matching several markers takes the first.
_MARKERS: tuple[tuple[str, Ecosystem], ...] = (
    ("Cargo.toml", Ecosystem.RUST),
    ("go.mod", Ecosystem.GO),
    ("package.json", Ecosystem.NODE),
    ("pyproject.toml", Ecosystem.PYTHON),
)

_SHARED_SECTIONS = """\
[version]
source = "git"

[build]
targets = ["native"]

[package]
formats = ["tar.gz", "zip"]
name_template = "{name}-{version}-{target}"

[sbom]
enabled = true
format = "cyclonedx"
mode = "auto"

[sign]
enabled = false
method = "cosign"
cosign_mode = "keyless"

[release]
provider = "github"
draft = true
prerelease = false

[changelog]
mode = "auto"
"""


def detect_projects(root: Path) -> list[ProjectConfig]:
    """Find one project per immediate sub-directory of ``root``, sorted by name."""
    if not root.is_dir():
        return []

    projects: list[ProjectConfig] = []
    for child in sorted(root.iterdir()):
        if not child.is_dir() or child.name.startswith("."):
            continue
        for marker, ecosystem in _MARKERS:
            if (child / marker).is_file():
                projects.append(
                    ProjectConfig(name=child.name, project_type=ecosystem.value, path=child.name)
                )
                break
    return projects


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _project_block(header: str, project: ProjectConfig) -> str:
    block = (
        f"{header}\n"
        f"name = {_quote(project.name)}\n"
        f"type = {_quote(project.project_type)}\n"
        f"path = {_quote(project.path)}\n"
    )
    if project.ecosystem is Ecosystem.NODE:
        node_header = "[node]" if header == "[project]" else "[packages.node]"
        binary_header = "[node.binary]" if header == "[project]" else "[packages.node.binary]"
        block += (
            f"\n{node_header}\nmode = \"cli-binary\"\n\n"
            f"{binary_header}\ntool = \"pkg\"\nentry = \"index.js\"\n"
        )
    return block


def render_starter_config(projects: list[ProjectConfig]) -> str:
    """Render a commented starter ``.shippo.toml``.

    Exactly one detected project yields single-project mode; zero or several
    yield a ``[[packages]]`` monorepo (zero falls back to an example project so
    the file still validates).
    """
    parts = ["# Shippo configuration\n"]
    if len(projects) == 1:
        parts.append(_project_block("[project]", projects[0]))
    elif not projects:
        parts.append(_project_block("[project]", ProjectConfig("example", "rust", ".")))
    else:
        parts.extend(_project_block("[[packages]]", p) for p in projects)
    parts.append(_SHARED_SECTIONS)
    return "\n".join(parts)
