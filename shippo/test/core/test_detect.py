"""Tests for shippo.core.detect module."""

from __future__ import annotations

import tomllib
from pathlib import Path

from shippo.core.config import parse_config
from shippo.core.detect import detect_projects, render_starter_config
from shippo.core.result import Ok


def _project(root: Path, name: str, marker: str) -> None:
    (root / name).mkdir()
    (root / name / marker).write_text("", encoding="utf-8")


class TestDetectProjects:
    def test_one_project_per_directory_sorted(self, tmp_path: Path) -> None:
        _project(tmp_path, "web", "package.json")
        _project(tmp_path, "api", "go.mod")
        _project(tmp_path, "core", "Cargo.toml")

        projects = detect_projects(tmp_path)

        assert [(p.name, p.project_type, p.path) for p in projects] == [
            ("api", "go", "api"),
            ("core", "rust", "core"),
            ("web", "node", "web"),
        ]

    def test_first_marker_wins(self, tmp_path: Path) -> None:
        _project(tmp_path, "mixed", "pyproject.toml")
        (tmp_path / "mixed" / "Cargo.toml").write_text("", encoding="utf-8")

        assert [p.project_type for p in detect_projects(tmp_path)] == ["rust"]

    def test_ignores_hidden_and_plain_directories(self, tmp_path: Path) -> None:
        _project(tmp_path, ".cache", "package.json")
        (tmp_path / "docs").mkdir()

        assert detect_projects(tmp_path) == []

    def test_missing_root(self, tmp_path: Path) -> None:
        assert detect_projects(tmp_path / "nope") == []


class TestStarterConfig:
    """Rendered configs must load and validate."""

    def test_single_project(self, tmp_path: Path) -> None:
        _project(tmp_path, "cli", "Cargo.toml")
        text = render_starter_config(detect_projects(tmp_path))

        result = parse_config(tomllib.loads(text))
        assert isinstance(result, Ok)
        assert result.value.project is not None
        assert result.value.project.name == "cli"

    def test_monorepo_with_node(self, tmp_path: Path) -> None:
        _project(tmp_path, "api", "go.mod")
        _project(tmp_path, "web", "package.json")
        text = render_starter_config(detect_projects(tmp_path))

        result = parse_config(tomllib.loads(text))
        assert isinstance(result, Ok)
        assert [p.name for p in result.value.packages] == ["api", "web"]
        web = result.value.packages[1]
        assert web.node is not None
        assert web.node.binary is not None

    def test_no_projects_still_valid(self) -> None:
        assert isinstance(parse_config(tomllib.loads(render_starter_config([]))), Ok)
