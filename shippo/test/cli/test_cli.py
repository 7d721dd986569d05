"""End-to-end CLI tests with git and the native toolchains patched out."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest
from typer.testing import CliRunner
from typer.testing import Result as Invocation

from shippo import __version__
from shippo.cli import context as cli_context
from shippo.cli.app import app
from shippo.cli.commands import _helpers
from shippo.core.errors import ErrorCode
from shippo.core.plan import PackagePlan
from shippo.core.result import Err, Ok, Result
from shippo.git.vcs import StaticVcs
from shippo.output.console import NullConsole
from shippo.pack.engine import PackagingHooks
from shippo.pack.signing import UnavailableSigner
from shippo.pack.tooling import StaticToolProbe
from shippo.services.build_errors import BuildError, CommandFailed
from shippo.services.builders import BuiltTarget

CONFIG = """\
[[packages]]
name = "api"
type = "go"
path = "api"

[[packages]]
name = "cli"
type = "rust"
path = "cli"

[package]
formats = ["tar.gz"]
"""

runner = CliRunner()


def _offline_hooks(clock: Callable[[], datetime]) -> PackagingHooks:
    return PackagingHooks(
        signer=UnavailableSigner(),
        probe=StaticToolProbe({"go": "go version go1.22.3 linux/amd64"}),
        clock=clock,
        environ={},
    )


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / ".shippo.toml").write_text(CONFIG, encoding="utf-8")
    monkeypatch.setattr(cli_context, "GitVcs", lambda root: StaticVcs(tag="v1.0.0", commit="abc"))
    monkeypatch.setattr(_helpers, "PackagingHooks", _offline_hooks)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)
    monkeypatch.setenv("SOURCE_DATE_EPOCH", "1714564800")
    return tmp_path


def _fake_build(root: Path) -> Callable[..., Result[list[BuiltTarget], BuildError]]:
    def fake(
        plan: PackagePlan, workspace_root: Path, version: str, *, console: object = None
    ) -> Result[list[BuiltTarget], BuildError]:
        out = root / "out" / plan.name
        out.mkdir(parents=True, exist_ok=True)
        binary = out / plan.name
        binary.write_bytes(f"{plan.name} {version}".encode())
        return Ok([BuiltTarget(target=t, artifacts=(binary,)) for t in plan.targets])

    return fake


def _invoke(workspace: Path, *args: str) -> Invocation:
    return runner.invoke(app, ["--config", str(workspace / ".shippo.toml"), *args])


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


class TestPlan:
    def test_json(self, workspace: Path) -> None:
        result = runner.invoke(
            app, ["--config", str(workspace / ".shippo.toml"), "--tag", "v2.0.0", "plan", "--json"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["version"] == "v2.0.0"
        assert [p["name"] for p in data["packages"]] == ["api", "cli"]

    def test_only(self, workspace: Path) -> None:
        result = runner.invoke(
            app, ["--config", str(workspace / ".shippo.toml"), "--only", "cli", "plan", "--json"]
        )

        assert result.exit_code == 0
        assert [p["name"] for p in json.loads(result.output)["packages"]] == ["cli"]

    def test_unknown_package(self, workspace: Path) -> None:
        result = runner.invoke(
            app, ["--config", str(workspace / ".shippo.toml"), "--only", "nope", "plan"]
        )

        assert result.exit_code == int(ErrorCode.USER_ERROR)

    def test_blank_tag(self, workspace: Path) -> None:
        result = runner.invoke(
            app, ["--config", str(workspace / ".shippo.toml"), "--tag", " ", "plan", "--json"]
        )

        assert result.exit_code == int(ErrorCode.USER_ERROR)

    def test_invalid_config(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[project]\nname = 'x'\ntype = 'cobol'\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", str(path), "plan"])

        assert result.exit_code == int(ErrorCode.USER_ERROR)


class TestInit:
    def test_writes_starter_config(self, tmp_path: Path) -> None:
        (tmp_path / "svc").mkdir()
        (tmp_path / "svc" / "go.mod").write_text("module svc\n", encoding="utf-8")
        config = tmp_path / ".shippo.toml"

        result = runner.invoke(app, ["--config", str(config), "init"])

        assert result.exit_code == 0
        assert 'name = "svc"' in config.read_text(encoding="utf-8")

    def test_refuses_to_overwrite(self, workspace: Path) -> None:
        result = _invoke(workspace, "init")

        assert result.exit_code == int(ErrorCode.USER_ERROR)
        assert "[[packages]]" in (workspace / ".shippo.toml").read_text(encoding="utf-8")


class TestPackageAndVerify:
    def test_package_then_verify(self, workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(_helpers, "build_package", _fake_build(workspace))

        packaged = _invoke(workspace, "package")
        assert packaged.exit_code == 0

        bundle = workspace / "dist"
        manifest = json.loads((bundle / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["generated_at"] == "2024-05-01T12:00:00Z"
        assert manifest["project"] == {"commit": "abc", "repo_url": None, "version": "v1.0.0"}
        assert (bundle / "api-v1.0.0-native.tar.gz").is_file()

        verified = _invoke(workspace, "verify")
        assert verified.exit_code == 0

    def test_verify_detects_tampering(
        self, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(_helpers, "build_package", _fake_build(workspace))
        _invoke(workspace, "package")
        with (workspace / "dist" / "cli-v1.0.0-native.tar.gz").open("ab") as f:
            f.write(b"tampered")

        result = _invoke(workspace, "verify")

        assert result.exit_code == int(ErrorCode.VERIFY_ERROR)

    def test_build_failure_exit_code(
        self, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def failing(
            plan: PackagePlan, root: Path, version: str, *, console: object = None
        ) -> Result[list[BuiltTarget], BuildError]:
            return Err(CommandFailed(command=("go", "build"), returncode=1))

        monkeypatch.setattr(_helpers, "build_package", failing)

        result = _invoke(workspace, "package")

        assert result.exit_code == int(ErrorCode.BUILD_ERROR)
        assert not (workspace / "dist" / "manifest.json").exists()


class TestRelease:
    def test_dry_run_packages_without_publishing(
        self, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(_helpers, "build_package", _fake_build(workspace))

        result = _invoke(workspace, "release", "--dry-run")

        assert result.exit_code == 0
        assert (workspace / "dist" / "SHA256SUMS").is_file()

    def test_missing_release_table(self, workspace: Path) -> None:
        result = _invoke(workspace, "release")

        assert result.exit_code == int(ErrorCode.USER_ERROR)

    def test_missing_token(self, workspace: Path) -> None:
        config = workspace / ".shippo.toml"
        config.write_text(
            CONFIG + '\n[release.github]\nowner = "acme"\nrepo = "tool"\n', encoding="utf-8"
        )

        result = _invoke(workspace, "release")

        assert result.exit_code == int(ErrorCode.ENV_ERROR)
        assert not (workspace / "dist").exists()


class TestContext:
    def test_clock_honours_source_date_epoch(self) -> None:
        clock = cli_context.clock_from_env({"SOURCE_DATE_EPOCH": "1714564800"})

        assert clock().isoformat() == "2024-05-01T12:00:00+00:00"

    def test_clock_ignores_garbage(self) -> None:
        clock = cli_context.clock_from_env({"SOURCE_DATE_EPOCH": "yesterday"})

        assert clock().year >= 2024

    def test_bundle_dir_relative_to_config(self, tmp_path: Path) -> None:
        options = cli_context.GlobalOptions(config=tmp_path / ".shippo.toml")
        ctx = cli_context.CLIContext(
            root=tmp_path,
            options=options,
            console=NullConsole(),
            vcs=StaticVcs(),
            clock=cli_context.clock_from_env({}),
        )

        assert ctx.bundle_dir == tmp_path / "dist"

    def test_bundle_dir_absolute(self, tmp_path: Path) -> None:
        options = cli_context.GlobalOptions(output=tmp_path / "out")
        ctx = cli_context.CLIContext(
            root=Path("/elsewhere"),
            options=options,
            console=NullConsole(),
            vcs=StaticVcs(),
            clock=cli_context.clock_from_env({}),
        )

        assert ctx.bundle_dir == tmp_path / "out"
