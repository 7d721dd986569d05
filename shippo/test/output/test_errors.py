"""Tests for shippo.output.errors module."""

from __future__ import annotations

from pathlib import Path

import pytest

from shippo.core.config import ConfigError
from shippo.core.errors import ErrorCode
from shippo.core.plan import PlanError
from shippo.output.console import MockConsole
from shippo.output.errors import (
    build_error_exit_code,
    print_build_error,
    print_config_error,
    print_packaging_error,
    print_plan_error,
    print_publish_error,
    publish_error_exit_code,
)
from shippo.pack.errors import PackagingError
from shippo.services.build_errors import (
    BuildError,
    CommandFailed,
    NoArtifacts,
    OutputMissing,
    ToolMissing,
)
from shippo.services.publish import PublishError


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (ToolMissing("cargo", "Install Rust"), ErrorCode.ENV_ERROR),
        (CommandFailed(("go", "build"), 2), ErrorCode.BUILD_ERROR),
        (NoArtifacts("api", "native", Path("dist")), ErrorCode.BUILD_ERROR),
        (OutputMissing(Path("web/dist")), ErrorCode.IO_ERROR),
    ],
)
def test_build_error_exit_codes(error: BuildError, code: ErrorCode) -> None:
    assert build_error_exit_code(error) == int(code)


def test_print_build_error_with_hint() -> None:
    console = MockConsole()
    print_build_error(ToolMissing("cargo", "Install Rust: https://rustup.rs"), console)

    assert console.messages == ["error: cargo: missing", "hint: Install Rust: https://rustup.rs"]


def test_print_config_error_names_path() -> None:
    console = MockConsole()
    print_config_error(ConfigError("duplicate package name: a", Path("x.toml")), console)

    assert console.messages == ["error: invalid config (x.toml): duplicate package name: a"]


def test_print_packaging_error_duplicate_name() -> None:
    console = MockConsole()
    error = PackagingError(kind="duplicate_name", message="duplicate bundle file name: a.zip")
    print_packaging_error(error, console)

    assert console.messages[0] == "error: packaging failed: duplicate bundle file name: a.zip"
    assert console.find("{target}")


def test_print_plan_error() -> None:
    console = MockConsole()
    print_plan_error(PlanError("no_packages_selected", "no packages", "Available: a"), console)

    assert console.messages == ["error: no packages", "hint: Available: a"]


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("not_configured", ErrorCode.USER_ERROR),
        ("token_missing", ErrorCode.ENV_ERROR),
        ("network", ErrorCode.NETWORK_ERROR),
        ("io", ErrorCode.IO_ERROR),
    ],
)
def test_publish_error_exit_codes(kind: str, code: ErrorCode) -> None:
    error = PublishError(kind=kind, message="x")  # type: ignore[arg-type]
    assert publish_error_exit_code(error) == int(code)


def test_print_publish_error() -> None:
    console = MockConsole()
    print_publish_error(PublishError("token_missing", "no token", "Set GITHUB_TOKEN"), console)

    assert console.has_error()
    assert console.find("GITHUB_TOKEN")
