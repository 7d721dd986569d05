"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from shippo.core.config import ShippoConfig, load_config
from shippo.core.errors import ErrorCode
from shippo.core.plan import Plan, build_plan
from shippo.core.result import Err
from shippo.output.errors import (
    build_error_exit_code,
    print_build_error,
    print_config_error,
    print_packaging_error,
    print_plan_error,
)
from shippo.pack.engine import BuiltOutput, PackagingHooks, package_outputs
from shippo.pack.manifest import Manifest
from shippo.services.builders import build_package

if TYPE_CHECKING:
    from shippo.cli.context import CLIContext


def exit_with_code(code: int) -> NoReturn:
    """Stop the command; ``code`` becomes the process exit status."""
    raise typer.Exit(code=code)


def load_or_exit(ctx: CLIContext) -> ShippoConfig:
    result = load_config(ctx.config_path)
    if isinstance(result, Err):
        print_config_error(result.error, ctx.console)
        exit_with_code(int(ErrorCode.USER_ERROR))
    return result.value


def plan_or_exit(ctx: CLIContext, config: ShippoConfig) -> Plan:
    result = build_plan(config, ctx.vcs, only=ctx.options.only, tag_override=ctx.options.tag)
    if isinstance(result, Err):
        print_plan_error(result.error, ctx.console)
        exit_with_code(int(ErrorCode.USER_ERROR))
    ctx.console.debug(f"version {result.value.version} ({result.value.version_source})")
    return result.value


def build_or_exit(ctx: CLIContext, plan: Plan) -> list[BuiltOutput]:
    """Build every package of the plan, stopping at the first failure."""
    outputs: list[BuiltOutput] = []
    for pkg in plan.packages:
        result = build_package(pkg, ctx.root, plan.version, console=ctx.console)
        if isinstance(result, Err):
            print_build_error(result.error, ctx.console)
            exit_with_code(build_error_exit_code(result.error))
        outputs.extend(t.as_output(pkg.name) for t in result.value)
    return outputs


def package_or_exit(
    ctx: CLIContext, plan: Plan, built: list[BuiltOutput], *, sign: bool
) -> Manifest:
    result = package_outputs(
        plan,
        built,
        ctx.bundle_dir,
        repo_url=ctx.vcs.repo_url(),
        commit=ctx.vcs.current_commit(),
        sign=sign,
        hooks=PackagingHooks(clock=ctx.clock),
        console=ctx.console,
    )
    if isinstance(result, Err):
        print_packaging_error(result.error, ctx.console)
        exit_with_code(int(ErrorCode.IO_ERROR))
    return result.value
