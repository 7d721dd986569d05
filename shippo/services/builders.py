"""Per-ecosystem builders.

Each builder runs the project's native toolchain once per resolved target
(output streams to the terminal) and collects the files it produced:

- rust: ``cargo build --release`` (``cross`` for foreign targets when it is
  installed or ``SHIPPO_USE_CROSS`` is set); executables in
  ``target/[<triple>/]release``.
- go: ``go build`` with GOOS/GOARCH split from ``<os>-<arch>`` targets;
  the binary named after the package.
- node: ``npm ci``, then the binary tool (``pkg``) or the frontend build
  command; binaries whose name contains the package name, or the frontend
  build directory.
- python: ``python -m build`` or ``pyinstaller``; everything in ``dist/``.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from shippo.core.config import Ecosystem
from shippo.core.plan import NodeSettings, PackagePlan, PythonSettings
from shippo.core.result import Err, Ok, Result
from shippo.output.console import ConsoleProtocol, NullConsole
from shippo.pack.engine import BuiltOutput
from shippo.platform.files import is_executable, list_dir
from shippo.platform.process import run_streaming, which

from .build_errors import BuildError, CommandFailed, NoArtifacts, OutputMissing, ToolMissing

__all__ = ["BuiltTarget", "build_package"]

NATIVE = "native"

_TOOL_HINTS = {
    "cargo": "Install Rust: https://rustup.rs",
    "cross": "Install cross: cargo install cross",
    "go": "Install Go: https://go.dev/dl/",
    "npm": "Install Node.js: https://nodejs.org",
    "pkg": "Install pkg: npm install -g pkg",
    "python": "Install Python 3 and add it to PATH",
    "pyinstaller": "Install PyInstaller: pip install pyinstaller",
}


@dataclass(frozen=True, slots=True)
class BuiltTarget:
    target: str
    artifacts: tuple[Path, ...]

    def as_output(self, package: str) -> BuiltOutput:
        return BuiltOutput(package=package, target=self.target, artifacts=self.artifacts)


def _run(
    cmd: list[str],
    cwd: Path,
    console: ConsoleProtocol,
    env: dict[str, str] | None = None,
) -> Result[None, BuildError]:
    console.debug(f"$ {' '.join(cmd)}  (in {cwd})")
    result = run_streaming(cmd, cwd, env)
    if isinstance(result, Err):
        err = result.error
        if err.not_found:
            tool = cmd[0]
            return Err(ToolMissing(tool_id=tool, hint=_TOOL_HINTS.get(tool, f"Install {tool}")))
        return Err(CommandFailed(command=err.command, returncode=err.returncode))
    return Ok(None)


def _build_rust(
    plan: PackagePlan, project_dir: Path, target: str, env: dict[str, str], console: ConsoleProtocol
) -> Result[BuiltTarget, BuildError]:
    use_cross = target != NATIVE and (
        "SHIPPO_USE_CROSS" in os.environ or which("cross") is not None
    )
    if use_cross:
        cmd = ["cross", "build", "--release", "--target", target]
    else:
        cmd = ["cargo", "build", "--release"]
        if target != NATIVE:
            cmd += ["--target", target]
    ran = _run(cmd, project_dir, console, env)
    if isinstance(ran, Err):
        return ran

    if target == NATIVE:
        release_dir = project_dir / "target" / "release"
    else:
        release_dir = project_dir / "target" / target / "release"
    artifacts = tuple(list_dir(release_dir, is_executable))
    if not artifacts:
        return Err(NoArtifacts(package=plan.name, target=target, searched=release_dir))
    return Ok(BuiltTarget(target=target, artifacts=artifacts))


def _go_env(target: str) -> dict[str, str]:
    parts = target.replace("/", "-").split("-")
    if target == NATIVE or len(parts) < 2:
        return {}
    return {"GOOS": parts[0], "GOARCH": parts[1]}


def _build_go(
    plan: PackagePlan,
    project_dir: Path,
    target: str,
    version: str,
    env: dict[str, str],
    console: ConsoleProtocol,
) -> Result[BuiltTarget, BuildError]:
    binary = project_dir / plan.name
    cmd = ["go", "build", "-ldflags", f"-X main.version={version}", "-o", plan.name]
    ran = _run(cmd, project_dir, console, {**env, **_go_env(target)})
    if isinstance(ran, Err):
        return ran
    if not binary.is_file():
        return Err(NoArtifacts(package=plan.name, target=target, searched=project_dir))
    return Ok(BuiltTarget(target=target, artifacts=(binary,)))


def _build_node(
    plan: PackagePlan,
    settings: NodeSettings,
    project_dir: Path,
    target: str,
    env: dict[str, str],
    console: ConsoleProtocol,
) -> Result[BuiltTarget, BuildError]:
    ran = _run(["npm", "ci"], project_dir, console, env)
    if isinstance(ran, Err):
        return ran

    if settings.is_frontend:
        if settings.frontend_build_cmd:
            if sys.platform == "win32":
                cmd = ["cmd", "/C", settings.frontend_build_cmd]
            else:
                cmd = ["sh", "-c", settings.frontend_build_cmd]
        else:
            cmd = ["npm", "run", "build"]
        ran = _run(cmd, project_dir, console, env)
        if isinstance(ran, Err):
            return ran
        build_dir = project_dir / settings.frontend_build_dir
        if not build_dir.is_dir():
            return Err(OutputMissing(path=build_dir))
        return Ok(BuiltTarget(target=target, artifacts=(build_dir,)))

    pkg_targets = settings.binary_targets or (target,)
    cmd = [settings.binary_tool, settings.binary_entry, "--targets", ",".join(pkg_targets)]
    ran = _run(cmd, project_dir, console, env)
    if isinstance(ran, Err):
        return ran
    artifacts = tuple(list_dir(project_dir, lambda p: p.is_file() and plan.name in p.name))
    if not artifacts:
        return Err(NoArtifacts(package=plan.name, target=target, searched=project_dir))
    return Ok(BuiltTarget(target=target, artifacts=artifacts))


def _pyinstaller_cmd(settings: PythonSettings) -> list[str]:
    cmd = ["pyinstaller", "--noconfirm"]
    if settings.pyinstaller_mode == "onefile":
        cmd.append("--onefile")
    for hidden in settings.hidden_imports:
        cmd += ["--hidden-import", hidden]
    sep = ";" if sys.platform == "win32" else ":"
    for data in settings.data:
        cmd += ["--add-data", data if sep in data else f"{data}{sep}{data}"]
    cmd.append(settings.pyinstaller_entry)
    return cmd


def _build_python(
    plan: PackagePlan,
    settings: PythonSettings,
    project_dir: Path,
    target: str,
    env: dict[str, str],
    console: ConsoleProtocol,
) -> Result[BuiltTarget, BuildError]:
    if settings.uses_pyinstaller:
        cmd = _pyinstaller_cmd(settings)
    else:
        cmd = [sys.executable or "python", "-m", "build"]
    ran = _run(cmd, project_dir, console, env)
    if isinstance(ran, Err):
        return ran
    dist_dir = project_dir / "dist"
    artifacts = tuple(list_dir(dist_dir))
    if not artifacts:
        return Err(NoArtifacts(package=plan.name, target=target, searched=dist_dir))
    return Ok(BuiltTarget(target=target, artifacts=artifacts))


def build_package(
    plan: PackagePlan,
    root: Path,
    version: str,
    *,
    console: ConsoleProtocol | None = None,
) -> Result[list[BuiltTarget], BuildError]:
    """Build every target of one package.

    Args:
        plan: Resolved package plan.
        root: Workspace root; ``plan.path`` is relative to it.
        version: Release version, embedded where the toolchain supports it.
        console: Progress sink.

    Returns:
        Ok(list of BuiltTarget) in target order, or the first BuildError.
    """
    console = console or NullConsole()
    project_dir = root / plan.path
    if not project_dir.is_dir():
        return Err(OutputMissing(path=project_dir))
    env = dict(plan.env)

    outputs: list[BuiltTarget] = []
    for target in plan.targets:
        console.info(f"{plan.name}: building {target}")
        match plan.ecosystem, plan.subconfig:
            case Ecosystem.RUST, _:
                result = _build_rust(plan, project_dir, target, env, console)
            case Ecosystem.GO, _:
                result = _build_go(plan, project_dir, target, version, env, console)
            case Ecosystem.NODE, NodeSettings() as node:
                result = _build_node(plan, node, project_dir, target, env, console)
            case Ecosystem.PYTHON, PythonSettings() as python:
                result = _build_python(plan, python, project_dir, target, env, console)
            case _:
                raise ValueError(f"no builder for {plan.ecosystem} package {plan.name}")
        if isinstance(result, Err):
            return result
        outputs.append(result.value)
    return Ok(outputs)
