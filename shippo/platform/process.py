"""Subprocess execution returning Result values.

Every external program shippo drives (git, toolchains, signers, version
probes) goes through ``run`` or ``run_streaming``:

    match run(["go", "version"], cwd=root, timeout=30.0):
        case Ok(stdout):
            ...
        case Err(error) if error.not_found:
            ...

Builds and signers run without a timeout; a hung toolchain hangs the
foreground run until the operator interrupts it.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from shippo.core.result import Err, Ok, Result

__all__ = ["NOT_STARTED", "TIMED_OUT", "ProcessError", "run", "run_streaming", "which"]

# Sentinel return codes for processes that never produced an exit status.
NOT_STARTED = -1
TIMED_OUT = -2


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command could not be started, timed out, or exited non-zero.

    ``stderr`` holds the OS error text when the command never started.
    Streaming runs capture nothing, so both streams are empty for them.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        shown = " ".join(self.command[:3]) + (" ..." if len(self.command) > 3 else "")
        return f"{shown} failed (exit {self.returncode})"

    @property
    def not_found(self) -> bool:
        return self.returncode == NOT_STARTED

    @property
    def timed_out(self) -> bool:
        return self.returncode == TIMED_OUT


def _execute(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None,
    *,
    capture: bool,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    command = tuple(cmd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env={**os.environ, **env} if env is not None else None,
            capture_output=capture,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return Err(ProcessError(command, TIMED_OUT, "", f"Command timed out after {timeout}s"))
    except OSError as e:
        return Err(ProcessError(command, NOT_STARTED, "", str(e)))

    stdout = proc.stdout or ""
    if proc.returncode != 0:
        return Err(ProcessError(command, proc.returncode, stdout, proc.stderr or ""))
    return Ok(stdout)


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run a command and capture its output.

    Args:
        cmd: Command and arguments.
        cwd: Working directory.
        env: Extra variables layered over the current environment.
        timeout: Seconds to wait, or None to wait indefinitely.

    Returns:
        Ok(stdout) on exit code 0, Err(ProcessError) otherwise.
    """
    return _execute(cmd, cwd, env, capture=True, timeout=timeout)


def run_streaming(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
) -> Result[None, ProcessError]:
    """Run a toolchain command with its output going straight to the terminal."""
    result = _execute(cmd, cwd, env, capture=False)
    if isinstance(result, Err):
        return result
    return Ok(None)


def which(name: str) -> Path | None:
    found = shutil.which(name)
    return Path(found) if found else None
