"""Best-effort toolchain version probes for the manifest."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from shippo.core.result import Err
from shippo.platform.process import run as run_process

from .manifest import ToolingInfo

__all__ = ["PROBES", "StaticToolProbe", "SubprocessToolProbe", "ToolProbe", "detect_tooling"]

PROBES: Mapping[str, tuple[str, ...]] = {
    "rust": ("rustc", "--version"),
    "go": ("go", "version"),
    "node": ("node", "--version"),
    "python": ("python", "--version"),
}


class ToolProbe(Protocol):
    def version(self, command: tuple[str, ...]) -> str | None: ...


class SubprocessToolProbe:
    """Runs the probe command; any failure means "unavailable"."""

    def __init__(self, cwd: Path | None = None) -> None:
        self.cwd = cwd or Path.cwd()

    def version(self, command: tuple[str, ...]) -> str | None:
        result = run_process(list(command), cwd=self.cwd, timeout=30.0)
        if isinstance(result, Err):
            return None
        return result.value.strip() or None


def _no_versions() -> dict[str, str]:
    return {}


@dataclass
class StaticToolProbe:
    """Answers from a ``{program: version}`` table (tests, offline runs)."""

    versions: dict[str, str] = field(default_factory=_no_versions)

    def version(self, command: tuple[str, ...]) -> str | None:
        return self.versions.get(command[0])


def detect_tooling(probe: ToolProbe) -> ToolingInfo:
    return ToolingInfo(
        rust=probe.version(PROBES["rust"]),
        go=probe.version(PROBES["go"]),
        node=probe.version(PROBES["node"]),
        python=probe.version(PROBES["python"]),
    )
