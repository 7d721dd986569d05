from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ToolMissing:
    tool_id: str
    hint: str


@dataclass(frozen=True, slots=True)
class CommandFailed:
    command: tuple[str, ...]
    returncode: int


@dataclass(frozen=True, slots=True)
class OutputMissing:
    path: Path


@dataclass(frozen=True, slots=True)
class NoArtifacts:
    package: str
    target: str
    searched: Path


BuildError = ToolMissing | CommandFailed | OutputMissing | NoArtifacts
