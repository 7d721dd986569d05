"""Error types for packaging and verification."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

__all__ = ["PackagingError", "VerificationError"]


@dataclass(frozen=True, slots=True)
class PackagingError:
    """Packaging stopped; files written so far are left in the bundle directory."""

    kind: Literal["io", "unsupported_format", "archive", "duplicate_name"]
    message: str
    path: Path | None = None

    @classmethod
    def from_os_error(cls, action: str, path: Path, error: OSError) -> PackagingError:
        reason = error.strerror or str(error)
        return cls(kind="io", message=f"cannot {action} {path}: {reason}", path=path)


@dataclass(frozen=True, slots=True)
class VerificationError:
    """A bundle file recorded in the manifest is missing or was modified."""

    kind: Literal["manifest_unreadable", "missing", "mismatch", "missing_signature"]
    filename: str
    message: str
