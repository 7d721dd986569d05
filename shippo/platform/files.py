"""Filesystem helpers shared by the builders, the packager and the publisher."""

from __future__ import annotations

import hashlib
import os
import sys
import tempfile
from collections.abc import Callable
from pathlib import Path

__all__ = ["atomic_write_text", "is_executable", "list_dir", "sha256_file"]

_CHUNK = 1024 * 1024


def sha256_file(path: Path) -> str:
    """Hex SHA-256 of a file's content, read in 1 MiB chunks."""
    digest = hashlib.sha256()
    with path.open("rb") as f:
        while chunk := f.read(_CHUNK):
            digest.update(chunk)
    return digest.hexdigest()


def is_executable(path: Path) -> bool:
    """Regular file the OS would run: the exec bit, or ``.exe`` on Windows."""
    if not path.is_file():
        return False
    if sys.platform == "win32":
        return path.suffix.lower() == ".exe"
    return os.access(path, os.X_OK)


def list_dir(directory: Path, keep: Callable[[Path], bool] | None = None) -> list[Path]:
    """Sorted entries of ``directory`` accepted by ``keep``; empty if it is missing.

    Raises:
        OSError: The directory exists but cannot be listed.
    """
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if keep is None or keep(p))


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Replace ``path`` with ``content`` so readers never see a partial manifest or ledger."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)
