"""Plain-text checksum ledger (``SHA256SUMS``).

One ``<sha256>  <filename>`` line per bundle file, in the exact order the
files were produced. The format is the one ``sha256sum -c`` reads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from shippo.platform.files import atomic_write_text

__all__ = ["LEDGER_NAME", "ChecksumLedger"]

LEDGER_NAME = "SHA256SUMS"


def _no_entries() -> list[tuple[str, str]]:
    return []


@dataclass
class ChecksumLedger:
    """Append-only list of ``(sha256, filename)`` pairs."""

    entries: list[tuple[str, str]] = field(default_factory=_no_entries)

    def add(self, sha256: str, filename: str) -> None:
        self.entries.append((sha256, filename))

    def render(self) -> str:
        return "".join(f"{sha}  {name}\n" for sha, name in self.entries)

    def write(self, bundle_dir: Path) -> Path:
        """Flush the ledger into the bundle directory.

        Raises:
            OSError: The file could not be written.
        """
        path = bundle_dir / LEDGER_NAME
        atomic_write_text(path, self.render())
        return path

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, filename: object) -> bool:
        return any(name == filename for _, name in self.entries)
