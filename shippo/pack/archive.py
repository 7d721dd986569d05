"""Archive creation (tar.gz and zip) from builder outputs.

Directories are walked recursively and stored under their own name
(``dist/index.html`` for a ``dist`` directory); single files are stored by
base name. Members are added in sorted order and the gzip header carries no
timestamp, so identical inputs give identical archives.
"""

from __future__ import annotations

import gzip
import tarfile
import zipfile
from collections.abc import Sequence
from pathlib import Path

from shippo.core.result import Err, Ok, Result

from .errors import PackagingError

__all__ = ["SUPPORTED_FORMATS", "collect_members", "create_archive"]

SUPPORTED_FORMATS = ("tar.gz", "zip")


def _selected(arcname: str, include: Sequence[str], exclude: Sequence[str]) -> bool:
    if include and not any(pattern in arcname for pattern in include):
        return False
    return not any(pattern in arcname for pattern in exclude)


def collect_members(
    inputs: Sequence[Path],
    *,
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
) -> Result[list[tuple[Path, str]], PackagingError]:
    """Expand builder outputs into ``(source, arcname)`` pairs.

    ``include`` / ``exclude`` are substring filters on the archive name.
    """
    members: list[tuple[Path, str]] = []
    for src in inputs:
        if src.is_dir():
            for p in sorted(src.rglob("*")):
                if p.is_dir():
                    continue
                arcname = f"{src.name}/{p.relative_to(src).as_posix()}"
                if _selected(arcname, include, exclude):
                    members.append((p, arcname))
        elif src.is_file():
            if _selected(src.name, include, exclude):
                members.append((src, src.name))
        else:
            return Err(
                PackagingError(kind="io", message=f"build output not found: {src}", path=src)
            )
    return Ok(members)


def _normalize(info: tarfile.TarInfo) -> tarfile.TarInfo:
    info.uid = info.gid = 0
    info.uname = info.gname = ""
    return info


def _write_tar_gz(dest: Path, members: list[tuple[Path, str]]) -> None:
    with dest.open("wb") as raw:
        with gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=0) as gz:
            with tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tar:
                for src, arcname in members:
                    tar.add(str(src), arcname=arcname, recursive=False, filter=_normalize)


def _write_zip(dest: Path, members: list[tuple[Path, str]]) -> None:
    # Build outputs may carry mtime=0; ZIP cannot represent dates before 1980.
    with zipfile.ZipFile(
        dest, "w", compression=zipfile.ZIP_DEFLATED, strict_timestamps=False
    ) as zf:
        for src, arcname in members:
            zf.write(src, arcname=arcname)


def create_archive(
    dest: Path,
    fmt: str,
    inputs: Sequence[Path],
    *,
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
) -> Result[Path, PackagingError]:
    """Write ``inputs`` into a ``fmt`` archive at ``dest``.

    Returns:
        Ok(dest), or Err(PackagingError) for an unsupported format, a missing
        input or a write failure.
    """
    if fmt not in SUPPORTED_FORMATS:
        return Err(
            PackagingError(
                kind="unsupported_format",
                message=(
                    f"unsupported package format '{fmt}' "
                    f"(expected one of: {', '.join(SUPPORTED_FORMATS)})"
                ),
            )
        )

    collected = collect_members(inputs, include=include, exclude=exclude)
    if isinstance(collected, Err):
        return collected

    try:
        if fmt == "zip":
            _write_zip(dest, collected.value)
        else:
            _write_tar_gz(dest, collected.value)
    except (tarfile.TarError, zipfile.BadZipFile) as e:
        return Err(PackagingError(kind="archive", message=f"cannot write {dest}: {e}", path=dest))
    except OSError as e:
        return Err(PackagingError.from_os_error("write archive", dest, e))
    return Ok(dest)
