"""Describe the build host for the manifest's ``build_env`` block.

Operating systems use the spellings ``linux``, ``macos`` and ``windows``.
Architectures are normalised to ``x86_64``, ``aarch64``, ``x86`` or ``arm``;
anything else is recorded as the lowercase machine name.
"""

from __future__ import annotations

import os
import platform
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache

__all__ = [
    "HostInfo",
    "HostOS",
    "detect_host",
    "host_arch",
    "host_os",
    "is_ci",
]


class HostOS(StrEnum):
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"
    UNKNOWN = "unknown"


_OS_PREFIXES: tuple[tuple[str, HostOS], ...] = (
    ("linux", HostOS.LINUX),
    ("darwin", HostOS.MACOS),
    ("win32", HostOS.WINDOWS),
    ("cygwin", HostOS.WINDOWS),
    ("msys", HostOS.WINDOWS),
)

_ARCH_ALIASES: dict[str, str] = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
    "armv7l": "arm",
    "armv6l": "arm",
}


@dataclass(frozen=True, slots=True)
class HostInfo:
    os: HostOS
    arch: str

    def __str__(self) -> str:
        return f"{self.os}-{self.arch}"


def host_os(sys_platform: str | None = None) -> HostOS:
    # sys.platform rather than platform.system(): the latter may query WMI on Windows.
    name = (sys_platform if sys_platform is not None else sys.platform).lower()
    for prefix, host in _OS_PREFIXES:
        if name.startswith(prefix):
            return host
    return HostOS.UNKNOWN


def host_arch(machine: str | None = None) -> str:
    """Normalised CPU architecture of ``machine`` (default: this host)."""
    if machine is None:
        machine = platform.machine()
        if not machine and host_os() is HostOS.WINDOWS:
            machine = os.environ.get("PROCESSOR_ARCHITEW6432") or os.environ.get(
                "PROCESSOR_ARCHITECTURE", ""
            )
    raw = machine.strip().lower()
    return _ARCH_ALIASES.get(raw, raw or "unknown")


@lru_cache(maxsize=1)
def detect_host() -> HostInfo:
    """Describe the running host (cached for the process)."""
    return HostInfo(os=host_os(), arch=host_arch())


def is_ci(environ: Mapping[str, str] | None = None) -> bool:
    """True when ``CI`` is set, to any value."""
    env = os.environ if environ is None else environ
    return "CI" in env
