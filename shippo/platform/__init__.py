"""Platform abstraction layer."""

from .detection import HostInfo, HostOS, detect_host, is_ci
from .files import atomic_write_text, is_executable, list_dir, sha256_file
from .process import ProcessError, run, run_streaming, which

__all__ = [
    # detection
    "HostInfo",
    "HostOS",
    "detect_host",
    "is_ci",
    # files
    "atomic_write_text",
    "is_executable",
    "list_dir",
    "sha256_file",
    # process
    "ProcessError",
    "run",
    "run_streaming",
    "which",
]
