"""Process exit codes.

Each error family maps onto one code, so scripts and CI jobs can tell a bad
config apart from a failed build or a tampered bundle. The values are part
of the command-line contract.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1  # invalid config, unknown package, bad arguments
    ENV_ERROR = 2  # missing toolchain or token
    BUILD_ERROR = 3  # a native toolchain failed
    NETWORK_ERROR = 4  # release API unreachable or rejected the request
    IO_ERROR = 5  # bundle directory or archive could not be written
    VERIFY_ERROR = 6  # bundle file missing or modified
