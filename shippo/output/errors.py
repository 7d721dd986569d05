"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from shippo.core.config import ConfigError
from shippo.core.errors import ErrorCode
from shippo.core.plan import PlanError
from shippo.output.console import Style
from shippo.pack.errors import PackagingError, VerificationError
from shippo.services.build_errors import (
    BuildError,
    CommandFailed,
    NoArtifacts,
    OutputMissing,
    ToolMissing,
)
from shippo.services.publish import PublishError

if TYPE_CHECKING:
    from shippo.output.console import ConsoleProtocol

__all__ = [
    "build_error_exit_code",
    "print_build_error",
    "print_config_error",
    "print_packaging_error",
    "print_plan_error",
    "print_publish_error",
    "print_verification_error",
    "publish_error_exit_code",
]


def _hint(hint: str | None, console: ConsoleProtocol) -> None:
    if hint:
        console.print(f"hint: {hint}", Style.DIM)


def print_config_error(error: ConfigError, console: ConsoleProtocol) -> None:
    where = f" ({error.path})" if error.path else ""
    console.error(f"invalid config{where}: {error.message}")


def print_plan_error(error: PlanError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    _hint(error.hint, console)


def print_build_error(error: BuildError, console: ConsoleProtocol) -> None:
    """Print build error to console with appropriate formatting."""
    match error:
        case ToolMissing(tool_id=tool_id, hint=hint):
            console.error(f"{tool_id}: missing")
            _hint(hint, console)
        case CommandFailed(command=command, returncode=rc):
            console.error(f"{' '.join(command)} failed (exit {rc})")
        case OutputMissing(path=path):
            console.error(f"output not found: {path}")
        case NoArtifacts(package=package, target=target, searched=searched):
            console.error(f"{package} ({target}): build produced no artifacts")
            console.print(f"searched: {searched}", Style.DIM)


def build_error_exit_code(error: BuildError) -> int:
    """Get exit code for a build error."""
    match error:
        case ToolMissing():
            return int(ErrorCode.ENV_ERROR)
        case CommandFailed() | NoArtifacts():
            return int(ErrorCode.BUILD_ERROR)
        case OutputMissing():
            return int(ErrorCode.IO_ERROR)


def print_packaging_error(error: PackagingError, console: ConsoleProtocol) -> None:
    console.error(f"packaging failed: {error.message}")
    match error.kind:
        case "io":
            console.print("files written before the failure were left in place", Style.DIM)
        case "duplicate_name":
            _hint("Put {target} in [package] name_template so targets get distinct files", console)
        case _:
            pass


def print_verification_error(error: VerificationError, console: ConsoleProtocol) -> None:
    console.error(f"verification failed: {error.message}")


def print_publish_error(error: PublishError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    _hint(error.hint, console)


def publish_error_exit_code(error: PublishError) -> int:
    match error.kind:
        case "not_configured":
            return int(ErrorCode.USER_ERROR)
        case "token_missing":
            return int(ErrorCode.ENV_ERROR)
        case "network":
            return int(ErrorCode.NETWORK_ERROR)
        case "io":
            return int(ErrorCode.IO_ERROR)
