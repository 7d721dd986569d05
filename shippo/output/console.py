"""Console output abstraction.

Builders, the packager and the publisher report progress through
``ConsoleProtocol`` instead of printing. The CLI renders with Rich; tests
capture records with ``MockConsole``; library callers that pass nothing get
``NullConsole``. Each leveled line is prefixed with its label from
``LEVELS`` (``error:``, ``warning:`` ...). ``debug`` lines are shown only in
verbose mode, and errors and warnings go to stderr.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "LEVELS",
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "NullConsole",
]


class Style(Enum):
    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DEBUG = auto()
    DIM = auto()
    BOLD = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


# level -> (label, style)
LEVELS: dict[str, tuple[str, Style]] = {
    "success": ("OK", Style.SUCCESS),
    "error": ("error:", Style.ERROR),
    "warning": ("warning:", Style.WARNING),
    "info": ("info:", Style.INFO),
    "debug": ("debug:", Style.DEBUG),
}

_RICH_STYLES: dict[Style, str] = {
    Style.DEFAULT: "",
    Style.SUCCESS: "green",
    Style.ERROR: "red bold",
    Style.WARNING: "yellow",
    Style.INFO: "cyan",
    Style.DEBUG: "dim",
    Style.DIM: "dim",
    Style.BOLD: "bold",
    Style.HEADER: "blue bold",
}

_STDERR_STYLES = frozenset({Style.ERROR, Style.WARNING})


class ConsoleProtocol(Protocol):
    """Styled, leveled output sink."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def debug(self, message: str) -> None:
        """Print a diagnostic line; dropped unless verbose."""
        ...

    def header(self, message: str) -> None: ...

    def newline(self) -> None: ...


class RichConsole:
    def __init__(self, *, verbose: bool = False) -> None:
        from rich.console import Console

        self.verbose = verbose
        self._out = Console(highlight=False)
        self._err = Console(stderr=True, highlight=False)

    def _leveled(self, level: str, message: str) -> None:
        from rich.text import Text

        label, style = LEVELS[level]
        line = Text.assemble((label, _RICH_STYLES[style]), " ", message)
        if style is Style.DEBUG:
            line.stylize("dim")
        (self._err if style in _STDERR_STYLES else self._out).print(line)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._out.print(message, style=_RICH_STYLES[style] or None, markup=False)

    def success(self, message: str) -> None:
        self._leveled("success", message)

    def error(self, message: str) -> None:
        self._leveled("error", message)

    def warning(self, message: str) -> None:
        self._leveled("warning", message)

    def info(self, message: str) -> None:
        self._leveled("info", message)

    def debug(self, message: str) -> None:
        if self.verbose:
            self._leveled("debug", message)

    def header(self, message: str) -> None:
        self._out.print()
        self.print(message, Style.HEADER)

    def newline(self) -> None:
        self._out.print()


@dataclass
class OutputRecord:
    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Records every line, debug included, for assertions in tests."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def _leveled(self, level: str, message: str) -> None:
        label, style = LEVELS[level]
        self.outputs.append(OutputRecord(f"{label} {message}", style))

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self._leveled("success", message)

    def error(self, message: str) -> None:
        self._leveled("error", message)

    def warning(self, message: str) -> None:
        self._leveled("warning", message)

    def info(self, message: str) -> None:
        self._leveled("info", message)

    def debug(self, message: str) -> None:
        self._leveled("debug", message)

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return self.count(Style.ERROR) > 0

    def has_warning(self) -> bool:
        return self.count(Style.WARNING) > 0

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]

    def count(self, style: Style) -> int:
        return sum(1 for o in self.outputs if o.style == style)


class NullConsole:
    """Discards everything."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def debug(self, message: str) -> None:
        pass

    def header(self, message: str) -> None:
        pass

    def newline(self) -> None:
        pass
