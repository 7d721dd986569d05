"""Tests for shippo.output.console module."""

from __future__ import annotations

import pytest

from shippo.output.console import MockConsole, NullConsole, RichConsole, Style


class TestMockConsole:
    def test_records_styles(self) -> None:
        console = MockConsole()
        console.success("done")
        console.warning("careful")
        console.error("broken")
        console.debug("detail")

        assert console.messages == [
            "OK done",
            "warning: careful",
            "error: broken",
            "debug: detail",
        ]
        assert console.has_error()
        assert console.has_warning()
        assert console.count(Style.DEBUG) == 1

    def test_find(self) -> None:
        console = MockConsole()
        console.print("archiving app.tar.gz")
        console.print("archiving app.zip")

        assert len(console.find("archiving")) == 2
        assert console.find("sbom") == []


class TestRichConsole:
    def test_debug_hidden_unless_verbose(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().debug("hidden")
        RichConsole(verbose=True).debug("shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "shown" in out

    def test_errors_go_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().error("bad [thing]")

        captured = capsys.readouterr()
        assert "bad [thing]" in captured.err
        assert captured.out == ""


def test_null_console_accepts_everything() -> None:
    console = NullConsole()
    console.print("x", Style.BOLD)
    console.header("x")
    console.newline()
