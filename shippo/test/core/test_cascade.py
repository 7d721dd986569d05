"""Tests for shippo.core.cascade module."""

from __future__ import annotations

from shippo.core.cascade import DEFAULT_TARGETS, cascade


class TestCascade:
    """Package level > global level > default."""

    def test_package_wins(self) -> None:
        assert cascade(("a",), ("b",), DEFAULT_TARGETS) == ("a",)

    def test_global_when_package_unset(self) -> None:
        assert cascade(None, ("b",), DEFAULT_TARGETS) == ("b",)

    def test_default_when_both_unset(self) -> None:
        assert cascade(None, None, DEFAULT_TARGETS) == ("native",)

    def test_falsy_values_count_as_set(self) -> None:
        assert cascade(False, True, True) is False
        assert cascade((), ("b",), ("c",)) == ()
        assert cascade(None, "", "x") == ""
