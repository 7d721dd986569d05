"""Narrow untyped TOML / JSON data into typed values.

``.shippo.toml`` and ``manifest.json`` both arrive as plain dicts. The
getters below return ``None`` for a missing key and raise ``TypeError`` for a
present key of the wrong type, so ``targets = "x"`` is reported instead of
being ignored. Parsers catch both errors at their boundary and turn them
into ``ConfigError`` / ``VerificationError`` values.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TypeGuard, cast

__all__ = [
    "StrDict",
    "as_str_dict",
    "get_bool",
    "get_int",
    "get_str",
    "get_str_list",
    "get_str_map",
    "get_table",
    "get_table_list",
    "require_str",
]

StrDict = dict[str, object]


def _is_str_dict(obj: object) -> TypeGuard[StrDict]:
    return isinstance(obj, dict) and all(
        isinstance(k, str) for k in cast(dict[object, object], obj)
    )


def as_str_dict(obj: object) -> StrDict | None:
    return obj if _is_str_dict(obj) else None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Stripped string value; missing or blank yields None."""
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string")
    return value.strip() or None


def require_str(table: Mapping[str, object], key: str, where: str) -> str:
    """Like ``get_str``, but a missing or blank value raises ``ValueError``."""
    value = get_str(table, key)
    if value is None:
        raise ValueError(f"{where}.{key} is required")
    return value


def get_bool(table: Mapping[str, object], key: str) -> bool | None:
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise TypeError(f"'{key}' must be a boolean")
    return value


def get_int(table: Mapping[str, object], key: str) -> int | None:
    value = table.get(key)
    if value is None:
        return None
    # bool is an int subclass; ``bytes = true`` is still a type error.
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"'{key}' must be an integer")
    return value


def get_str_list(table: Mapping[str, object], key: str) -> list[str] | None:
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise TypeError(f"'{key}' must be a list of strings")
    items = cast(list[object], value)
    if not all(isinstance(v, str) for v in items):
        raise TypeError(f"'{key}' must be a list of strings")
    return [cast(str, v) for v in items]


def get_str_map(table: Mapping[str, object], key: str) -> dict[str, str] | None:
    value = table.get(key)
    if value is None:
        return None
    d = as_str_dict(value)
    if d is None or not all(isinstance(v, str) for v in d.values()):
        raise TypeError(f"'{key}' must be a table of strings")
    return {k: cast(str, v) for k, v in d.items()}


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    value = table.get(key)
    if value is None:
        return None
    d = as_str_dict(value)
    if d is None:
        raise TypeError(f"'{key}' must be a table")
    return d


def get_table_list(table: Mapping[str, object], key: str) -> list[StrDict] | None:
    """Array of tables: TOML ``[[key]]`` or a JSON list of objects."""
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise TypeError(f"'{key}' must be an array of tables")
    out: list[StrDict] = []
    for item in cast(list[object], value):
        d = as_str_dict(item)
        if d is None:
            raise TypeError(f"'{key}' entries must be tables")
        out.append(d)
    return out
