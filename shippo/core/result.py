"""Explicit success / failure values.

Every fallible operation in shippo returns ``Result[T, E]`` instead of
raising. Callers branch on the variant:

    match load_config(path):
        case Ok(config):
            ...
        case Err(error):
            console.error(error.message)

or, when only the failure matters, return it unchanged:

    result = build_plan(config, vcs)
    if isinstance(result, Err):
        return result
    plan = result.value
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["Ok", "Err", "Result"]


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
