"""
Result envelope for per-item outcomes that must not abort a run.

A changelog run touches many small fallible things: one ancestry check per
tag, one parse per log record. Each returns ``Ok[T]`` or ``Err[T]`` so the
caller can filter them in a single pass instead of wrapping the whole batch
in one try/except, where a single bad item would take the rest down with it.

Usage::

    from changelog_spine.result import Ok, Err, partition_results

    checks = [vcs.is_ancestor(tag, "HEAD") for tag in tags]
    ancestors = [t for t, r in zip(tags, checks) if r.unwrap_or(False)]
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome holding ``value``."""

    value: T

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def inspect_err(self, f: Callable[[Exception], None]) -> Result[T]:
        """No-op for Ok."""
        return self

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed outcome holding the ``error`` that caused it."""

    error: Exception

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the error. Use only when you're sure it's Ok."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def inspect_err(self, f: Callable[[Exception], None]) -> Result[T]:
        """Call f with the error for side effects (logging), return self."""
        f(self.error)
        return self

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Union[Ok[T], Err[T]]


def partition_results(results: Iterable[Result[T]]) -> tuple[list[T], list[Exception]]:
    """Split results into (successful values, errors), preserving order."""
    values: list[T] = []
    errors: list[Exception] = []
    for r in results:
        if r.is_err():
            errors.append(r.error)
        else:
            values.append(r.unwrap())
    return values, errors


__all__ = ["Ok", "Err", "Result", "partition_results"]
