"""Hooks connecting spies to external assertion layers.

Assertion libraries only need :func:`is_spy`, :func:`get_call_count` and
:func:`get_calls` to build matchers on top of spies. Argument comparison in
``called_with`` goes through the equality predicate registered here, which
defaults to :func:`callmox.comparators.match`.
"""

from __future__ import annotations

import typing as t

from .comparators import match

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .records import CallRecord

EqualityPredicate: t.TypeAlias = t.Callable[[object, object], bool]

_equality: EqualityPredicate = match


def set_equality(predicate: EqualityPredicate) -> None:
    """Route argument comparisons through *predicate*."""
    global _equality
    if not callable(predicate):
        msg = "equality predicate must be callable"
        raise TypeError(msg)
    _equality = predicate


def reset_equality() -> None:
    """Restore the default equality predicate."""
    global _equality
    _equality = match


def get_equality() -> EqualityPredicate:
    """Return the active equality predicate."""
    return _equality


def values_equal(expected: object, actual: object) -> bool:
    """Compare *expected* against *actual* with the active predicate."""
    return bool(_equality(expected, actual))


def is_spy(value: object) -> bool:
    """Return ``True`` if *value* is a spy handle."""
    if isinstance(value, type):
        return False
    return getattr(value, "is_spy", False) is True


def get_call_count(value: object) -> int:
    """Return the number of recorded calls, or ``0`` for non-spies."""
    if not is_spy(value):
        return 0
    return t.cast("int", value.call_count)  # type: ignore[attr-defined]


def get_calls(value: object) -> list[CallRecord]:
    """Return the recorded calls of *value*, or an empty list for non-spies."""
    if not is_spy(value):
        return []
    return list(value.calls)  # type: ignore[attr-defined]


__all__ = [
    "EqualityPredicate",
    "get_call_count",
    "get_calls",
    "get_equality",
    "is_spy",
    "reset_equality",
    "set_equality",
    "values_equal",
]
