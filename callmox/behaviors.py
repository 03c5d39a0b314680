"""Behaviour variants a spy can apply when it is called."""

from __future__ import annotations

import dataclasses as dc
import typing as t


@dc.dataclass(frozen=True, slots=True)
class CallThrough:
    """Delegate to the original implementation."""


@dc.dataclass(frozen=True, slots=True)
class ReturnValue:
    """Return ``value`` verbatim."""

    value: object = None


@dc.dataclass(frozen=True, slots=True)
class ReturnValues:
    """Return ``values`` one per call, repeating the last once exhausted."""

    values: tuple[object, ...] = ()

    def at(self, cursor: int) -> object:
        """Return the value for *cursor*, clamped to the final entry."""
        if not self.values:
            return None
        return self.values[min(cursor, len(self.values) - 1)]


@dc.dataclass(frozen=True, slots=True)
class ThrowError:
    """Raise ``error``."""

    error: BaseException


@dc.dataclass(frozen=True, slots=True)
class CallFake:
    """Run ``fn`` in place of the original."""

    fn: t.Callable[..., object]


@dc.dataclass(frozen=True, slots=True)
class ResolvedValue:
    """Return a deferred result that succeeds with ``value``."""

    value: object = None


@dc.dataclass(frozen=True, slots=True)
class RejectedValue:
    """Return a deferred result that fails with ``error``."""

    error: BaseException


Behavior: t.TypeAlias = (
    CallThrough
    | ReturnValue
    | ReturnValues
    | ThrowError
    | CallFake
    | ResolvedValue
    | RejectedValue
)
OnceBehavior: t.TypeAlias = ReturnValue | ResolvedValue | RejectedValue | CallFake

CALL_THROUGH: t.Final = CallThrough()


def coerce_error(error: object) -> BaseException:
    """Return an exception instance for *error*.

    Exception classes are instantiated without arguments so callers can write
    ``throw_error(KeyError)`` the way they would write ``raise KeyError``.
    """
    if isinstance(error, BaseException):
        return error
    if isinstance(error, type) and issubclass(error, BaseException):
        return error()
    msg = f"error must be an exception instance or class, got {type(error).__name__}"
    raise TypeError(msg)


def require_callable(fn: object) -> t.Callable[..., object]:
    """Ensure *fn* can serve as a fake implementation."""
    if not callable(fn):
        msg = f"fake implementation must be callable, got {type(fn).__name__}"
        raise TypeError(msg)
    return fn


__all__ = [
    "CALL_THROUGH",
    "Behavior",
    "CallFake",
    "CallThrough",
    "OnceBehavior",
    "RejectedValue",
    "ResolvedValue",
    "ReturnValue",
    "ReturnValues",
    "ThrowError",
    "coerce_error",
    "require_callable",
]
