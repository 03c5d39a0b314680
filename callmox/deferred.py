"""Already-settled awaitables handed out by asynchronous spies."""

from __future__ import annotations

import logging
import typing as t

logger = logging.getLogger(__name__)

T = t.TypeVar("T")


class Deferred(t.Generic[T]):
    """An awaitable whose outcome is fixed when it is created.

    Awaiting a :class:`Deferred` never suspends: it returns the value or raises
    the error straight away. A rejected instance that is garbage-collected
    without anyone looking at its error logs the same diagnostic asyncio emits
    for futures whose exception was never retrieved, unless it was marked as
    observed beforehand.
    """

    __slots__ = ("_error", "_observed", "_value")

    def __init__(
        self, value: T | None = None, error: BaseException | None = None
    ) -> None:
        self._value = value
        self._error = error
        self._observed = error is None

    @classmethod
    def resolved(cls, value: T) -> Deferred[T]:
        """Return a deferred that succeeded with *value*."""
        return cls(value)

    @classmethod
    def rejected(cls, error: BaseException) -> Deferred[t.Any]:
        """Return a deferred that failed with *error*."""
        return cls(error=error)

    @property
    def observed(self) -> bool:
        """Return ``True`` once the outcome has been inspected."""
        return self._observed

    def mark_observed(self) -> None:
        """Suppress the never-retrieved diagnostic for this instance."""
        self._observed = True

    def done(self) -> bool:
        """Return ``True``; a deferred is settled from the start."""
        return True

    def rejected_with(self) -> BaseException | None:
        """Return the rejection payload without marking it observed."""
        return self._error

    def exception(self) -> BaseException | None:
        """Return the rejection payload, or ``None`` if the deferred succeeded."""
        self._observed = True
        return self._error

    def result(self) -> T:
        """Return the value or raise the rejection payload."""
        self._observed = True
        if self._error is not None:
            raise self._error
        return t.cast("T", self._value)

    def __await__(self) -> t.Generator[t.Any, None, T]:
        self._observed = True
        if self._error is not None:
            raise self._error
        return t.cast("T", self._value)
        yield  # pragma: no cover - turns this method into a generator

    def __del__(self) -> None:
        if self._error is not None and not self._observed:
            logger.error(
                "Deferred exception was never retrieved: %r",
                self._error,
            )

    def __repr__(self) -> str:
        """Return a debug representation."""
        if self._error is not None:
            return f"Deferred(rejected={self._error!r})"
        return f"Deferred(resolved={self._value!r})"


__all__ = ["Deferred"]
