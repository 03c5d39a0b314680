"""Spies with one-time behaviours and deferred (awaitable) results."""

from __future__ import annotations

import logging
import typing as t
from collections import deque

from .behaviors import (
    CALL_THROUGH,
    CallFake,
    OnceBehavior,
    RejectedValue,
    ResolvedValue,
    ReturnValue,
    coerce_error,
    require_callable,
)
from .errors import SpyUsageError
from .integration import is_spy
from .members import MemberSnapshot
from .spy import BoundSpy, SpiedProperty, Spy, _capture_callable, _noop

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .registry import SpyRegistry
    from .spy import Outcome, _Call

logger = logging.getLogger(__name__)


class AsyncSpy(Spy[t.Any]):
    """Spy with a queue of one-time behaviours and awaitable results.

    Queued behaviours are consumed first-in first-out, one per call, before
    the default behaviour applies. Setting a value-producing default
    (:meth:`return_value`, :meth:`return_values`, :meth:`resolved_value`,
    :meth:`rejected_value`) locks the spy: behaviours already queued are still
    honoured, but further ``*_once`` calls are ignored until the spy is
    unlocked by :meth:`call_through`, :meth:`throw_error`, :meth:`call_fake`
    or one of the clear methods.
    """

    def __init__(
        self,
        original: t.Callable[..., t.Any],
        *,
        name: str = "async_spy",
        snapshot: MemberSnapshot | None = None,
        binds: bool = False,
        registry: SpyRegistry | None = None,
    ) -> None:
        super().__init__(
            original, name=name, snapshot=snapshot, binds=binds, registry=registry
        )
        self._queue: deque[OnceBehavior] = deque()
        self._locked = False

    @property
    def queued(self) -> tuple[OnceBehavior, ...]:
        """Return the pending one-time behaviours in consumption order."""
        return tuple(self._queue)

    @property
    def locked(self) -> bool:
        """Return ``True`` while one-time behaviours are being ignored."""
        return self._locked

    def _respond(self, call: _Call) -> Outcome:
        if self._queue:
            return self._apply(self._queue.popleft(), call)
        return self._apply(self.behavior, call)

    def _enqueue(self, *items: OnceBehavior) -> t.Self:
        if self._locked:
            logger.debug(
                "Ignoring %d one-time behaviours for locked %r", len(items), self
            )
            return self
        self._queue.extend(items)
        return self

    def _unlock(self) -> None:
        self._queue.clear()
        self._locked = False

    # ------------------------------------------------------------------
    # One-time behaviours
    # ------------------------------------------------------------------
    def return_value_once(self, value: object) -> t.Self:
        """Return *value* from the next unanswered call."""
        return self._enqueue(ReturnValue(value))

    def return_values_once(self, *values: object) -> t.Self:
        """Return each of *values* from one upcoming call, in order."""
        return self._enqueue(*(ReturnValue(value) for value in values))

    def resolved_value_once(self, value: object) -> t.Self:
        """Answer the next call with a deferred result resolving to *value*."""
        return self._enqueue(ResolvedValue(value))

    def resolved_values(self, *values: object) -> t.Self:
        """Queue one resolved deferred result per value."""
        return self._enqueue(*(ResolvedValue(value) for value in values))

    def rejected_value_once(
        self, error: BaseException | type[BaseException]
    ) -> t.Self:
        """Answer the next call with a deferred result rejected with *error*."""
        return self._enqueue(RejectedValue(coerce_error(error)))

    def rejected_values(
        self, *errors: BaseException | type[BaseException]
    ) -> t.Self:
        """Queue one rejected deferred result per error."""
        return self._enqueue(
            *(RejectedValue(coerce_error(error)) for error in errors)
        )

    def call_fake_once(self, fn: t.Callable[..., object]) -> t.Self:
        """Run *fn* in place of the original for the next call only."""
        return self._enqueue(CallFake(require_callable(fn)))

    # ------------------------------------------------------------------
    # Defaults that clear the queue and unlock
    # ------------------------------------------------------------------
    def call_through(self) -> t.Self:
        """Delegate to the original; drop queued behaviours and unlock."""
        super().call_through()
        self._unlock()
        return self

    def throw_error(self, error: BaseException | type[BaseException]) -> t.Self:
        """Raise *error*; drop queued behaviours and unlock."""
        super().throw_error(error)
        self._unlock()
        return self

    def call_fake(self, fn: t.Callable[..., object]) -> t.Self:
        """Run *fn* in place of the original; drop queued behaviours and unlock."""
        super().call_fake(fn)
        self._unlock()
        return self

    # ------------------------------------------------------------------
    # Defaults that keep the queue and lock
    # ------------------------------------------------------------------
    def return_value(self, value: object) -> t.Self:
        """Return *value* once the queue is drained and lock the spy."""
        super().return_value(value)
        self._locked = True
        return self

    def return_values(self, *values: object) -> t.Self:
        """Return *values* in turn once the queue is drained and lock the spy."""
        super().return_values(*values)
        self._locked = True
        return self

    def resolved_value(self, value: object) -> t.Self:
        """Answer with deferred results resolving to *value* and lock the spy."""
        self.behavior = ResolvedValue(value)
        self._locked = True
        return self

    def rejected_value(self, error: BaseException | type[BaseException]) -> t.Self:
        """Answer with deferred results rejected with *error* and lock the spy."""
        self.behavior = RejectedValue(coerce_error(error))
        self._locked = True
        return self

    # ------------------------------------------------------------------
    # Clearing
    # ------------------------------------------------------------------
    def clear_calls(self) -> t.Self:
        """Forget recorded calls, keeping the configured behaviours."""
        self.calls.clear()
        return self

    def clear_return_values(self) -> t.Self:
        """Drop queued behaviours, fall back to calling through, and unlock."""
        self.behavior = CALL_THROUGH
        self._cursor = 0
        self._unlock()
        return self

    def clear_all(self) -> t.Self:
        """Apply both :meth:`clear_calls` and :meth:`clear_return_values`."""
        return self.clear_calls().clear_return_values()


def create_async_spy(
    name: str = "async_spy", original: t.Callable[..., t.Any] | None = None
) -> AsyncSpy:
    """Return a standalone :class:`AsyncSpy`."""
    return AsyncSpy(original if original is not None else _noop, name=name)


def _restore_existing(owner: object, name: str) -> None:
    existing = MemberSnapshot.capture(owner, name).value
    if isinstance(existing, SpiedProperty):
        existing.handle.restore()
    elif is_spy(existing):
        t.cast("Spy[t.Any]", existing).restore()


def spy_on_async(
    owner: object, name: str, *, registry: SpyRegistry | None = None
) -> AsyncSpy:
    """Replace ``owner.name`` with an :class:`AsyncSpy`.

    A spy already installed on the member is restored first.
    """
    _restore_existing(owner, name)
    snapshot, original = _capture_callable(owner, name)
    if snapshot.is_property:
        msg = f"Property {name!r} cannot be replaced by an async spy"
        raise SpyUsageError(msg)
    spy = AsyncSpy(
        t.cast("t.Callable[..., t.Any]", original),
        name=name,
        snapshot=snapshot,
        binds=snapshot.binds,
        registry=registry,
    )
    spy._install()
    return spy


def enhance_spy(spy: Spy[t.Any] | BoundSpy) -> AsyncSpy:
    """Return an :class:`AsyncSpy` that takes over *spy*.

    The new spy shares the recorded calls, original and default behaviour of
    *spy* and replaces it on its owner. Async spies are returned unchanged.
    """
    if isinstance(spy, BoundSpy):
        spy = spy.spy
    if isinstance(spy, AsyncSpy):
        return spy
    if not isinstance(spy, Spy):
        msg = f"enhance_spy() expects a Spy, got {type(spy).__name__}"
        raise TypeError(msg)
    return spy._succeed_as(AsyncSpy)


__all__ = ["AsyncSpy", "create_async_spy", "enhance_spy", "spy_on_async"]
