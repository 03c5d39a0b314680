"""Spies replacing functions and object members with recording substitutes."""

from __future__ import annotations

import dataclasses as dc
import itertools
import logging
import time
import types
import typing as t

from typing_extensions import TypeVar

from .behaviors import (
    CALL_THROUGH,
    Behavior,
    CallFake,
    CallThrough,
    RejectedValue,
    ResolvedValue,
    ReturnValue,
    ReturnValues,
    ThrowError,
    coerce_error,
    require_callable,
)
from .deferred import Deferred
from .errors import DuplicateSpyError, NotCallableError, SpyUsageError
from .integration import is_spy
from .members import MISSING, MemberSnapshot
from .records import CallRecord, freeze_kwargs
from .registry import SpyRegistry, default_registry
from .verifiers import ArgsMode, CallCountVerifier, CalledWithVerifier, call_matches

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=t.Callable[..., t.Any], default=t.Callable[..., t.Any])

S = t.TypeVar("S", bound="Spy[t.Any]")

Outcome: t.TypeAlias = tuple[object, BaseException | None]

_sequence = itertools.count(1)


def _noop(*args: object, **kwargs: object) -> None:
    """Stand-in original for spies created without one."""


def _bind(fn: t.Callable[..., object], instance: object, owner: type | None) -> t.Any:
    """Bind *fn* the way attribute access on a class would."""
    get = getattr(type(fn), "__get__", None)
    if get is None or (instance is None and owner is None):
        return fn
    return get(fn, instance, owner)


@dc.dataclass(frozen=True, slots=True)
class _Call:
    """Arguments and binding context of one spy invocation."""

    args: tuple[object, ...]
    kwargs: dict[str, object]
    instance: object
    owner: type | None
    binds: bool

    def invoke(self, fn: t.Callable[..., object]) -> object:
        """Call *fn* with these arguments, bound to the instance if needed."""
        target = _bind(fn, self.instance, self.owner) if self.binds else fn
        return target(*self.args, **self.kwargs)


class Spy(t.Generic[F]):
    """Callable substitute that records calls and applies a behaviour.

    A spy starts out calling through to ``original``. Installed on a class it
    acts as a descriptor, so instance access yields a :class:`BoundSpy` that
    passes the instance on to the original and to fake implementations.
    """

    is_spy: t.Final = True

    def __init__(
        self,
        original: F,
        *,
        name: str = "spy",
        snapshot: MemberSnapshot | None = None,
        binds: bool = False,
        registry: SpyRegistry | None = None,
    ) -> None:
        self.original = original
        self.name = name
        self.calls: list[CallRecord] = []
        self.behavior: Behavior = CALL_THROUGH
        self._cursor = 0
        self._snapshot = snapshot
        self._binds = binds
        self._installed = False
        self._registry = registry if registry is not None else default_registry

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    @property
    def owner(self) -> object | None:
        """Return the object the spy is installed on, if any."""
        return None if self._snapshot is None else self._snapshot.owner

    @property
    def installed(self) -> bool:
        """Return ``True`` while the spy replaces a member."""
        return self._installed

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"<{type(self).__name__} {self.name!r} calls={len(self.calls)}>"

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------
    def __call__(self, *args: t.Any, **kwargs: t.Any) -> t.Any:
        owner = self.owner if self._binds else None
        return self._invoke(args, kwargs, None, t.cast("type | None", owner))

    def __get__(self, instance: object, owner: type | None = None) -> t.Any:
        if isinstance(self.original, staticmethod):
            return self
        if instance is None and not isinstance(self.original, classmethod):
            return self
        if owner is None:
            owner = type(instance)
        return BoundSpy(self, instance, owner)

    def _receiver(self, instance: object, owner: type | None) -> object | None:
        if instance is not None:
            return instance
        if isinstance(self.original, classmethod):
            return owner
        snapshot = self._snapshot
        if snapshot is None or snapshot.binds:
            return None
        if isinstance(snapshot.owner, types.ModuleType):
            return None
        return snapshot.owner

    def _invoke(
        self,
        args: tuple[object, ...],
        kwargs: dict[str, object],
        instance: object,
        owner: type | None,
    ) -> t.Any:
        call = _Call(args, kwargs, instance, owner, self._binds)
        receiver = self._receiver(instance, owner)
        stamp = (time.monotonic(), next(_sequence))
        try:
            result, rejection = self._respond(call)
        except BaseException as exc:
            self._record(call, receiver, stamp, error=exc)
            raise
        self._record(call, receiver, stamp, result=result, error=rejection)
        return result

    def _record(
        self,
        call: _Call,
        receiver: object | None,
        stamp: tuple[float, int],
        *,
        result: object = None,
        error: BaseException | None = None,
    ) -> None:
        self.calls.append(
            CallRecord(
                args=call.args,
                kwargs=freeze_kwargs(call.kwargs),
                receiver=receiver,
                return_value=result,
                error=error,
                timestamp=stamp[0],
                sequence=stamp[1],
            )
        )

    def _like_original(self, fn: t.Callable[..., object]) -> t.Any:
        """Wrap *fn* so it binds like the original when accessed on a class."""
        if isinstance(fn, staticmethod | classmethod):
            return fn
        if isinstance(self.original, staticmethod):
            return staticmethod(fn)
        if isinstance(self.original, classmethod):
            return classmethod(fn)
        return fn

    def _respond(self, call: _Call) -> Outcome:
        """Produce the outcome of *call*; subclasses consult extra state."""
        return self._apply(self.behavior, call)

    def _apply(self, behavior: Behavior, call: _Call) -> Outcome:
        match behavior:
            case CallThrough():
                return call.invoke(self.original), None
            case ReturnValue(value=value):
                return value, None
            case ReturnValues() as sequence:
                value = sequence.at(self._cursor)
                if self._cursor < len(sequence.values) - 1:
                    self._cursor += 1
                return value, None
            case ThrowError(error=error):
                raise error
            case CallFake(fn=fn):
                return call.invoke(self._like_original(fn)), None
            case ResolvedValue(value=value):
                return Deferred.resolved(value), None
            case RejectedValue(error=error):
                deferred = Deferred.rejected(error)
                deferred.mark_observed()
                return deferred, error
            case _:  # pragma: no cover - exhaustive
                t.assert_never(behavior)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _install(self) -> None:
        if self._snapshot is None:  # pragma: no cover - standalone spies
            return
        self._snapshot.install(self)
        self._installed = True
        self._registry.add(self)
        logger.debug("Installed spy on %r.%s", self._snapshot.owner, self.name)

    def _succeed_as(self, cls: type[S]) -> S:
        """Return a *cls* spy sharing this spy's calls and taking its place."""
        successor = cls(
            self.original,
            name=self.name,
            snapshot=self._snapshot,
            binds=self._binds,
            registry=self._registry,
        )
        successor.calls = self.calls
        successor.behavior = self.behavior
        successor._cursor = self._cursor
        if self._installed and self._snapshot is not None:
            self._registry.discard(self)
            self._installed = False
            self._snapshot.install(successor)
            successor._installed = True
            self._registry.add(successor)
        return successor

    def restore(self) -> None:
        """Put the original member back and stop tracking this spy."""
        if self._installed and self._snapshot is not None:
            self._snapshot.restore()
            self._installed = False
            logger.debug("Restored %r.%s", self._snapshot.owner, self.name)
        self._registry.discard(self)

    def reset(self) -> None:
        """Forget recorded calls and rewind sequential return values."""
        self.calls.clear()
        self._cursor = 0

    # ------------------------------------------------------------------
    # Behaviour configuration
    # ------------------------------------------------------------------
    def call_through(self) -> t.Self:
        """Delegate calls to the original implementation."""
        self.behavior = CALL_THROUGH
        return self

    def return_value(self, value: object) -> t.Self:
        """Return *value* from every call."""
        self.behavior = ReturnValue(value)
        return self

    def return_values(self, *values: object) -> t.Self:
        """Return *values* in turn, then keep returning the last one."""
        self.behavior = ReturnValues(values)
        self._cursor = 0
        return self

    def throw_error(self, error: BaseException | type[BaseException]) -> t.Self:
        """Raise *error* from every call."""
        self.behavior = ThrowError(coerce_error(error))
        return self

    def call_fake(self, fn: t.Callable[..., object]) -> t.Self:
        """Run *fn* in place of the original."""
        self.behavior = CallFake(require_callable(fn))
        return self

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------
    @property
    def call_count(self) -> int:
        """Return the number of recorded calls."""
        return len(self.calls)

    @property
    def called(self) -> bool:
        """Return ``True`` if the spy was called at least once."""
        return bool(self.calls)

    @property
    def not_called(self) -> bool:
        """Return ``True`` if the spy was never called."""
        return not self.calls

    @property
    def called_once(self) -> bool:
        """Return ``True`` if the spy was called exactly once."""
        return len(self.calls) == 1

    @property
    def called_twice(self) -> bool:
        """Return ``True`` if the spy was called exactly twice."""
        return len(self.calls) == 2

    @property
    def called_thrice(self) -> bool:
        """Return ``True`` if the spy was called exactly three times."""
        return len(self.calls) == 3

    def called_with(self, *args: object, **kwargs: object) -> bool:
        """Return ``True`` if any call was made with these arguments."""
        return any(call_matches(call, args, kwargs) for call in self.calls)

    def never_called_with(self, *args: object, **kwargs: object) -> bool:
        """Return ``True`` if no call was made with these arguments."""
        return not self.called_with(*args, **kwargs)

    def first_call(self) -> CallRecord | None:
        """Return the first recorded call, if any."""
        return self.get_call(0)

    def last_call(self) -> CallRecord | None:
        """Return the most recent recorded call, if any."""
        return self.get_call(len(self.calls) - 1)

    def get_call(self, index: int) -> CallRecord | None:
        """Return the call at *index*; negative or out-of-range gives ``None``."""
        if 0 <= index < len(self.calls):
            return self.calls[index]
        return None

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------
    def assert_called(self) -> None:
        """Fail unless the spy was called."""
        CallCountVerifier(at_least=1).verify(self.name, self.calls)

    def assert_not_called(self) -> None:
        """Fail if the spy was called."""
        CallCountVerifier(exactly=0).verify(self.name, self.calls)

    def assert_called_once(self) -> None:
        """Fail unless the spy was called exactly once."""
        CallCountVerifier(exactly=1).verify(self.name, self.calls)

    def assert_called_times(self, count: int) -> None:
        """Fail unless the spy was called exactly *count* times."""
        CallCountVerifier(exactly=count).verify(self.name, self.calls)

    def assert_called_with(self, *args: object, **kwargs: object) -> None:
        """Fail unless some call used these arguments."""
        CalledWithVerifier(args, kwargs).verify(self.name, self.calls)

    def assert_never_called_with(self, *args: object, **kwargs: object) -> None:
        """Fail if some call used these arguments."""
        CalledWithVerifier(args, kwargs, mode=ArgsMode.NEVER).verify(
            self.name, self.calls
        )

    def assert_last_called_with(self, *args: object, **kwargs: object) -> None:
        """Fail unless the most recent call used these arguments."""
        CalledWithVerifier(args, kwargs, mode=ArgsMode.LAST).verify(
            self.name, self.calls
        )


class BoundSpy:
    """A spy accessed through an instance (or class for classmethods).

    Calls are forwarded to the spy with the instance as receiver; every other
    attribute is looked up on the spy itself.
    """

    __slots__ = ("__self__", "_owner", "_spy")

    is_spy: t.Final = True

    def __init__(self, spy: Spy[t.Any], instance: object, owner: type) -> None:
        self._spy = spy
        self.__self__ = instance
        self._owner = owner

    @property
    def spy(self) -> Spy[t.Any]:
        """Return the underlying spy."""
        return self._spy

    def __call__(self, *args: t.Any, **kwargs: t.Any) -> t.Any:
        return self._spy._invoke(args, kwargs, self.__self__, self._owner)

    def __getattr__(self, name: str) -> t.Any:
        if name == "_spy":
            raise AttributeError(name)
        return getattr(self._spy, name)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BoundSpy):
            return other._spy is self._spy and other.__self__ is self.__self__
        return NotImplemented

    def __hash__(self) -> int:
        return hash((id(self._spy), id(self.__self__)))

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"<bound {self._spy!r} of {self.__self__!r}>"


class SpiedProperty(property):
    """Replacement property routing access through an :class:`AccessorSpy`."""

    handle: AccessorSpy


class AccessorSpy:
    """Spies on both accessors of a property.

    ``get`` and ``set`` are independent spies (``None`` when the property has
    no such accessor). Both record the instance as receiver; the setter
    records the assigned value as its only argument.
    """

    is_spy: t.Final = True

    def __init__(
        self, snapshot: MemberSnapshot, registry: SpyRegistry | None = None
    ) -> None:
        prop = t.cast("property", snapshot.value)
        self.name = snapshot.name
        self._snapshot = snapshot
        self._registry = registry if registry is not None else default_registry
        self._installed = False
        self.get: Spy[t.Any] | None = (
            None
            if prop.fget is None
            else Spy(prop.fget, name=f"{self.name}.get", binds=True, registry=registry)
        )
        self.set: Spy[t.Any] | None = (
            None
            if prop.fset is None
            else Spy(prop.fset, name=f"{self.name}.set", binds=True, registry=registry)
        )

    @property
    def owner(self) -> object:
        """Return the class the property is spied on."""
        return self._snapshot.owner

    @property
    def original(self) -> property:
        """Return the property that was replaced."""
        return t.cast("property", self._snapshot.value)

    @property
    def calls(self) -> list[CallRecord]:
        """Return getter and setter calls in chronological order."""
        records = [
            *(self.get.calls if self.get is not None else ()),
            *(self.set.calls if self.set is not None else ()),
        ]
        return sorted(records, key=lambda record: record.sequence)

    @property
    def call_count(self) -> int:
        """Return the combined number of getter and setter calls."""
        return len(self.calls)

    def _build_property(self) -> SpiedProperty:
        get_spy, set_spy = self.get, self.set

        def fget(instance: object) -> t.Any:
            assert get_spy is not None  # noqa: S101 - only wired when present
            return get_spy._invoke((), {}, instance, type(instance))

        def fset(instance: object, value: object) -> None:
            assert set_spy is not None  # noqa: S101 - only wired when present
            set_spy._invoke((value,), {}, instance, type(instance))

        replacement = SpiedProperty(
            fget if get_spy is not None else None,
            fset if set_spy is not None else None,
            self.original.fdel,
            self.original.__doc__,
        )
        replacement.handle = self
        return replacement

    def _install(self) -> None:
        self._snapshot.install(self._build_property())
        self._installed = True
        self._registry.add(self)
        logger.debug("Installed accessor spy on %r.%s", self.owner, self.name)

    def restore(self) -> None:
        """Put the original property back and stop tracking this spy."""
        if self._installed:
            self._snapshot.restore()
            self._installed = False
            logger.debug("Restored %r.%s", self.owner, self.name)
        self._registry.discard(self)

    def reset(self) -> None:
        """Forget calls recorded by both accessor spies."""
        if self.get is not None:
            self.get.reset()
        if self.set is not None:
            self.set.reset()

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"<AccessorSpy {self.name!r} on {self.owner!r}>"


def _reject_duplicate(snapshot: MemberSnapshot) -> None:
    if isinstance(snapshot.value, SpiedProperty) or is_spy(snapshot.value):
        msg = f"Member {snapshot.name!r} is already a spy. Restore it first."
        raise DuplicateSpyError(msg)
    if snapshot.is_property:
        return
    if is_spy(snapshot.current()):
        msg = f"Member {snapshot.name!r} is already a spy. Restore it first."
        raise DuplicateSpyError(msg)


def _capture_callable(owner: object, name: str) -> tuple[MemberSnapshot, object]:
    """Snapshot ``owner.name`` and return it with the original to spy on."""
    snapshot = MemberSnapshot.capture(owner, name)
    _reject_duplicate(snapshot)
    if snapshot.is_property and not snapshot.binds:
        msg = f"Property {name!r} must be spied on the class that defines it"
        raise SpyUsageError(msg)
    current = MISSING if snapshot.is_property else snapshot.current()
    if not snapshot.is_property and (current is MISSING or not callable(current)):
        msg = f"Member {name!r} is not a function or property"
        raise NotCallableError(msg)
    original = snapshot.value if snapshot.binds else current
    return snapshot, original


def spy_on(
    owner: object, name: str, *, registry: SpyRegistry | None = None
) -> t.Any:
    """Replace ``owner.name`` with a spy and return it.

    Properties defined on a class yield an :class:`AccessorSpy`; callables
    yield a :class:`Spy`. Raises :class:`DuplicateSpyError` when the member is
    already spied on and :class:`NotCallableError` when it cannot be spied on.
    """
    snapshot, original = _capture_callable(owner, name)
    if snapshot.is_property:
        accessor = AccessorSpy(snapshot, registry)
        accessor._install()
        return accessor
    spy: Spy[t.Any] = Spy(
        t.cast("t.Callable[..., t.Any]", original),
        name=name,
        snapshot=snapshot,
        binds=snapshot.binds,
        registry=registry,
    )
    spy._install()
    return spy


def create_spy(
    name: str | None = None, original: t.Callable[..., t.Any] | None = None
) -> Spy[t.Any]:
    """Return a standalone spy that is not attached to any object."""
    return Spy(original if original is not None else _noop, name=name or "spy")


__all__ = [
    "AccessorSpy",
    "BoundSpy",
    "SpiedProperty",
    "Spy",
    "create_spy",
    "spy_on",
]
