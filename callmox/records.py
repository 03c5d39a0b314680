"""Call records captured by spies."""

from __future__ import annotations

import dataclasses as dc
import types
import typing as t

from .deferred import Deferred

_EMPTY_KWARGS: t.Mapping[str, object] = types.MappingProxyType({})


@dc.dataclass(frozen=True, slots=True)
class CallRecord:
    """A single invocation of a spy.

    ``return_value`` holds the produced result and ``error`` the raised
    exception. A call answered with a rejected deferred result carries both:
    the deferred in ``return_value`` and its rejection payload in ``error``.
    ``sequence`` increases with every spy call in the process and orders
    records whose timestamps tie.
    """

    args: tuple[object, ...]
    kwargs: t.Mapping[str, object] = dc.field(
        default_factory=lambda: _EMPTY_KWARGS
    )
    receiver: object | None = None
    return_value: object = None
    error: BaseException | None = None
    timestamp: float = 0.0
    sequence: int = 0

    @property
    def raised(self) -> bool:
        """Return ``True`` when the call raised instead of returning."""
        return self.error is not None and not isinstance(self.return_value, Deferred)

    @property
    def returned(self) -> bool:
        """Return ``True`` when the call completed without raising."""
        return not self.raised

    def describe(self, name: str) -> str:
        """Return ``name(args, key=value)`` for diagnostics."""
        parts = [repr(arg) for arg in self.args]
        parts.extend(f"{key}={value!r}" for key, value in self.kwargs.items())
        return f"{name}({', '.join(parts)})"


def freeze_kwargs(kwargs: dict[str, object]) -> t.Mapping[str, object]:
    """Return a read-only view of *kwargs* suitable for a :class:`CallRecord`."""
    if not kwargs:
        return _EMPTY_KWARGS
    return types.MappingProxyType(dict(kwargs))


__all__ = ["CallRecord", "freeze_kwargs"]
