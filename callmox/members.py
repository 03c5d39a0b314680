"""Snapshots of object members replaced by spies."""

from __future__ import annotations

import dataclasses as dc
import inspect
import typing as t

MISSING: t.Final = object()


def _namespace(owner: object) -> t.Mapping[str, object] | None:
    """Return the attribute namespace of *owner*, or ``None`` without one."""
    try:
        return vars(owner)
    except TypeError:
        return None


@dc.dataclass(frozen=True, slots=True)
class MemberSnapshot:
    """State of ``owner.name`` captured before a spy replaces it.

    ``value`` is the raw member as stored, so descriptors such as
    ``staticmethod``, ``classmethod`` and ``property`` are kept unevaluated.
    ``own`` records whether the member lived in the owner's own namespace; an
    inherited member is restored by removing the replacement from the owner.
    """

    owner: object
    name: str
    value: object
    own: bool

    @classmethod
    def capture(cls, owner: object, name: str) -> MemberSnapshot:
        """Record the current state of ``owner.name``."""
        namespace = _namespace(owner)
        if namespace is None:
            value = getattr(owner, name, MISSING)
            return cls(owner, name, value, own=value is not MISSING)
        try:
            value = inspect.getattr_static(owner, name)
        except AttributeError:
            value = MISSING
        return cls(owner, name, value, own=name in namespace)

    @property
    def exists(self) -> bool:
        """Return ``True`` if the member was present when captured."""
        return self.value is not MISSING

    @property
    def binds(self) -> bool:
        """Return ``True`` when the member is bound on access (class members)."""
        return isinstance(self.owner, type)

    @property
    def is_property(self) -> bool:
        """Return ``True`` when the raw member is a ``property``."""
        return isinstance(self.value, property)

    def current(self) -> object:
        """Return what ``owner.name`` evaluates to right now."""
        return getattr(self.owner, self.name, MISSING)

    def install(self, replacement: object) -> None:
        """Put *replacement* in place of the member."""
        setattr(self.owner, self.name, replacement)

    def restore(self) -> None:
        """Reinstate the captured member verbatim."""
        if self.own:
            setattr(self.owner, self.name, self.value)
            return
        namespace = _namespace(self.owner)
        if namespace is not None and self.name in namespace:
            delattr(self.owner, self.name)


__all__ = ["MISSING", "MemberSnapshot"]
