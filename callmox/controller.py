"""CallMox controller scoping a group of spies to a ``with`` block."""

from __future__ import annotations

import types  # noqa: TC003
import typing as t

from .async_spy import AsyncSpy, create_async_spy, enhance_spy, spy_on_async
from .registry import Restorable, SpyRegistry
from .spy import Spy, create_spy, spy_on


class CallMox:
    """Owns a private :class:`SpyRegistry` and restores it on exit.

    Spies created through the controller are tracked only by its registry, so
    leaving the context (or calling :meth:`restore_all`) puts back exactly the
    members this controller replaced.
    """

    def __init__(self, registry: SpyRegistry | None = None) -> None:
        self.registry = registry if registry is not None else SpyRegistry()
        self._entered = False

    # ------------------------------------------------------------------
    # Context manager protocol
    # ------------------------------------------------------------------
    def __enter__(self) -> CallMox:
        """Enter the context."""
        self._entered = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Restore every spy created through this controller."""
        try:
            self.restore_all()
        finally:
            self._entered = False

    @property
    def active(self) -> bool:
        """Return ``True`` inside the ``with`` block."""
        return self._entered

    # ------------------------------------------------------------------
    # Spy factories
    # ------------------------------------------------------------------
    def spy_on(self, owner: object, name: str) -> t.Any:
        """Replace ``owner.name`` with a spy tracked by this controller."""
        return spy_on(owner, name, registry=self.registry)

    def spy_on_async(self, owner: object, name: str) -> AsyncSpy:
        """Replace ``owner.name`` with an async spy tracked by this controller."""
        return spy_on_async(owner, name, registry=self.registry)

    def create_spy(
        self, name: str | None = None, original: t.Callable[..., t.Any] | None = None
    ) -> Spy[t.Any]:
        """Return a standalone spy."""
        return create_spy(name, original)

    def create_async_spy(
        self,
        name: str = "async_spy",
        original: t.Callable[..., t.Any] | None = None,
    ) -> AsyncSpy:
        """Return a standalone async spy."""
        return create_async_spy(name, original)

    def enhance_spy(self, spy: Spy[t.Any]) -> AsyncSpy:
        """Upgrade *spy* to an :class:`AsyncSpy` in place."""
        return enhance_spy(spy)

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------
    @property
    def spies(self) -> list[Restorable]:
        """Return the spies currently installed through this controller."""
        return list(self.registry)

    def restore_all(self) -> int:
        """Restore every installed spy and return how many there were."""
        return self.registry.restore_all()
