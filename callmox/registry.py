"""Bookkeeping for spies that are currently installed."""

from __future__ import annotations

import logging
import typing as t

logger = logging.getLogger(__name__)


class Restorable(t.Protocol):
    """Anything the registry can put back in place."""

    def restore(self) -> None:
        """Reinstate the original member."""
        ...


class SpyRegistry:
    """Set of active spy handles supporting bulk restoration.

    Handles add themselves when they are installed and discard themselves when
    restored. Iteration order is unspecified.
    """

    def __init__(self) -> None:
        self._active: set[Restorable] = set()

    def add(self, handle: Restorable) -> None:
        """Track *handle* as active."""
        self._active.add(handle)

    def discard(self, handle: Restorable) -> None:
        """Stop tracking *handle*; unknown handles are ignored."""
        self._active.discard(handle)

    def __contains__(self, handle: object) -> bool:
        return handle in self._active

    def __len__(self) -> int:
        return len(self._active)

    def __iter__(self) -> t.Iterator[Restorable]:
        return iter(tuple(self._active))

    def restore_all(self) -> int:
        """Restore every active handle and empty the registry.

        Returns the number of handles that were restored. Calling this on an
        empty registry is a no-op. A handle that fails to restore does not stop
        the others: a single failure is re-raised once every handle has been
        attempted, several are raised together as an :class:`ExceptionGroup`.
        """
        handles = tuple(self._active)
        errors: list[Exception] = []
        for handle in handles:
            try:
                handle.restore()
            except Exception as exc:  # noqa: BLE001 - re-raised below
                logger.warning("Failed to restore %r: %s", handle, exc)
                errors.append(exc)
        self._active.clear()
        if handles:
            logger.debug("Restored %d active spies", len(handles) - len(errors))
        if len(errors) == 1:
            raise errors[0]
        if errors:
            msg = f"Failed to restore {len(errors)} spies"
            raise ExceptionGroup(msg, errors)
        return len(handles)


default_registry = SpyRegistry()


def restore_all_spies() -> int:
    """Restore every spy tracked by the default registry."""
    return default_registry.restore_all()


__all__ = ["Restorable", "SpyRegistry", "default_registry", "restore_all_spies"]
