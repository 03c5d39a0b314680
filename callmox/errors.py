"""Exception hierarchy for callmox."""

from __future__ import annotations


class CallMoxError(Exception):
    """Base class for callmox errors."""


class SpyUsageError(CallMoxError):
    """Raised when a spy is requested for a member that cannot be intercepted."""


class NotCallableError(SpyUsageError, TypeError):
    """Raised when the target member is neither callable nor a property."""


class DuplicateSpyError(SpyUsageError):
    """Raised when the target member is already replaced by a spy."""


__all__ = [
    "CallMoxError",
    "DuplicateSpyError",
    "NotCallableError",
    "SpyUsageError",
]
