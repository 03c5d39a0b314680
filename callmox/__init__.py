"""Call interception for tests: spies that record calls and fake behaviour.

Spies replace functions, methods and properties in place, record every call
and can be told to call through, return fixed or sequential values, raise,
run a fake implementation, or hand back awaitable results.
"""

from __future__ import annotations

from .async_spy import AsyncSpy, create_async_spy, enhance_spy, spy_on_async
from .comparators import Any, Contains, IsA, Predicate, Regex, StartsWith
from .controller import CallMox
from .deferred import Deferred
from .errors import (
    CallMoxError,
    DuplicateSpyError,
    NotCallableError,
    SpyUsageError,
)
from .integration import (
    get_call_count,
    get_calls,
    is_spy,
    reset_equality,
    set_equality,
)
from .records import CallRecord
from .registry import SpyRegistry, default_registry, restore_all_spies
from .spy import AccessorSpy, BoundSpy, Spy, create_spy, spy_on

__all__ = [
    "AccessorSpy",
    "Any",
    "AsyncSpy",
    "BoundSpy",
    "CallMox",
    "CallMoxError",
    "CallRecord",
    "Contains",
    "Deferred",
    "DuplicateSpyError",
    "IsA",
    "NotCallableError",
    "Predicate",
    "Regex",
    "Spy",
    "SpyRegistry",
    "SpyUsageError",
    "StartsWith",
    "create_async_spy",
    "create_spy",
    "default_registry",
    "enhance_spy",
    "get_call_count",
    "get_calls",
    "is_spy",
    "reset_equality",
    "restore_all_spies",
    "set_equality",
    "spy_on",
    "spy_on_async",
]
