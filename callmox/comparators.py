"""Comparator objects used for argument matching."""

from __future__ import annotations

import re
import typing as t


class Comparator(t.Protocol):
    """Callable returning ``True`` when a value matches."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* satisfies the comparison."""
        ...


class _Comparator:
    """Marker base recognised by :func:`match`."""

    __slots__ = ()

    def __call__(self, value: object) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError


class Any(_Comparator):
    """Match any value."""

    __slots__ = ()

    def __call__(self, value: object) -> bool:
        """Return ``True`` for any input."""
        return True

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        return "Any()"


class IsA(_Comparator):
    """Match instances of ``typ``."""

    __slots__ = ("typ",)

    def __init__(self, typ: type | tuple[type, ...]) -> None:
        self.typ = typ

    def __call__(self, value: object) -> bool:
        """Return ``True`` when ``value`` is an instance of ``typ``."""
        return isinstance(value, self.typ)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        if isinstance(self.typ, tuple):
            names = ", ".join(typ.__name__ for typ in self.typ)
            return f"IsA(({names}))"
        return f"IsA({self.typ.__name__})"


class Regex(_Comparator):
    """Match strings in which ``pattern`` is found."""

    __slots__ = ("_pattern",)

    def __init__(self, pattern: str) -> None:
        self._pattern = re.compile(pattern)

    def __call__(self, value: object) -> bool:
        """Return ``True`` if the regex matches *value*."""
        return isinstance(value, str) and bool(self._pattern.search(value))

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        return f"Regex({self._pattern.pattern!r})"


class Contains(_Comparator):
    """Match containers holding ``item``."""

    __slots__ = ("item",)

    def __init__(self, item: object) -> None:
        self.item = item

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``item`` is in *value*."""
        try:
            return self.item in value  # type: ignore[operator]
        except TypeError:
            return False

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        return f"Contains({self.item!r})"


class StartsWith(_Comparator):
    """Match strings beginning with ``prefix``."""

    __slots__ = ("prefix",)

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* starts with ``prefix``."""
        return isinstance(value, str) and value.startswith(self.prefix)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        return f"StartsWith({self.prefix!r})"


class Predicate(_Comparator):
    """Use a custom ``func`` to determine a match."""

    __slots__ = ("func",)

    def __init__(self, func: t.Callable[[t.Any], bool]) -> None:
        self.func = func

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``func(value)`` is truthy."""
        return bool(self.func(value))

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        return f"Predicate({self.func})"


def match(expected: object, actual: object) -> bool:
    """Return ``True`` when *actual* satisfies *expected*.

    Comparators on the expected side are applied to *actual*; any other value
    is compared with ``==``.
    """
    if isinstance(expected, _Comparator):
        return expected(actual)
    return bool(expected == actual)


__all__ = [
    "Any",
    "Comparator",
    "Contains",
    "IsA",
    "Predicate",
    "Regex",
    "StartsWith",
    "match",
]
