"""Assertion helpers backing the ``assert_*`` methods of spies."""

from __future__ import annotations

import enum
import typing as t
from textwrap import indent

from .integration import values_equal

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .records import CallRecord


def call_matches(
    record: CallRecord, args: t.Sequence[object], kwargs: t.Mapping[str, object]
) -> bool:
    """Return ``True`` if *record* was made with *args* and *kwargs*."""
    if len(record.args) != len(args):
        return False
    if record.kwargs.keys() != kwargs.keys():
        return False
    if not all(
        values_equal(expected, actual)
        for expected, actual in zip(args, record.args, strict=True)
    ):
        return False
    return all(values_equal(kwargs[key], record.kwargs[key]) for key in kwargs)


def _format_call(
    name: str, args: t.Sequence[object], kwargs: t.Mapping[str, object]
) -> str:
    parts = [repr(arg) for arg in args]
    parts.extend(f"{key}={value!r}" for key, value in kwargs.items())
    return f"{name}({', '.join(parts)})"


def _describe_record(name: str, record: CallRecord) -> str:
    line = record.describe(name)
    if record.raised:
        return f"{line} raised {record.error!r}"
    return f"{line} -> {record.return_value!r}"


def _numbered(entries: t.Sequence[str], *, start: int = 1) -> str:
    if not entries:
        return "(none)"
    lines: list[str] = []
    for index, entry in enumerate(entries, start=start):
        entry_lines = entry.splitlines() or [""]
        lines.append(f"{index}. {entry_lines[0]}")
        lines.extend(f"   {extra}" for extra in entry_lines[1:])
    return "\n".join(lines)


def _format_sections(title: str, sections: list[tuple[str, str]]) -> str:
    parts = [title]
    for label, body in sections:
        if not body:
            continue
        parts.append("")
        parts.append(f"{label}:")
        parts.append(indent(body, "  "))
    return "\n".join(parts)


def _recorded(name: str, calls: t.Sequence[CallRecord]) -> str:
    return _numbered([_describe_record(name, record) for record in calls])


class CallCountVerifier:
    """Check how many times a spy was called."""

    def __init__(
        self, *, exactly: int | None = None, at_least: int | None = None
    ) -> None:
        if (exactly is None) == (at_least is None):
            msg = "pass exactly one of 'exactly' or 'at_least'"
            raise ValueError(msg)
        self._exactly = exactly
        self._at_least = at_least

    def _describe_expected(self) -> str:
        if self._exactly is not None:
            return f"exactly {self._exactly}"
        return f"at least {self._at_least}"

    def _satisfied(self, count: int) -> bool:
        if self._exactly is not None:
            return count == self._exactly
        return count >= t.cast("int", self._at_least)

    def verify(self, name: str, calls: t.Sequence[CallRecord]) -> None:
        """Raise :class:`AssertionError` when the call count is off."""
        if self._satisfied(len(calls)):
            return
        msg = _format_sections(
            f"Spy {name!r} call count mismatch.",
            [
                ("Expected calls", self._describe_expected()),
                ("Observed calls", str(len(calls))),
                ("Recorded calls", _recorded(name, calls)),
            ],
        )
        raise AssertionError(msg)


class ArgsMode(enum.StrEnum):
    """Which recorded calls :class:`CalledWithVerifier` inspects."""

    ANY = "any"
    NEVER = "never"
    LAST = "last"


class CalledWithVerifier:
    """Check recorded calls against expected arguments."""

    def __init__(
        self,
        args: t.Sequence[object],
        kwargs: t.Mapping[str, object],
        *,
        mode: ArgsMode = ArgsMode.ANY,
    ) -> None:
        self._args = tuple(args)
        self._kwargs = dict(kwargs)
        self._mode = mode

    def _failure(
        self, name: str, title: str, calls: t.Sequence[CallRecord]
    ) -> AssertionError:
        msg = _format_sections(
            title,
            [
                ("Expected", _format_call(name, self._args, self._kwargs)),
                ("Recorded calls", _recorded(name, calls)),
            ],
        )
        return AssertionError(msg)

    def verify(self, name: str, calls: t.Sequence[CallRecord]) -> None:
        """Raise :class:`AssertionError` when *calls* do not satisfy the mode."""
        matched = [call_matches(c, self._args, self._kwargs) for c in calls]
        if self._mode is ArgsMode.ANY and not any(matched):
            title = f"Spy {name!r} was not called with the expected arguments."
            raise self._failure(name, title, calls)
        if self._mode is ArgsMode.NEVER and any(matched):
            title = f"Spy {name!r} was unexpectedly called with the arguments."
            raise self._failure(name, title, calls)
        if self._mode is ArgsMode.LAST and not (matched and matched[-1]):
            title = f"Spy {name!r} was not last called with the expected arguments."
            raise self._failure(name, title, calls)


__all__ = ["ArgsMode", "CallCountVerifier", "CalledWithVerifier", "call_matches"]
