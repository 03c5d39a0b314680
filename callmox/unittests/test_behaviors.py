"""Unit tests for behaviour variants and call records."""

from __future__ import annotations

import pytest

from callmox import CallRecord, Deferred
from callmox.behaviors import ReturnValues, coerce_error, require_callable
from callmox.records import freeze_kwargs


@pytest.mark.parametrize(
    ("cursor", "expected"),
    [(0, "a"), (1, "b"), (2, "c"), (3, "c"), (50, "c")],
)
def test_return_values_clamp_to_last(cursor: int, expected: str) -> None:
    """Cursors past the end select the final value."""
    assert ReturnValues(("a", "b", "c")).at(cursor) == expected


def test_empty_return_values_yield_none() -> None:
    """An empty sequence has nothing to return."""
    assert ReturnValues().at(0) is None


def test_coerce_error_passes_instances_through() -> None:
    """Exception instances are used as given."""
    error = KeyError("k")
    assert coerce_error(error) is error


def test_coerce_error_instantiates_classes() -> None:
    """Exception classes are instantiated."""
    assert isinstance(coerce_error(LookupError), LookupError)


@pytest.mark.parametrize("value", ["boom", 42, None, object])
def test_coerce_error_rejects_other_values(value: object) -> None:
    """Non-exceptions cannot be raised."""
    with pytest.raises(TypeError, match="exception instance or class"):
        coerce_error(value)


def test_require_callable() -> None:
    """Fakes must be callable."""
    assert require_callable(len) is len
    with pytest.raises(TypeError, match="must be callable"):
        require_callable("len")


def test_record_describe_formats_arguments() -> None:
    """Records render like the call that produced them."""
    record = CallRecord(args=(1, "x"), kwargs=freeze_kwargs({"flag": True}))
    assert record.describe("fn") == "fn(1, 'x', flag=True)"


def test_record_outcome_flags() -> None:
    """Raised and returned are mutually exclusive."""
    returned = CallRecord(args=(), return_value=1)
    raised = CallRecord(args=(), error=ValueError())
    assert returned.returned
    assert not returned.raised
    assert raised.raised
    assert not raised.returned


def test_rejection_records_are_not_raised() -> None:
    """A rejected deferred result is a return, not a raise."""
    error = ValueError("later")
    deferred = Deferred.rejected(error)
    deferred.mark_observed()
    record = CallRecord(args=(), return_value=deferred, error=error)
    assert record.returned
    assert record.error is error


def test_freeze_kwargs_copies_input() -> None:
    """Later changes to the source dict are not reflected."""
    source: dict[str, object] = {"a": 1}
    frozen = freeze_kwargs(source)
    source["a"] = 2
    assert frozen == {"a": 1}
    assert freeze_kwargs({}) == {}


def test_record_defaults_to_empty_read_only_kwargs() -> None:
    """Records built without keyword arguments share an empty read-only mapping."""
    record = CallRecord(args=(1,))
    assert record.kwargs == {}
    assert record.sequence == 0
    with pytest.raises(TypeError):
        record.kwargs["key"] = "value"  # type: ignore[index]
    assert CallRecord(args=()).kwargs is record.kwargs
