"""Unit tests for :mod:`callmox.async_spy`."""

from __future__ import annotations

import asyncio
import gc
import logging
import types
import typing as t

import pytest

from callmox import (
    AsyncSpy,
    Deferred,
    Spy,
    SpyUsageError,
    create_async_spy,
    default_registry,
    spy_on,
    spy_on_async,
)
from callmox.behaviors import CallThrough


async def _settle(*results: object) -> list[object]:
    return [await t.cast("Deferred[object]", result) for result in results]


def _client() -> types.SimpleNamespace:
    async def fetch(url: str) -> str:
        return f"body of {url}"

    return types.SimpleNamespace(fetch=fetch, sync=lambda: "sync")


def test_new_async_spy_calls_through_unlocked() -> None:
    """A fresh async spy has no queue and is unlocked."""
    spy = create_async_spy()
    assert spy.name == "async_spy"
    assert spy.queued == ()
    assert not spy.locked
    assert isinstance(spy.behavior, CallThrough)
    assert spy() is None


def test_once_value_precedes_resolved_default() -> None:
    """A queued value is used first, then the default applies."""
    spy = create_async_spy()
    spy.resolved_value_once("first").resolved_value("default")

    results = asyncio.run(_settle(spy(), spy(), spy()))

    assert results == ["first", "default", "default"]
    assert spy.call_count == 3


def test_once_values_are_consumed_in_order() -> None:
    """Queued values are consumed first-in first-out."""
    spy = create_async_spy(original=lambda: "original")
    spy.return_values_once("a", "b").return_value_once("c")
    assert [spy() for _ in range(4)] == ["a", "b", "c", "original"]


def test_value_default_locks_out_later_once_calls() -> None:
    """Once behaviours added after a locking default are ignored."""
    spy = create_async_spy().return_value("default")
    assert spy.locked
    spy.return_value_once("ignored")

    assert spy.queued == ()
    assert spy() == "default"
    assert spy() == "default"


def test_queue_survives_locking_default() -> None:
    """Behaviours queued before locking are still honoured."""
    spy = create_async_spy()
    spy.return_value_once("once").return_value("first").return_value("third")
    assert [spy(), spy()] == ["once", "third"]


@pytest.mark.parametrize(
    "unlock",
    [
        pytest.param(lambda spy: spy.call_through(), id="call_through"),
        pytest.param(lambda spy: spy.call_fake(lambda: "fake"), id="call_fake"),
        pytest.param(lambda spy: spy.throw_error(ValueError), id="throw_error"),
        pytest.param(lambda spy: spy.clear_return_values(), id="clear"),
    ],
)
def test_unlocking_defaults_clear_the_queue(
    unlock: t.Callable[[AsyncSpy], object],
) -> None:
    """Non-value defaults drop queued behaviours and unlock the spy."""
    spy = create_async_spy().return_values_once(1, 2).resolved_value(3)
    unlock(spy)

    assert spy.queued == ()
    assert not spy.locked
    spy.return_value_once("accepted")
    assert spy.queued != ()


def test_rejected_value_is_recorded_without_raising() -> None:
    """Calls answered with a rejection return normally."""
    spy = create_async_spy()
    error = ValueError("nope")
    spy.rejected_value_once(error)

    result = spy()

    assert isinstance(result, Deferred)
    record = spy.calls[0]
    assert record.error is error
    assert record.return_value is result
    assert not record.raised
    with pytest.raises(ValueError, match="nope"):
        asyncio.run(_settle(result))


def test_unawaited_rejection_is_not_reported(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Rejections handed out by spies are pre-observed."""
    spy = create_async_spy().rejected_value(RuntimeError)
    caplog.set_level(logging.ERROR, logger="callmox.deferred")

    spy()
    spy.clear_calls()
    gc.collect()

    assert "never retrieved" not in caplog.text


def test_rejected_values_accept_exception_classes() -> None:
    """Each queued rejection becomes an exception instance."""
    spy = create_async_spy().rejected_values(KeyError, LookupError("x"))
    first, second = spy(), spy()
    assert isinstance(first.exception(), KeyError)
    assert isinstance(second.exception(), LookupError)


def test_concurrent_awaits_keep_call_order() -> None:
    """Results are bound at call time regardless of await order."""
    spy = create_async_spy().resolved_values(1, 2, 3)
    first, second, third = spy(), spy(), spy()

    async def gather() -> list[object]:
        return list(await asyncio.gather(third, first, second))

    assert asyncio.run(gather()) == [3, 1, 2]


def test_call_fake_once_then_default() -> None:
    """A one-time fake runs for one call only."""
    spy = create_async_spy(original=lambda x: x)
    spy.call_fake_once(lambda x: x * 10)
    assert spy(2) == 20
    assert spy(2) == 2


def test_once_fake_errors_are_recorded() -> None:
    """Errors from a one-time fake propagate and are recorded."""

    def fake() -> None:
        msg = "fake failed"
        raise RuntimeError(msg)

    spy = create_async_spy().call_fake_once(fake).resolved_value("ok")
    with pytest.raises(RuntimeError, match="fake failed"):
        spy()
    assert asyncio.run(_settle(spy())) == ["ok"]
    assert isinstance(spy.calls[0].error, RuntimeError)


def test_coroutine_fakes_are_awaitable() -> None:
    """Async fake implementations return coroutines for the caller."""

    async def fake(value: int) -> int:
        return value + 1

    spy = create_async_spy().call_fake(fake)
    assert asyncio.run(spy(1)) == 2


def test_return_values_lock_and_repeat() -> None:
    """The sequential default behaves like the synchronous one and locks."""
    spy = create_async_spy().return_values("a", "b")
    assert spy.locked
    assert [spy(), spy(), spy()] == ["a", "b", "b"]


def test_clear_calls_keeps_configuration() -> None:
    """Clearing calls keeps queued and default behaviours."""
    spy = create_async_spy().return_value_once("once").return_value("default")
    spy()
    spy.clear_calls()

    assert spy.call_count == 0
    assert spy.locked
    assert spy() == "default"


def test_clear_all_resets_everything() -> None:
    """Clearing everything returns the spy to its initial state."""
    spy = create_async_spy(original=lambda: "original")
    spy.return_values_once(1, 2).return_value("default")
    spy()
    spy.clear_all()

    assert spy.call_count == 0
    assert spy.queued == ()
    assert not spy.locked
    assert spy() == "original"


def test_spy_on_async_replaces_and_restores() -> None:
    """Async spies installed on objects are registered and restorable."""
    client = _client()
    original = client.fetch
    spy = spy_on_async(client, "fetch")

    assert client.fetch is spy
    assert spy in default_registry
    assert asyncio.run(client.fetch("/a")) == "body of /a"
    assert spy.calls[0].receiver is client

    spy.restore()
    assert client.fetch is original


def test_spy_on_async_restores_an_existing_spy() -> None:
    """An earlier spy on the same member is replaced, not duplicated."""
    client = _client()
    original = client.fetch
    first = spy_on(client, "fetch")
    second = spy_on_async(client, "fetch")

    assert not first.installed
    assert first not in default_registry
    assert second.original is original
    second.restore()
    assert client.fetch is original


def test_spy_on_async_rejects_properties() -> None:
    """Properties cannot be replaced by an async spy."""

    class Config:
        @property
        def value(self) -> int:
            return 1

    with pytest.raises(SpyUsageError, match="async spy"):
        spy_on_async(Config, "value")


def test_resolved_results_are_reusable_across_event_loops() -> None:
    """Deferred results are not tied to a running loop."""
    spy = create_async_spy().resolved_value("value")
    result = spy()
    assert asyncio.run(_settle(result)) == ["value"]
    assert asyncio.run(_settle(result)) == ["value"]


def test_sync_and_async_once_behaviours_can_be_mixed() -> None:
    """Plain and deferred one-time results share the same queue."""
    spy = create_async_spy()
    spy.return_value_once("plain").resolved_value_once("deferred")
    plain, deferred = spy(), spy()
    assert plain == "plain"
    assert asyncio.run(_settle(deferred)) == ["deferred"]


def test_async_spy_keeps_the_synchronous_api() -> None:
    """Async spies support every inspection and assertion helper."""
    spy = create_async_spy("named", original=lambda a: a)
    spy("x")
    assert isinstance(spy, Spy)
    assert spy.called_with("x")
    spy.assert_called_once()
    spy.assert_last_called_with("x")
