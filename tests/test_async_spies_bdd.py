# ruff: noqa: S101
"""Behavioural tests for async spies using pytest-bdd."""

from __future__ import annotations

import asyncio
import dataclasses as dc
import typing as t
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenario, then, when

from callmox import AsyncSpy, create_async_spy

FEATURES_DIR = Path(__file__).resolve().parent.parent / "features"
FEATURE = str(FEATURES_DIR / "async_spies.feature")


@dc.dataclass
class AsyncWorld:
    """State shared between the steps of a scenario."""

    spy: AsyncSpy
    results: list[object] = dc.field(default_factory=list)


@scenario(FEATURE, "a one-time resolved value precedes the default")
def test_once_then_default() -> None:
    """One-time results come before the default."""


@scenario(FEATURE, "a locked spy ignores later one-time values")
def test_locked_spy() -> None:
    """Locked spies ignore one-time behaviours."""


@scenario(FEATURE, "a rejection is recorded without raising")
def test_rejection_recorded() -> None:
    """Rejections are recorded on the call."""


@given("an async spy", target_fixture="world")
def create_world() -> AsyncWorld:
    """Create a standalone async spy."""
    return AsyncWorld(create_async_spy())


@given(parsers.cfparse('the spy resolves "{value}" once'))
def resolve_once(world: AsyncWorld, value: str) -> None:
    """Queue a resolved value."""
    world.spy.resolved_value_once(value)


@given(parsers.cfparse('the spy resolves "{value}" by default'))
def resolve_default(world: AsyncWorld, value: str) -> None:
    """Set the resolved default."""
    world.spy.resolved_value(value)


@given(parsers.cfparse('the spy returns "{value}" once'))
def return_once(world: AsyncWorld, value: str) -> None:
    """Queue a plain value."""
    world.spy.return_value_once(value)


@given(parsers.cfparse('the spy returns "{value}" by default'))
def return_default(world: AsyncWorld, value: str) -> None:
    """Set the plain default."""
    world.spy.return_value(value)


@given(parsers.cfparse('the spy rejects with "{message}" once'))
def reject_once(world: AsyncWorld, message: str) -> None:
    """Queue a rejection."""
    world.spy.rejected_value_once(ValueError(message))


@when(parsers.cfparse("the spy is awaited {count:d} times"))
def await_spy(world: AsyncWorld, count: int) -> None:
    """Call and await the spy repeatedly."""

    async def run() -> list[object]:
        return [await t.cast("t.Awaitable[object]", world.spy()) for _ in range(count)]

    world.results.extend(asyncio.run(run()))


@when(parsers.cfparse("the spy is called {count:d} times"))
def call_spy(world: AsyncWorld, count: int) -> None:
    """Call the spy without awaiting."""
    world.results.extend(world.spy() for _ in range(count))


@then(parsers.cfparse('the results are "{expected}"'))
def check_results(world: AsyncWorld, expected: str) -> None:
    """Compare collected results."""
    assert ", ".join(str(result) for result in world.results) == expected


@then(parsers.cfparse('the last recorded call has the error "{message}"'))
def check_last_error(world: AsyncWorld, message: str) -> None:
    """The last record carries the rejection payload."""
    record = world.spy.last_call()
    assert record is not None
    assert str(record.error) == message


@then(parsers.cfparse('awaiting the last result raises "{message}"'))
def check_await_raises(world: AsyncWorld, message: str) -> None:
    """Awaiting the handed-out result raises the rejection."""

    async def run() -> object:
        return await t.cast("t.Awaitable[object]", world.results[-1])

    with pytest.raises(ValueError, match=message):
        asyncio.run(run())
