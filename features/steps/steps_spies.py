"""Step definitions for callmox behavioural tests."""
# pyright: reportMissingImports=false, reportUnknownMemberType=false

from __future__ import annotations

import asyncio
import types
import typing as t

from behave import given, then, when  # type: ignore[attr-defined]

from callmox import (
    AsyncSpy,
    Spy,
    create_async_spy,
    default_registry,
    restore_all_spies,
    spy_on,
)


class BehaveContext(t.Protocol):
    """Behave step context with attributes used in tests."""

    services: list[types.SimpleNamespace]
    originals: list[t.Callable[[], object]]
    spies: list[Spy]
    spy: Spy
    results: list[object]


def _describe(result: object) -> str:
    if isinstance(result, BaseException):
        return f"{type(result).__name__}: {result}"
    return str(result)


def _start(context: BehaveContext, count: int, value: int) -> None:
    context.services = [
        types.SimpleNamespace(next_id=lambda: value) for _ in range(count)
    ]
    context.originals = [service.next_id for service in context.services]
    context.spies = []
    context.results = []


@given("a service whose next_id method returns {value:d}")
def step_create_service(context: BehaveContext, value: int) -> None:
    """Create a single service."""
    _start(context, 1, value)


@given("{count:d} services whose next_id method returns {value:d}")
def step_create_services(context: BehaveContext, count: int, value: int) -> None:
    """Create several services with the same behaviour."""
    _start(context, count, value)


@given("next_id is spied on")
@given("next_id is spied on for every service")
def step_spy_on_next_id(context: BehaveContext) -> None:
    """Install a spy on every service."""
    context.spies = [spy_on(service, "next_id") for service in context.services]
    context.spy = context.spies[0]


@given('the spy returns the values "{values}"')
def step_return_values(context: BehaveContext, values: str) -> None:
    """Configure sequential return values."""
    context.spy.return_values(*(int(value) for value in values.split(", ")))


@given('the spy throws a RuntimeError "{message}"')
def step_throw_error(context: BehaveContext, message: str) -> None:
    """Configure an error for every call."""
    context.spy.throw_error(RuntimeError(message))


@when("next_id is called {count:d} times")
def step_call_next_id(context: BehaveContext, count: int) -> None:
    """Call the spied method, collecting results and errors."""
    service = context.services[0]
    for _ in range(count):
        try:
            context.results.append(service.next_id())
        except RuntimeError as exc:
            context.results.append(exc)


@when("all spies are restored")
def step_restore_all(context: BehaveContext) -> None:
    """Restore every registered spy."""
    restore_all_spies()


@then("every service has its original next_id")
def step_check_originals(context: BehaveContext) -> None:
    """Members are back to their original values."""
    for service, original in zip(context.services, context.originals, strict=True):
        assert service.next_id is original  # noqa: S101


@then("no spies are active")
def step_check_registry(context: BehaveContext) -> None:
    """The default registry is empty."""
    assert len(default_registry) == 0  # noqa: S101


@then("the spy recorded {count:d} calls with the service as receiver")
def step_check_receiver(context: BehaveContext, count: int) -> None:
    """Every call records the service as receiver."""
    service = context.services[0]
    assert context.spy.call_count == count  # noqa: S101
    assert all(call.receiver is service for call in context.spy.calls)  # noqa: S101


@given("an async spy")
def step_create_async_spy(context: BehaveContext) -> None:
    """Create a standalone async spy."""
    context.spy = create_async_spy()
    context.results = []


def _async_spy(context: BehaveContext) -> AsyncSpy:
    return t.cast("AsyncSpy", context.spy)


@given('the spy resolves "{value}" once')
def step_resolve_once(context: BehaveContext, value: str) -> None:
    """Queue a resolved value."""
    _async_spy(context).resolved_value_once(value)


@given('the spy resolves "{value}" by default')
def step_resolve_default(context: BehaveContext, value: str) -> None:
    """Set the resolved default."""
    _async_spy(context).resolved_value(value)


@given('the spy returns "{value}" once')
def step_return_once(context: BehaveContext, value: str) -> None:
    """Queue a plain value."""
    _async_spy(context).return_value_once(value)


@given('the spy returns "{value}" by default')
def step_return_default(context: BehaveContext, value: str) -> None:
    """Set the plain default."""
    _async_spy(context).return_value(value)


@given('the spy rejects with "{message}" once')
def step_reject_once(context: BehaveContext, message: str) -> None:
    """Queue a rejection."""
    _async_spy(context).rejected_value_once(ValueError(message))


@when("the spy is awaited {count:d} times")
def step_await_spy(context: BehaveContext, count: int) -> None:
    """Call and await the spy repeatedly."""
    spy = _async_spy(context)

    async def run() -> list[object]:
        return [await t.cast("t.Awaitable[object]", spy()) for _ in range(count)]

    context.results.extend(asyncio.run(run()))


@when("the spy is called {count:d} times")
def step_call_spy(context: BehaveContext, count: int) -> None:
    """Call the spy without awaiting."""
    context.results.extend(context.spy() for _ in range(count))


@then('the results are "{expected}"')
def step_check_results(context: BehaveContext, expected: str) -> None:
    """Compare collected results."""
    described = ", ".join(_describe(result) for result in context.results)
    assert described == expected  # noqa: S101


@then('the last recorded call has the error "{message}"')
def step_check_last_error(context: BehaveContext, message: str) -> None:
    """The last record carries the error."""
    record = context.spy.last_call()
    assert record is not None  # noqa: S101
    assert str(record.error) == message  # noqa: S101


@then('awaiting the last result raises "{message}"')
def step_check_await_raises(context: BehaveContext, message: str) -> None:
    """Awaiting the handed-out result raises the rejection."""

    async def run() -> object:
        return await t.cast("t.Awaitable[object]", context.results[-1])

    try:
        asyncio.run(run())
    except ValueError as exc:
        assert str(exc) == message  # noqa: S101
    else:
        msg = "awaiting the result did not raise"
        raise AssertionError(msg)
