"""Global test configuration and shared fixtures."""

from __future__ import annotations

import typing as t

import pytest

import callmox.integration

pytest_plugins = ("callmox.pytest_plugin", "pytester")


@pytest.fixture(autouse=True)
def reset_equality_predicate() -> t.Generator[None, None, None]:
    """Ensure every test starts with the default equality predicate."""
    callmox.integration.reset_equality()
    yield
    callmox.integration.reset_equality()
