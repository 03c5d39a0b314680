"""Pytest plugin restoring spies between tests and providing ``callmox``."""

from __future__ import annotations

import logging
import typing as t

import pytest

from .controller import CallMox
from .registry import default_registry

logger = logging.getLogger(__name__)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line and ini options for the plugin."""
    group = parser.getgroup("callmox")
    group.addoption(
        "--callmox-auto-restore",
        action="store_true",
        dest="callmox_auto_restore",
        default=None,
        help=(
            "Restore every spy left installed after each test. "
            "Overrides the pytest.ini setting."
        ),
    )
    group.addoption(
        "--no-callmox-auto-restore",
        action="store_false",
        dest="callmox_auto_restore",
        default=None,
        help=(
            "Leave spies installed after each test. "
            "Overrides the pytest.ini setting."
        ),
    )
    parser.addini(
        "callmox_auto_restore",
        "Restore every spy left installed after each test.",
        type="bool",
        default=True,
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register plugin-specific markers."""
    config.addinivalue_line(
        "markers",
        (
            "callmox(auto_restore: bool = True): override automatic spy "
            "restoration for a single test."
        ),
    )


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    """Restore spies that survived the whole session."""
    del session, exitstatus
    leaked = len(default_registry)
    if leaked:
        logger.warning("Restoring %d spies still installed at session end", leaked)
        default_registry.restore_all()


def _auto_restore_enabled(request: pytest.FixtureRequest) -> bool:
    """Return whether spies should be restored after the current test."""
    # Priority order: marker > CLI option > INI setting

    marker_value = _get_marker_auto_restore(request)
    if marker_value is not None:
        return marker_value

    config = request.config
    cli_value = config.getoption("callmox_auto_restore")
    if cli_value is not None:
        return bool(cli_value)

    return bool(config.getini("callmox_auto_restore"))


def _get_marker_auto_restore(request: pytest.FixtureRequest) -> bool | None:
    """Return marker override for auto restore if present."""
    marker = request.node.get_closest_marker("callmox")
    if marker is None or "auto_restore" not in marker.kwargs:
        return None
    return bool(marker.kwargs["auto_restore"])


@pytest.fixture(autouse=True)
def _callmox_auto_restore(
    request: pytest.FixtureRequest,
) -> t.Generator[None, None, None]:
    """Restore spies installed through the default registry after each test."""
    yield
    if not _auto_restore_enabled(request):
        return
    try:
        default_registry.restore_all()
    except Exception:
        logger.exception(
            "Error while restoring spies after %s", request.node.nodeid
        )
        raise


@pytest.fixture
def callmox() -> t.Generator[CallMox, None, None]:
    """Provide a :class:`CallMox` controller restored at teardown."""
    mox = CallMox()
    try:
        with mox:
            yield mox
    except Exception:
        logger.exception("Error during callmox fixture setup or test execution")
        raise
