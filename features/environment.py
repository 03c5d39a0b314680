"""Behave hooks shared by every feature."""

from __future__ import annotations

import typing as t

from callmox import reset_equality, restore_all_spies


def after_scenario(context: t.Any, scenario: t.Any) -> None:
    """Restore spies a scenario left installed."""
    del context, scenario
    restore_all_spies()
    reset_equality()
