"""Shared fixtures for the selfhelp_pages test-suite."""

from __future__ import annotations

import typing as typ

import pytest

from selfhelp_pages.config import reset_settings

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@pytest.fixture(autouse=True)
def _clean_settings() -> cabc.Iterator[None]:
    """Start and finish every test with no process-wide settings installed."""
    reset_settings()
    yield
    reset_settings()
