"""Process-wide settings record with an explicit lifecycle.

Call :func:`configure` once at start-up (the CLI does this after loading the
settings file). Library code receives :class:`Settings` explicitly and only
falls back to :func:`get_settings` when a caller passes none. Tests call
:func:`reset_settings` to return to the uninitialised state.

Examples
--------
>>> from selfhelp_pages.config import Settings, configure, get_settings, reset_settings
>>> _ = configure(Settings(cache_ttl=2.0))
>>> get_settings().cache_ttl
2.0
>>> reset_settings()
>>> get_settings().cache_ttl
1.0
"""

from __future__ import annotations

import threading

from .models import Settings

_lock = threading.Lock()
_current: Settings | None = None


def configure(settings: Settings) -> Settings:
    """Install ``settings`` as the process-wide record and return it."""
    global _current  # noqa: PLW0603 - module-level settings slot
    with _lock:
        _current = settings
    return settings


def get_settings() -> Settings:
    """Return the installed settings, or defaults when none were configured."""
    with _lock:
        return _current if _current is not None else Settings()


def is_configured() -> bool:
    """Return whether :func:`configure` has been called since the last reset."""
    with _lock:
        return _current is not None


def reset_settings() -> None:
    """Drop the installed settings so the next read sees defaults."""
    global _current  # noqa: PLW0603 - module-level settings slot
    with _lock:
        _current = None


__all__ = ["configure", "get_settings", "is_configured", "reset_settings"]
