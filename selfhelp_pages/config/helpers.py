"""Utility helpers shared by the settings loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from .models import SettingsError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_bool(value: object, *, key: str) -> bool:
    """Interpret YAML booleans and ``"0"``/``"1"`` style strings."""
    match value:
        case bool():
            return value
        case int():
            return value != 0
        case str() as text if text.strip().lower() in _TRUE_VALUES:
            return True
        case str() as text if text.strip().lower() in _FALSE_VALUES:
            return False
        case _:
            msg = f"Setting '{key}' must be a boolean, got {value!r}."
            raise SettingsError(msg)


def _parse_seconds(value: object, *, key: str) -> float:
    """Return a non-negative number of seconds."""
    try:
        seconds = float(typ.cast("typ.Any", value))
    except (TypeError, ValueError) as exc:
        msg = f"Setting '{key}' must be a number of seconds, got {value!r}."
        raise SettingsError(msg) from exc
    if seconds < 0:
        msg = f"Setting '{key}' must not be negative, got {seconds}."
        raise SettingsError(msg)
    return seconds


def _parse_base_url(value: object) -> str:
    text = _optional_str(value)
    if not text:
        msg = "Setting 'api_base_url' must not be empty."
        raise SettingsError(msg)
    return text.rstrip("/")


def _parse_path(value: object, *, key: str) -> Path:
    text = _optional_str(value)
    if not text:
        msg = f"Setting '{key}' must be a non-empty path."
        raise SettingsError(msg)
    return Path(text)


__all__ = [
    "_optional_str",
    "_parse_base_url",
    "_parse_bool",
    "_parse_path",
    "_parse_seconds",
]
