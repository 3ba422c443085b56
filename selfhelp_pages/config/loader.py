"""Load selfhelp settings YAML into a typed :class:`Settings` record."""

from __future__ import annotations

import os
import typing as typ

from ruamel.yaml import YAML

from .helpers import (
    _optional_str,
    _parse_base_url,
    _parse_bool,
    _parse_path,
    _parse_seconds,
)
from .models import Settings

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

ENV_PREFIX = "SELFHELP_"
_ENV_KEYS = ("api_base_url", "language", "preview", "cache_ttl")


def load_settings(
    path: Path, *, environ: cabc.Mapping[str, str] | None = None
) -> Settings:
    """Load the YAML settings file describing how to reach and render the CMS.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML settings file (for example,
        ``config/selfhelp.yaml``).
    environ : Mapping[str, str], optional
        Environment used for ``SELFHELP_*`` overrides; defaults to
        ``os.environ``.

    Returns
    -------
    Settings
        Parsed settings with defaults applied and environment overrides
        taking precedence over file values.

    Raises
    ------
    FileNotFoundError
        If the settings file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    SettingsError
        If a value is present but invalid (negative TTL, empty base URL).

    Examples
    --------
    >>> from pathlib import Path
    >>> from selfhelp_pages.config import load_settings
    >>> settings = load_settings(Path("config/selfhelp.yaml"))  # doctest: +SKIP
    >>> settings.cache_ttl  # doctest: +SKIP
    1.0
    """
    if not path.exists():
        msg = f"Settings file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    raw.update(_env_overrides(os.environ if environ is None else environ))
    return settings_from_mapping(raw)


def settings_from_mapping(raw: cabc.Mapping[str, typ.Any]) -> Settings:
    """Build a :class:`Settings` from a plain mapping, applying defaults."""
    base = Settings()
    language = _optional_str(raw.get("language", base.language))
    return Settings(
        api_base_url=_parse_base_url(raw.get("api_base_url", base.api_base_url)),
        language=language,
        preview=_parse_bool(raw.get("preview", base.preview), key="preview"),
        cache_ttl=_parse_seconds(
            raw.get("cache_ttl", base.cache_ttl), key="cache_ttl"
        ),
        request_timeout=_parse_seconds(
            raw.get("request_timeout", base.request_timeout), key="request_timeout"
        ),
        pages_endpoint=str(raw.get("pages_endpoint", base.pages_endpoint)),
        content_endpoint=str(raw.get("content_endpoint", base.content_endpoint)),
        pygments_style=str(raw.get("pygments_style", base.pygments_style)),
        output_dir=_parse_path(
            raw.get("output_dir", base.output_dir), key="output_dir"
        ),
        site_name=str(raw.get("site_name", base.site_name)),
        log_level=str(raw.get("log_level", base.log_level)).upper(),
    )


def _env_overrides(environ: cabc.Mapping[str, str]) -> dict[str, str]:
    """Collect ``SELFHELP_*`` variables that override file values."""
    overrides: dict[str, str] = {}
    for key in _ENV_KEYS:
        value = environ.get(f"{ENV_PREFIX}{key.upper()}")
        if value is not None:
            overrides[key] = value
    return overrides


__all__ = ["ENV_PREFIX", "load_settings", "settings_from_mapping"]
