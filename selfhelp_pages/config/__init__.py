"""Load and hold selfhelp runtime settings.

This subpackage parses the project's ``selfhelp.yaml`` file, applies
``SELFHELP_*`` environment overrides, and produces a frozen
:class:`Settings` record that the resolver, renderer, and CLI consume. The
process-wide record is managed through :func:`configure`,
:func:`get_settings`, and :func:`reset_settings`.

Examples
--------
>>> from pathlib import Path
>>> from selfhelp_pages.config import load_settings
>>> settings = load_settings(Path("config/selfhelp.yaml"))  # doctest: +SKIP
>>> settings.api_base_url  # doctest: +SKIP
'https://cms.example.org/cms-api/v1'
"""

from .loader import load_settings, settings_from_mapping
from .models import Settings, SettingsError
from .runtime import configure, get_settings, is_configured, reset_settings

__all__ = [
    "Settings",
    "SettingsError",
    "configure",
    "get_settings",
    "is_configured",
    "load_settings",
    "reset_settings",
    "settings_from_mapping",
]
