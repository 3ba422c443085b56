"""Typed dataclasses describing selfhelp runtime settings."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from selfhelp_pages._constants import DEFAULT_CACHE_TTL, DEFAULT_REQUEST_TIMEOUT


class SettingsError(ValueError):
    """Raised when the settings file or overrides are invalid or incomplete."""


@dc.dataclass(frozen=True, slots=True)
class Settings:
    """Connection, cache, and rendering options shared by the engine.

    Attributes
    ----------
    api_base_url : str
        Root URL of the CMS backend API.
    language : str | None
        Default language variant requested when callers pass none.
    preview : bool
        Editor preview mode; content requests ask for unpublished drafts.
    cache_ttl : float
        Freshness window, in seconds, for cached page content.
    request_timeout : float
        Per-request timeout in seconds for the HTTP client.
    pages_endpoint : str
        Path of the page list endpoint.
    content_endpoint : str
        Path template for a page's content; ``{page_id}`` is substituted.
    pygments_style : str
        Pygments style used for highlighted code inside markdown nodes.
    output_dir : Path
        Directory the CLI writes rendered pages into.
    site_name : str
        Title suffix used by the page shell template.
    log_level : str
        Level name handed to the logging configuration.
    """

    api_base_url: str = "http://localhost/cms-api/v1"
    language: str | None = None
    preview: bool = False
    cache_ttl: float = DEFAULT_CACHE_TTL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    pages_endpoint: str = "/pages"
    content_endpoint: str = "/pages/{page_id}"
    pygments_style: str = "monokai"
    output_dir: Path = Path("public")
    site_name: str = "SelfHelp"
    log_level: str = "INFO"


__all__ = ["Settings", "SettingsError"]
