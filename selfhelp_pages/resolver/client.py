"""HTTP client for the CMS page-list and page-content endpoints.

This is the transport collaborator of the resolver. It owns retries
(``urllib3`` ``Retry`` on idempotent requests), timeouts, JSON decoding, and
the mapping of transport failures onto :class:`ContentFetchError` and
:class:`PageNotFoundError`. The async ``fetch_*`` methods run the blocking
``requests`` calls in a worker thread so the event loop keeps serving other
resolution keys.

Example
-------
>>> from selfhelp_pages.config import Settings
>>> from selfhelp_pages.resolver import CmsApiClient
>>> client = CmsApiClient(Settings(api_base_url="https://cms.invalid/api"))  # doctest: +SKIP
>>> pages = client.get_pages("de-CH")  # doctest: +SKIP
>>> pages[0].keyword  # doctest: +SKIP
'home'
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import logging
import typing as typ
from http import HTTPStatus

import msgspec
import msgspec.json as msgspec_json
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from selfhelp_pages.config import Settings, get_settings
from selfhelp_pages.content.nodes import unwrap_envelope
from selfhelp_pages.navigation import PageRecord, PageRecordError

logger = logging.getLogger(__name__)

_ACCEPT_HEADER = "application/json"


class ContentFetchError(RuntimeError):
    """Raised when the backend cannot be reached or answers with an error."""


class PageNotFoundError(LookupError):
    """Raised when a page keyword or id does not exist."""


def build_session() -> requests.Session:
    """Return a session that retries idempotent requests on 5xx responses."""
    session = requests.Session()
    retry = Retry(
        total=5,
        read=5,
        connect=3,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class CmsApiClient:
    """Thin wrapper around the CMS frontend endpoints."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        session: requests.Session | None = None,
        token: str | None = None,
    ) -> None:
        """Initialise the client.

        Parameters
        ----------
        settings : Settings, optional
            Base URL, endpoints, timeout, and preview flag; defaults to the
            process-wide settings.
        session : requests.Session, optional
            Preconfigured session; defaults to :func:`build_session`.
        token : str | None, optional
            Bearer token added to every request when provided.
        """
        self.settings = settings or get_settings()
        self._session = session or build_session()
        self._headers = {
            "Accept": _ACCEPT_HEADER,
            "User-Agent": "selfhelp-pages/0.1",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    def close(self) -> None:
        self._session.close()

    def get_pages(self, language: str | None = None) -> list[PageRecord]:
        """Return the flat page list for ``language``.

        Records without an id or keyword are skipped and logged.
        """
        payload = self._get_json(self.settings.pages_endpoint, self._params(language))
        if not isinstance(payload, list):
            msg = f"Page list response must be a list, got {type(payload).__name__}."
            raise ContentFetchError(msg)
        records: list[PageRecord] = []
        for item in typ.cast("list[object]", payload):
            if not isinstance(item, cabc.Mapping):
                logger.warning("Skipping page record that is not a mapping: %r", item)
                continue
            try:
                records.append(PageRecord.from_payload(item))
            except PageRecordError as exc:
                logger.warning("Skipping page record: %s", exc)
        return records

    def get_content(self, page_id: int, language: str | None = None) -> object:
        """Return the decoded content payload for ``page_id``.

        The payload is returned as decoded JSON (root-level list of nodes,
        ``null`` slots preserved) so callers can cache the serialized form and
        parse fresh nodes on every use.
        """
        path = self.settings.content_endpoint.format(page_id=page_id)
        params = self._params(language)
        if self.settings.preview:
            params["preview"] = "1"
        return self._get_json(path, params)

    async def fetch_pages(self, language: str | None = None) -> list[PageRecord]:
        return await asyncio.to_thread(self.get_pages, language)

    async def fetch_content(self, page_id: int, language: str | None = None) -> object:
        return await asyncio.to_thread(self.get_content, page_id, language)

    def _params(self, language: str | None) -> dict[str, str]:
        effective = language if language is not None else self.settings.language
        return {} if effective is None else {"language": effective}

    def _get_json(self, path: str, params: cabc.Mapping[str, str]) -> object:
        url = f"{self.settings.api_base_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            response = self._session.get(
                url,
                params=dict(params),
                headers=self._headers,
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as exc:
            msg = f"Failed to reach CMS endpoint '{url}': {exc}"
            raise ContentFetchError(msg) from exc

        if response.status_code == HTTPStatus.NOT_FOUND:
            msg = f"CMS endpoint '{url}' returned 404."
            raise PageNotFoundError(msg)
        if response.status_code >= HTTPStatus.BAD_REQUEST:
            snippet = response.text[:200]
            msg = f"CMS request '{url}' failed with status {response.status_code}: {snippet}"
            raise ContentFetchError(msg)

        try:
            payload = msgspec_json.decode(response.content)
        except msgspec.DecodeError as exc:
            msg = f"CMS response from '{url}' was not valid JSON"
            raise ContentFetchError(msg) from exc
        return unwrap_envelope(payload)


__all__ = [
    "CmsApiClient",
    "ContentFetchError",
    "PageNotFoundError",
    "build_session",
]
