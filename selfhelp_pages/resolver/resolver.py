"""Resolve a page keyword or request path to its content tree.

:class:`PageContentResolver` combines the navigation snapshot, a short-lived
cache of serialized content responses, in-flight request de-duplication, and
an editor override slot:

1. An override set for a keyword always wins, before any await.
2. Otherwise the keyword is looked up in the current
   :class:`~selfhelp_pages.navigation.NavigationIndex` and the
   ``(page_id, language)`` cache entry is used while fresh.
3. On a miss, one fetch per key is started; concurrent callers for the same
   key await that same fetch. Failures fall back to the last good content
   when one exists, otherwise they are reported as an ``error`` resolution.

Expected failures (network errors, unknown pages) never raise out of
:meth:`PageContentResolver.resolve`; they come back as a
:class:`Resolution` with ``status == "error"``.

Example
-------
>>> import asyncio
>>> from selfhelp_pages.navigation import NavigationStore, PageRecord
>>> from selfhelp_pages.resolver import PageContentResolver
>>> class Source:
...     async def fetch_content(self, page_id, language=None):
...         return [{"id": 1, "style_name": "heading", "title": {"content": "Hi"}}]
>>> store = NavigationStore()
>>> _ = store.replace([PageRecord(id=7, keyword="home", url="/home")])
>>> resolver = PageContentResolver(Source(), store)
>>> asyncio.run(resolver.resolve("home")).status
<ResolutionStatus.READY: 'ready'>
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses as dc
import enum
import logging
import typing as typ

from selfhelp_pages.config import Settings, get_settings
from selfhelp_pages.content import ContentNode, parse_nodes

from .cache import TtlCache
from .client import ContentFetchError, PageNotFoundError

if typ.TYPE_CHECKING:
    from selfhelp_pages.navigation import NavigationStore, PageRecord

logger = logging.getLogger(__name__)

CacheKey = tuple[int, str | None]
_EXPECTED_FAILURES = (ContentFetchError, PageNotFoundError)


class ResolutionStatus(enum.StrEnum):
    """Tri-state reported to callers."""

    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class FetchState(enum.Enum):
    """Lifecycle of one ``(page_id, language)`` key."""

    IDLE = "idle"
    FETCHING = "fetching"
    READY = "ready"
    FAILED = "failed"


@dc.dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving a page.

    Attributes
    ----------
    status : ResolutionStatus
        ``loading``, ``ready`` or ``error``.
    nodes : tuple[ContentNode | None, ...]
        Root content nodes (``None`` slots preserved) when available.
    error : str | None
        Failure description; may accompany ``ready`` when stale content was
        served after a failed refresh.
    stale : bool
        Whether ``nodes`` come from an expired cache entry.
    page_id : int | None
        Resolved page id, when the keyword or path was known.
    params : dict[str, str]
        Route parameters extracted by :meth:`PageContentResolver.resolve_path`.
    from_override : bool
        Whether ``nodes`` came from the editor override slot.
    """

    status: ResolutionStatus
    nodes: tuple[ContentNode | None, ...] = ()
    error: str | None = None
    stale: bool = False
    page_id: int | None = None
    params: dict[str, str] = dc.field(default_factory=dict)
    from_override: bool = False

    @property
    def ok(self) -> bool:
        return self.status is ResolutionStatus.READY


class ContentSource(typ.Protocol):
    """Anything that can fetch the serialized content of a page."""

    async def fetch_content(self, page_id: int, language: str | None = None) -> object: ...


class PageContentResolver:
    """Resolve keywords and paths to content with caching and overrides."""

    def __init__(
        self,
        source: ContentSource,
        navigation: NavigationStore,
        *,
        settings: Settings | None = None,
        cache: TtlCache[CacheKey, object] | None = None,
    ) -> None:
        """Initialize the resolver.

        Parameters
        ----------
        source : ContentSource
            Transport used to fetch content (for example
            :class:`~selfhelp_pages.resolver.CmsApiClient`).
        navigation : NavigationStore
            Holder of the current navigation snapshot used for keyword and
            path lookups.
        settings : Settings, optional
            Default language and cache TTL; defaults to the process-wide
            settings.
        cache : TtlCache, optional
            Cache of serialized responses; defaults to a fresh cache using
            ``settings.cache_ttl``.
        """
        self.settings = settings or get_settings()
        self.navigation = navigation
        self.cache: TtlCache[CacheKey, object] = (
            cache if cache is not None else TtlCache(self.settings.cache_ttl)
        )
        self._source = source
        self._inflight: dict[CacheKey, asyncio.Task[object]] = {}
        self._states: dict[CacheKey, FetchState] = {}
        self._errors: dict[CacheKey, str] = {}
        self._overrides: dict[str, tuple[ContentNode | None, ...]] = {}

    def set_override(
        self, keyword: str, nodes: cabc.Iterable[ContentNode | None] | object
    ) -> None:
        """Inject content for ``keyword`` that preempts cache and fetch.

        ``nodes`` may be parsed :class:`ContentNode` values or a raw content
        payload, which is parsed here.
        """
        self._overrides[keyword] = _as_nodes(nodes)

    def clear_override(self, keyword: str) -> bool:
        """Remove the override for ``keyword``; return whether one existed."""
        return self._overrides.pop(keyword, None) is not None

    def has_override(self, keyword: str) -> bool:
        return keyword in self._overrides

    async def resolve(self, keyword: str, language: str | None = None) -> Resolution:
        """Return the content for the page named ``keyword``.

        Parameters
        ----------
        keyword : str
            Page keyword as listed in the navigation.
        language : str, optional
            Language variant; defaults to ``settings.language``.
        """
        override = self._override_resolution(keyword)
        if override is not None:
            return override
        record = self.navigation.current.lookup(keyword)
        if record is None:
            return Resolution(
                status=ResolutionStatus.ERROR, error=f"Unknown page keyword {keyword!r}."
            )
        return await self._resolve_record(record, language, {})

    async def resolve_path(self, path: str, language: str | None = None) -> Resolution:
        """Match ``path`` against the page URL templates, then resolve the page.

        The extracted route parameters are returned in ``Resolution.params``.
        """
        hit = self.navigation.current.match_path(path)
        if hit is None:
            return Resolution(
                status=ResolutionStatus.ERROR, error=f"No page matches path {path!r}."
            )
        override = self._override_resolution(hit.target.keyword, hit.params)
        if override is not None:
            return override
        return await self._resolve_record(hit.target, language, hit.params)

    async def prefetch(
        self, keywords: cabc.Iterable[str], language: str | None = None
    ) -> dict[str, Resolution]:
        """Resolve several keywords concurrently to warm the cache."""
        unique = list(dict.fromkeys(keywords))
        results = await asyncio.gather(*(self.resolve(key, language) for key in unique))
        return dict(zip(unique, results, strict=True))

    def peek(self, keyword: str, language: str | None = None) -> Resolution:
        """Return the current state for ``keyword`` without fetching."""
        override = self._override_resolution(keyword)
        if override is not None:
            return override
        record = self.navigation.current.lookup(keyword)
        if record is None:
            return Resolution(
                status=ResolutionStatus.ERROR, error=f"Unknown page keyword {keyword!r}."
            )
        key = self._key(record, language)
        stale_payload = self.cache.get_stale(key)
        nodes = () if stale_payload is None else tuple(parse_nodes(stale_payload))
        if self.cache.is_fresh(key):
            return Resolution(status=ResolutionStatus.READY, nodes=nodes, page_id=record.id)
        state = self.state(keyword, language)
        if state is FetchState.FAILED:
            return Resolution(
                status=ResolutionStatus.ERROR,
                nodes=nodes,
                error=self._errors.get(key),
                stale=stale_payload is not None,
                page_id=record.id,
            )
        if stale_payload is not None and state is not FetchState.FETCHING:
            return Resolution(
                status=ResolutionStatus.READY, nodes=nodes, stale=True, page_id=record.id
            )
        return Resolution(
            status=ResolutionStatus.LOADING,
            nodes=nodes,
            stale=stale_payload is not None,
            page_id=record.id,
        )

    def state(self, keyword: str, language: str | None = None) -> FetchState:
        """Return the fetch lifecycle state of ``keyword`` in ``language``."""
        record = self.navigation.current.lookup(keyword)
        if record is None:
            return FetchState.IDLE
        return self._states.get(self._key(record, language), FetchState.IDLE)

    def invalidate(self, keyword: str | None = None, language: str | None = None) -> int:
        """Drop cached content for a keyword and/or language; all when both are ``None``.

        Returns the number of cache entries removed.
        """
        page_id: int | None = None
        if keyword is not None:
            record = self.navigation.current.lookup(keyword)
            if record is None:
                return 0
            page_id = record.id

        def doomed(key: CacheKey) -> bool:
            key_page, key_language = key
            if page_id is not None and key_page != page_id:
                return False
            return language is None or key_language == language

        return self.cache.invalidate(doomed)

    async def _resolve_record(
        self, record: PageRecord, language: str | None, params: dict[str, str]
    ) -> Resolution:
        key = self._key(record, language)
        payload = self.cache.get(key)
        if payload is not None:
            logger.debug("Content cache hit for %s", key)
            return self._ready(payload, record, params)
        try:
            payload = await self._join(key)
        except _EXPECTED_FAILURES as exc:
            override = self._override_resolution(record.keyword, params)
            if override is not None:
                return override
            stale = self.cache.get_stale(key)
            if stale is None:
                return Resolution(
                    status=ResolutionStatus.ERROR,
                    error=str(exc),
                    page_id=record.id,
                    params=params,
                )
            logger.warning("Serving stale content for %r after failure: %s", record.keyword, exc)
            return self._ready(stale, record, params, stale=True, error=str(exc))
        override = self._override_resolution(record.keyword, params)
        if override is not None:
            return override
        return self._ready(payload, record, params)

    async def _join(self, key: CacheKey) -> object:
        """Await the in-flight fetch for ``key``, starting one if needed.

        The fetch is shielded: a caller that is cancelled stops waiting, but
        the fetch still completes and fills the cache.
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._fetch(key))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug("Joining in-flight fetch for %s", key)
        return await asyncio.shield(task)

    async def _fetch(self, key: CacheKey) -> object:
        page_id, language = key
        self._states[key] = FetchState.FETCHING
        try:
            payload = await self._source.fetch_content(page_id, language)
            if payload is None:
                payload = []
            try:
                parse_nodes(payload)
            except TypeError as exc:
                msg = f"Content for page {page_id} is malformed: {exc}"
                raise ContentFetchError(msg) from exc
        except BaseException as exc:
            self._states[key] = FetchState.FAILED
            self._errors[key] = str(exc) or type(exc).__name__
            if isinstance(exc, _EXPECTED_FAILURES):
                logger.warning("Content fetch for page %s failed: %s", page_id, exc)
            raise
        self.cache.put(key, payload)
        self._states[key] = FetchState.READY
        self._errors.pop(key, None)
        return payload

    def _forget(self, key: CacheKey, task: asyncio.Task[object]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            task.exception()

    def _key(self, record: PageRecord, language: str | None) -> CacheKey:
        return (record.id, language if language is not None else self.settings.language)

    def _override_resolution(
        self, keyword: str, params: dict[str, str] | None = None
    ) -> Resolution | None:
        nodes = self._overrides.get(keyword)
        if nodes is None:
            return None
        record = self.navigation.current.lookup(keyword)
        return Resolution(
            status=ResolutionStatus.READY,
            nodes=nodes,
            page_id=None if record is None else record.id,
            params=dict(params or {}),
            from_override=True,
        )

    @staticmethod
    def _ready(
        payload: object,
        record: PageRecord,
        params: dict[str, str],
        *,
        stale: bool = False,
        error: str | None = None,
    ) -> Resolution:
        return Resolution(
            status=ResolutionStatus.READY,
            nodes=tuple(parse_nodes(payload)),
            error=error,
            stale=stale,
            page_id=record.id,
            params=dict(params),
        )


def _as_nodes(nodes: object) -> tuple[ContentNode | None, ...]:
    if isinstance(nodes, cabc.Iterable) and not isinstance(nodes, (str, bytes, cabc.Mapping)):
        items = list(typ.cast("cabc.Iterable[object]", nodes))
        if all(item is None or isinstance(item, ContentNode) for item in items):
            return tuple(typ.cast("list[ContentNode | None]", items))
        return tuple(parse_nodes(items))
    return tuple(parse_nodes(nodes))


__all__ = [
    "CacheKey",
    "ContentSource",
    "FetchState",
    "PageContentResolver",
    "Resolution",
    "ResolutionStatus",
]
