"""Unit tests for the TTL cache and the page content resolver."""

from __future__ import annotations

import asyncio

import pytest

from selfhelp_pages.config import Settings
from selfhelp_pages.content import ContentNode
from selfhelp_pages.navigation import NavigationStore, PageRecord
from selfhelp_pages.resolver import (
    ContentFetchError,
    FetchState,
    PageContentResolver,
    PageNotFoundError,
    ResolutionStatus,
    TtlCache,
)

HOME_PAYLOAD = [
    None,
    {"id": 1, "style_name": "heading", "title": {"content": "Home"}},
]
PAGES = [
    PageRecord(id=10, keyword="home", url="/home", nav_position=1),
    PageRecord(id=11, keyword="record", url="/records/[i:record_id]"),
]


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class FakeSource:
    """In-memory content source that can hold fetches until released."""

    def __init__(self, payload: object = HOME_PAYLOAD) -> None:
        self.payload = payload
        self.error: Exception | None = None
        self.calls: list[tuple[int, str | None]] = []
        self.gate: asyncio.Event | None = None
        self.started: asyncio.Event | None = None

    def hold(self) -> None:
        self.gate = asyncio.Event()
        self.started = asyncio.Event()

    async def fetch_content(self, page_id: int, language: str | None = None) -> object:
        self.calls.append((page_id, language))
        if self.started is not None:
            self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.payload


def _store() -> NavigationStore:
    store = NavigationStore()
    store.replace(PAGES)
    return store


def _resolver(
    source: FakeSource, clock: FakeClock | None = None, **settings: object
) -> PageContentResolver:
    config = Settings(**settings)  # type: ignore[arg-type]
    cache: TtlCache[tuple[int, str | None], object] = TtlCache(
        config.cache_ttl, clock=clock or FakeClock()
    )
    return PageContentResolver(source, _store(), settings=config, cache=cache)


def test_cache_freshness_and_stale_reads() -> None:
    clock = FakeClock()
    cache: TtlCache[str, int] = TtlCache(1.0, clock=clock)
    cache.put("a", 1)
    assert cache.get("a") == 1, "expected a fresh hit"
    clock.now += 1.5
    assert cache.get("a") is None, "expected expiry after the ttl"
    assert cache.get_stale("a") == 1, "expected stale value kept"
    stats = cache.stats()
    assert (stats.hits, stats.misses, stats.size) == (1, 1, 1), f"unexpected {stats}"
    assert cache.invalidate(lambda key: key == "a") == 1, "expected one removal"
    assert "a" not in cache, "expected the entry gone"


def test_cache_rejects_negative_ttl() -> None:
    with pytest.raises(ValueError, match="negative"):
        TtlCache(-1)


def test_resolve_fetches_and_parses_content() -> None:
    source = FakeSource()
    resolver = _resolver(source, language="de-CH")
    result = asyncio.run(resolver.resolve("home"))
    assert result.status is ResolutionStatus.READY and result.ok, "expected ready"
    assert result.page_id == 10, "expected the page id from navigation"
    assert result.nodes[0] is None, "expected null slots preserved"
    node = result.nodes[1]
    assert isinstance(node, ContentNode) and node.field("title") == "Home", (
        "expected parsed content nodes"
    )
    assert source.calls == [(10, "de-CH")], "expected the default language used"


def test_concurrent_resolves_share_one_fetch() -> None:
    source = FakeSource()
    resolver = _resolver(source)

    async def scenario() -> list[object]:
        source.hold()
        first = asyncio.create_task(resolver.resolve("home"))
        second = asyncio.create_task(resolver.resolve("home"))
        assert source.started is not None and source.gate is not None
        await source.started.wait()
        assert resolver.state("home") is FetchState.FETCHING, "expected fetching state"
        assert resolver.peek("home").status is ResolutionStatus.LOADING, (
            "expected loading while the fetch is in flight"
        )
        source.gate.set()
        return list(await asyncio.gather(first, second))

    results = asyncio.run(scenario())
    assert len(source.calls) == 1, f"expected one fetch, got {source.calls}"
    assert all(result.ok for result in results), "expected both callers ready"  # type: ignore[attr-defined]
    assert resolver.state("home") is FetchState.READY, "expected ready state"


def test_override_wins_while_fetch_in_flight() -> None:
    source = FakeSource()
    resolver = _resolver(source)
    preview = [ContentNode(id=99, kind="plaintext")]

    async def scenario() -> tuple[object, object]:
        source.hold()
        pending = asyncio.create_task(resolver.resolve("home"))
        assert source.started is not None and source.gate is not None
        await source.started.wait()
        resolver.set_override("home", preview)
        immediate = await resolver.resolve("home")
        source.gate.set()
        return immediate, await pending

    immediate, finished = asyncio.run(scenario())
    for result in (immediate, finished):
        assert result.from_override, "expected the override to win"  # type: ignore[attr-defined]
        assert result.nodes == tuple(preview), "expected the override nodes"  # type: ignore[attr-defined]
    assert resolver.cache.get_stale((10, None)) == HOME_PAYLOAD, (
        "expected the fetched content still cached"
    )
    assert resolver.clear_override("home"), "expected the override removed"
    assert not resolver.has_override("home"), "expected no override left"


def test_override_accepts_raw_payload() -> None:
    resolver = _resolver(FakeSource())
    resolver.set_override("home", [{"id": 5, "style_name": "markdown"}])
    result = asyncio.run(resolver.resolve("home"))
    assert result.from_override and result.nodes[0] is not None, "expected parsed nodes"
    assert result.nodes[0].id == 5, "expected the override payload parsed"


def test_fresh_cache_avoids_refetch_until_ttl() -> None:
    source = FakeSource()
    clock = FakeClock()
    resolver = _resolver(source, clock)
    asyncio.run(resolver.resolve("home"))
    asyncio.run(resolver.resolve("home"))
    assert len(source.calls) == 1, "expected the second resolve served from cache"
    clock.now += 5
    asyncio.run(resolver.resolve("home"))
    assert len(source.calls) == 2, "expected a refetch after expiry"


def test_failure_without_cache_reports_error() -> None:
    source = FakeSource()
    source.error = ContentFetchError("backend down")
    resolver = _resolver(source)
    result = asyncio.run(resolver.resolve("home"))
    assert result.status is ResolutionStatus.ERROR, "expected error status"
    assert result.error == "backend down", f"unexpected error {result.error!r}"
    assert result.nodes == (), "expected no nodes"
    assert resolver.state("home") is FetchState.FAILED, "expected failed state"
    assert resolver.peek("home").status is ResolutionStatus.ERROR, "expected peek error"


def test_failure_with_previous_content_serves_stale() -> None:
    source = FakeSource()
    clock = FakeClock()
    resolver = _resolver(source, clock)
    asyncio.run(resolver.resolve("home"))
    clock.now += 5
    source.error = PageNotFoundError("gone")
    result = asyncio.run(resolver.resolve("home"))
    assert result.status is ResolutionStatus.READY and result.stale, (
        "expected stale content after a failed refresh"
    )
    assert result.error == "gone", "expected the failure reported alongside"
    assert len(result.nodes) == 2, "expected the last good content"


def test_unknown_keyword_and_path_are_errors() -> None:
    resolver = _resolver(FakeSource())
    assert asyncio.run(resolver.resolve("nope")).status is ResolutionStatus.ERROR
    assert asyncio.run(resolver.resolve_path("/missing")).status is ResolutionStatus.ERROR


def test_resolve_path_returns_route_params() -> None:
    source = FakeSource()
    resolver = _resolver(source)
    result = asyncio.run(resolver.resolve_path("/records/15"))
    assert result.ok and result.params == {"record_id": "15"}, "expected route params"
    assert source.calls == [(11, None)], "expected the record page fetched"


def test_malformed_payload_is_a_fetch_error() -> None:
    resolver = _resolver(FakeSource(payload={"unexpected": True}))
    result = asyncio.run(resolver.resolve("home"))
    assert result.status is ResolutionStatus.ERROR, "expected error for bad payload"
    assert "malformed" in (result.error or ""), f"unexpected error {result.error!r}"


def test_cancelled_caller_still_fills_cache() -> None:
    source = FakeSource()
    resolver = _resolver(source)

    async def scenario() -> None:
        source.hold()
        abandoned = asyncio.create_task(resolver.resolve("home"))
        assert source.started is not None and source.gate is not None
        await source.started.wait()
        abandoned.cancel()
        with pytest.raises(asyncio.CancelledError):
            await abandoned
        source.gate.set()
        again = await resolver.resolve("home")
        assert again.ok, "expected the shared fetch to finish"

    asyncio.run(scenario())
    assert len(source.calls) == 1, "expected the abandoned fetch reused"
    assert resolver.cache.is_fresh((10, None)), "expected the cache populated"


def test_prefetch_and_invalidate() -> None:
    source = FakeSource()
    resolver = _resolver(source)
    results = asyncio.run(resolver.prefetch(["home", "record", "home"]))
    assert set(results) == {"home", "record"}, "expected one result per keyword"
    assert len(source.calls) == 2, "expected one fetch per page"
    assert resolver.peek("home").status is ResolutionStatus.READY, "expected warm cache"
    assert resolver.invalidate("home") == 1, "expected one entry dropped"
    assert resolver.peek("home").status is ResolutionStatus.LOADING, (
        "expected nothing cached after invalidation"
    )
    assert resolver.invalidate() == 1, "expected the remaining entry dropped"


def test_injected_empty_cache_is_used() -> None:
    clock = FakeClock()
    cache: TtlCache[tuple[int, str | None], object] = TtlCache(0.25, clock=clock)
    resolver = PageContentResolver(FakeSource(), _store(), settings=Settings(), cache=cache)
    assert resolver.cache is cache, "expected the injected cache kept while empty"


def test_override_wins_when_in_flight_fetch_fails() -> None:
    source = FakeSource()
    source.error = ContentFetchError("backend down")
    resolver = _resolver(source)
    preview = [ContentNode(id=42, kind="plaintext")]

    async def scenario() -> object:
        source.hold()
        pending = asyncio.create_task(resolver.resolve("home"))
        assert source.started is not None and source.gate is not None
        await source.started.wait()
        resolver.set_override("home", preview)
        source.gate.set()
        return await pending

    result = asyncio.run(scenario())
    assert result.from_override, "expected the override to win over the failure"  # type: ignore[attr-defined]
    assert result.status is ResolutionStatus.READY, "expected ready status"  # type: ignore[attr-defined]
    assert result.nodes == tuple(preview), "expected the override nodes"  # type: ignore[attr-defined]
    assert resolver.state("home") is FetchState.FAILED, "expected the fetch still failed"
