"""Small TTL cache that keeps expired entries for stale reads."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import time
import typing as typ

K = typ.TypeVar("K")
V = typ.TypeVar("V")


@dc.dataclass(frozen=True, slots=True)
class CacheStats:
    """Counters describing cache effectiveness."""

    hits: int
    misses: int
    size: int


@dc.dataclass(frozen=True)
class _Entry(typ.Generic[V]):
    value: V
    stored_at: float


class TtlCache(typ.Generic[K, V]):
    """Map keys to values that count as fresh for ``ttl`` seconds.

    Expired entries are not evicted on read: :meth:`get` treats them as a
    miss while :meth:`get_stale` still returns them, which lets callers fall
    back to the last good value when a refresh fails.
    """

    def __init__(
        self, ttl: float, *, clock: cabc.Callable[[], float] = time.monotonic
    ) -> None:
        if ttl < 0:
            msg = f"Cache TTL must not be negative, got {ttl}."
            raise ValueError(msg)
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[K, _Entry[V]] = {}
        self._hits = 0
        self._misses = 0

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: K) -> V | None:
        """Return the value for ``key`` while it is fresh, else ``None``."""
        entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry):
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def get_stale(self, key: K) -> V | None:
        """Return the stored value regardless of age."""
        entry = self._entries.get(key)
        return None if entry is None else entry.value

    def is_fresh(self, key: K) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._is_fresh(entry)

    def put(self, key: K, value: V) -> None:
        self._entries[key] = _Entry(value=value, stored_at=self._clock())

    def invalidate(self, predicate: cabc.Callable[[K], bool] | None = None) -> int:
        """Drop entries whose key satisfies ``predicate`` (all when ``None``).

        Returns the number of entries removed.
        """
        doomed = [key for key in self._entries if predicate is None or predicate(key)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> CacheStats:
        return CacheStats(hits=self._hits, misses=self._misses, size=len(self._entries))

    def _is_fresh(self, entry: _Entry[V]) -> bool:
        return self._clock() - entry.stored_at < self.ttl


__all__ = ["CacheStats", "TtlCache"]
