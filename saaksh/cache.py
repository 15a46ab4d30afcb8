"""In-memory TTL cache for analysis results.

Entries expire lazily (checked on read) and, when the store is full, the
oldest-inserted entry is evicted. This is insertion-order eviction, not
LRU: reading an entry does not refresh its position.

There is no lock. The cache is only touched from the event loop thread;
sharing one instance across threads requires external locking around
``get``/``put``.

Usage:
    cache = ResultCache(ttl_seconds=300, max_entries=100)
    key = fingerprint(text)
    cached = cache.get(key)
    if cached is None:
        cached = await oracle.analyze(text)
        cache.put(key, cached)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

DEFAULT_FINGERPRINT_LENGTH = 500


def fingerprint(text: str, length: int = DEFAULT_FINGERPRINT_LENGTH) -> str:
    """Normalized, truncated text used as a cache key.

    Two long texts sharing the same normalized prefix map to the same key
    and share one cache slot. This is a known approximation.
    """
    return text.strip().lower()[:length]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    created_at: float


class ResultCache(Generic[T]):
    """Bounded, time-expiring key/value store."""

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_entries: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: dict[str, CacheEntry[T]] = {}
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> T | None:
        """Return the cached value, or None on a miss or expired entry."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() - entry.created_at >= self._ttl:
            del self._entries[key]
            self._misses += 1
            return None

        self._hits += 1
        return entry.value

    def put(self, key: str, value: T) -> None:
        """Store a value, evicting the oldest entry if at capacity."""
        if key in self._entries:
            # Re-insert so the refreshed entry becomes the newest
            del self._entries[key]
        elif len(self._entries) >= self._max_entries:
            oldest_key = next(iter(self._entries))
            del self._entries[oldest_key]

        self._entries[key] = CacheEntry(value=value, created_at=self._clock())

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    @property
    def stats(self) -> dict:
        """Cache hit/miss statistics."""
        total = self._hits + self._misses
        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
        }
