"""Keyed cache stores for people entries.

A cache store is shared between every `~ldapdirectory.directory.Directory`
that is given it, so that a person looked up through one directory is not
searched for again through another until the entry expires. The store does no
locking. Concurrent writers of the same key race and the last write wins.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Protocol

from cachetools import TLRUCache

from .constants import DEFAULT_CACHE_SIZE

__all__ = ["CacheStore", "TTLCacheStore"]


class CacheStore(Protocol):
    """Interface of a keyed store with per-entry lifetimes."""

    def clear(self) -> None:
        """Invalidate the cache.

        Used primarily for testing.
        """

    def get(self, key: str) -> Any | None:
        """Return the cached value for a key, or `None` if absent."""

    def has(self, key: str) -> bool:
        """Return whether an unexpired value is cached for a key."""

    def put(self, key: str, value: Any, ttl: timedelta) -> None:
        """Store a value that expires after ``ttl``."""


@dataclass(frozen=True, slots=True)
class _CacheItem:
    """A stored value along with its lifetime."""

    value: Any
    ttl: float


def _time_to_use(key: str, item: _CacheItem, now: float) -> float:
    return now + item.ttl


class TTLCacheStore:
    """In-process cache store with a lifetime per entry.

    Parameters
    ----------
    maxsize
        Maximum number of entries. When full, the entry that expires first
        is evicted to make room.
    timer
        Clock used to expire entries. Overridden by the test suite.
    """

    def __init__(
        self, maxsize: int = DEFAULT_CACHE_SIZE, timer: Any = time.monotonic
    ) -> None:
        self._maxsize = maxsize
        self._timer = timer
        self._cache: TLRUCache[str, _CacheItem] = TLRUCache(
            maxsize, ttu=_time_to_use, timer=timer
        )

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache = TLRUCache(
            self._maxsize, ttu=_time_to_use, timer=self._timer
        )

    def get(self, key: str) -> Any | None:
        item = self._cache.get(key)
        return item.value if item else None

    def has(self, key: str) -> bool:
        return key in self._cache

    def put(self, key: str, value: Any, ttl: timedelta) -> None:
        self._cache[key] = _CacheItem(value, ttl.total_seconds())
