"""
Process-local cache backend with per-entry TTL.

Features:
- LRU eviction once max_size entries are held
- Periodic sweep of expired entries
- Tag index for invalidation
"""

import json
import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from rbac_console.infrastructure.cache.base import CacheBackend, CacheStats

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Serialized value with expiry on the backend's clock."""

    payload: str
    expires_at: float
    tags: frozenset[str]

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class MemoryCacheBackend(CacheBackend):
    """
    In-memory LRU cache with TTL and tag support.

    Values are stored JSON-encoded so callers get a fresh copy on every read
    and cannot mutate cached state. Entries leave the cache:
    - When an expired entry is read
    - On the periodic sweep, at most every cleanup_interval seconds
    - As least recently used, when a set would exceed max_size
    - Explicitly by tag
    - On process restart (nothing is persisted)
    """

    name = "memory"

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        max_size: int = 10_000,
        cleanup_interval: int = 60,
    ):
        self._clock = clock
        self._max_size = max_size
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = clock()
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._tags: dict[str, set[str]] = {}
        self._stats = CacheStats(backend=self.name)

    def is_available(self) -> bool:
        return True

    async def get(self, key: str) -> Any | None:
        self._maybe_cleanup()
        entry = self._entries.get(key)
        if entry is None:
            self._stats.misses += 1
            logger.debug(f"Cache MISS: {key}")
            return None
        if entry.is_expired(self._clock()):
            self._remove(key)
            self._stats.misses += 1
            self._stats.evictions += 1
            logger.debug(f"Cache EXPIRED: {key}")
            return None
        self._entries.move_to_end(key)
        self._stats.hits += 1
        logger.debug(f"Cache HIT: {key}")
        return json.loads(entry.payload)

    async def set(self, key: str, value: Any, ttl: int, tags: Iterable[str] = ()) -> bool:
        if ttl <= 0:
            return False
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error(f"Cache set error for key {key}: {e}")
            return False

        self._maybe_cleanup()
        self._remove(key)
        self._evict_if_needed()
        tag_set = frozenset(tags)
        self._entries[key] = CacheEntry(payload=payload, expires_at=self._clock() + ttl, tags=tag_set)
        for tag in tag_set:
            self._tags.setdefault(tag, set()).add(key)
        self._stats.sets += 1
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
        return True

    async def delete(self, key: str) -> bool:
        return self._remove(key)

    async def invalidate_tag(self, tag: str) -> int:
        keys = self._tags.pop(tag, set())
        for key in keys:
            self._remove(key)
        self._stats.invalidations += 1
        if keys:
            logger.info(f"Cache INVALIDATE: tag={tag} ({len(keys)} keys deleted)")
        return len(keys)

    async def clear(self) -> bool:
        self._entries.clear()
        self._tags.clear()
        logger.warning("Cache CLEARED: All keys deleted")
        return True

    async def get_stats(self) -> CacheStats:
        self._stats.entries = len(self._entries)
        self._stats.tags = {tag: len(keys) for tag, keys in self._tags.items()}
        return self._stats

    def size(self) -> int:
        return len(self._entries)

    def _maybe_cleanup(self) -> None:
        """Drop every expired entry, at most once per cleanup interval"""
        now = self._clock()
        if now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now

        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            self._remove(key)
        self._stats.evictions += len(expired)
        if expired:
            logger.debug(f"Cache CLEANUP: {len(expired)} expired entries removed")

    def _evict_if_needed(self) -> None:
        """Make room for one entry by dropping the least recently used"""
        while len(self._entries) >= self._max_size:
            oldest = next(iter(self._entries))
            self._remove(oldest)
            self._stats.evictions += 1

    def _remove(self, key: str) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        for tag in entry.tags:
            members = self._tags.get(tag)
            if members is not None:
                members.discard(key)
                if not members:
                    del self._tags[tag]
        return True
