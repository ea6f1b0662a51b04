"""
Cache backend abstract base class and data models.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


class CacheInvalidationError(Exception):
    """One or more tags could not be invalidated; their entries may be stale."""

    def __init__(self, tags: list[str]):
        self.tags = tags
        super().__init__(f"Cache invalidation failed for tags: {', '.join(tags)}")


@dataclass
class CacheStats:
    """Cache statistics."""

    backend: str
    hits: int = 0
    misses: int = 0
    sets: int = 0
    invalidations: int = 0
    evictions: int = 0
    entries: int | None = None
    tags: dict[str, int] = field(default_factory=dict)

    @property
    def hit_rate(self) -> float:
        """Hit rate percentage."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "backend": self.backend,
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "invalidations": self.invalidations,
            "evictions": self.evictions,
            "hit_rate": round(self.hit_rate, 2),
            "entries": self.entries,
            "tags": dict(self.tags),
        }


class CacheBackend(ABC):
    """
    Abstract base for cache backends.

    Values are JSON-compatible structures. Backends never raise on
    connectivity problems: reads report a miss and writes report False.
    A failed tag invalidation is the exception, since it leaves stale
    entries behind, and is raised to the caller.
    """

    name: str = "abstract"

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend can currently serve requests."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get a value from cache."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int, tags: Iterable[str] = ()) -> bool:
        """Store a value for ttl seconds and record its tag membership."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a value from cache."""

    @abstractmethod
    async def invalidate_tag(self, tag: str) -> int:
        """Delete every entry carrying the tag; returns the number removed."""

    @abstractmethod
    async def clear(self) -> bool:
        """Clear all cache entries."""

    @abstractmethod
    async def get_stats(self) -> CacheStats:
        """Get cache statistics."""
