"""Tag-based read-through caching in front of the permission store"""
from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Iterable
from functools import wraps
from typing import Any

from rbac_console.domain.enums import CacheTag
from rbac_console.infrastructure.cache.base import CacheBackend, CacheInvalidationError
from rbac_console.infrastructure.cache.memory_cache import MemoryCacheBackend
from rbac_console.infrastructure.cache.redis_cache import RedisCacheBackend
from rbac_console.infrastructure.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def generate_cache_key(base: str, *args: Any, **params: Any) -> str:
    """
    Deterministic key from a prefix, positional parts and keyword params.

    Keyword params are sorted and JSON-encoded so that equal filters always
    produce the same key regardless of argument order.
    """
    parts = [base, *(str(arg) for arg in args)]
    if params:
        parts.append(
            "-".join(f"{name}:{json.dumps(params[name], default=str, sort_keys=True)}" for name in sorted(params))
        )
    return ":".join(parts)


class CacheCoordinator:
    """
    Fronts read paths with a cache and invalidates by tag after writes.

    Every entry is tagged ``all`` in addition to its declared tags, so
    ``invalidate(CacheTag.ALL)`` empties the cache. An entry's TTL is the
    shortest TTL among its declared tags; the implicit ``all`` tag only
    affects invalidation. Read and write failures are logged and never reach
    the caller: a failed read falls back to the loader. A failed invalidation
    raises CacheInvalidationError once every tag has been attempted.

    Each tag carries a generation that ``invalidate`` bumps. A value loaded
    while one of its tags was invalidated is not stored, so a read that
    overlaps a write cannot put the pre-write data back.
    """

    def __init__(self, backend: CacheBackend, ttls: dict[str, int] | None = None):
        self.backend = backend
        self.ttls = ttls or {
            CacheTag.ROLES.value: 1800,
            CacheTag.USER_ROLES.value: 300,
            CacheTag.ALL.value: 60,
        }
        self._generations: dict[str, int] = {}

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CacheCoordinator:
        """Build the coordinator for the configured backend"""
        settings = settings or get_settings()
        backend: CacheBackend
        if settings.cache_backend == "redis":
            backend = RedisCacheBackend()
        else:
            backend = MemoryCacheBackend(
                max_size=settings.memory_cache_max_size,
                cleanup_interval=settings.memory_cache_cleanup_interval,
            )
        return cls(
            backend,
            ttls={
                CacheTag.ROLES.value: settings.cache_ttl_roles,
                CacheTag.USER_ROLES.value: settings.cache_ttl_user_roles,
                CacheTag.ALL.value: settings.cache_ttl_all,
            },
        )

    async def connect(self):
        if isinstance(self.backend, RedisCacheBackend):
            await self.backend.connect()

    async def disconnect(self):
        if isinstance(self.backend, RedisCacheBackend):
            await self.backend.disconnect()

    def ttl_for(self, tags: Iterable[str | CacheTag]) -> int:
        """Shortest TTL among the given tags (the ``all`` TTL when none given)"""
        values = [self.ttls[_tag_value(tag)] for tag in tags if _tag_value(tag) in self.ttls]
        return min(values) if values else self.ttls[CacheTag.ALL.value]

    async def get(self, key: str) -> Any | None:
        try:
            return await self.backend.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    async def set(
        self,
        key: str,
        value: Any,
        tags: Iterable[str | CacheTag],
        ttl: int | None = None,
        since: dict[str, int] | None = None,
    ) -> bool:
        """
        Store value under key for the tag-derived TTL.

        With ``since`` (taken from ``generations`` before loading) the write
        is skipped if any of those tags has been invalidated in between.
        """
        tag_values = {_tag_value(tag) for tag in tags}
        effective_ttl = self.ttl_for(tag_values)
        if ttl is not None:
            effective_ttl = min(effective_ttl, ttl)
        tag_values.add(CacheTag.ALL.value)
        if since is not None and since != self.generations(tag_values):
            logger.debug(f"Cache SET skipped, invalidated while loading: {key}")
            return False
        try:
            return await self.backend.set(key, value, effective_ttl, tags=tag_values)
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False

    async def remember(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        tags: Iterable[str | CacheTag],
        ttl: int | None = None,
    ) -> Any:
        """
        Return the cached value for key, or load, store and return it.

        ttl can only shorten the tag-derived TTL. None results are not cached.
        """
        cached_value = await self.get(key)
        if cached_value is not None:
            return cached_value

        tag_list = list(tags)
        before = self.generations(tag_list)
        value = await loader()
        if value is not None:
            await self.set(key, value, tag_list, ttl=ttl, since=before)
        return value

    def generations(self, tags: Iterable[str | CacheTag]) -> dict[str, int]:
        """Current generation of each tag, the implicit ``all`` included"""
        tag_values = {_tag_value(tag) for tag in tags} | {CacheTag.ALL.value}
        return {tag: self._generations.get(tag, 0) for tag in tag_values}

    async def invalidate(self, *tags: str | CacheTag) -> int:
        """
        Drop every entry carrying any of the tags.

        Raises CacheInvalidationError naming the tags whose entries could not
        be removed; the remaining tags are still invalidated.
        """
        removed = 0
        failed: list[str] = []
        for tag in tags:
            tag_value = _tag_value(tag)
            self._generations[tag_value] = self._generations.get(tag_value, 0) + 1
            try:
                removed += await self.backend.invalidate_tag(tag_value)
            except Exception as e:
                logger.error(f"Cache invalidation failed for tag {tag_value}: {e}")
                failed.append(tag_value)
        if failed:
            raise CacheInvalidationError(failed)
        return removed

    async def clear(self) -> bool:
        self._generations[CacheTag.ALL.value] = self._generations.get(CacheTag.ALL.value, 0) + 1
        try:
            return await self.backend.clear()
        except Exception as e:
            logger.warning(f"Cache clear failed: {e}")
            return False

    async def stats(self) -> dict[str, Any]:
        stats = await self.backend.get_stats()
        data = stats.to_dict()
        data["available"] = self.backend.is_available()
        data["ttls"] = dict(self.ttls)
        return data


def _tag_value(tag: str | CacheTag) -> str:
    return tag.value if isinstance(tag, CacheTag) else tag


def cached(
    key_prefix: str,
    tags: Iterable[str | CacheTag],
    key_builder: Callable[..., str] | None = None,
):
    """
    Decorator for caching async method results through ``self.cache``

    Args:
        key_prefix: Prefix for cache key (e.g., "roles:list")
        tags: Invalidation tags for the cached value
        key_builder: Optional function to build cache key from args
                    If None, uses all args/kwargs as key components

    Example:
        class RoleService:
            @cached(key_prefix="roles:detail", tags=[CacheTag.ROLES])
            async def _load_role(self, role_id: str) -> dict:
                # Cache key will be: roles:detail:<role_id>
                ...

    Results must be JSON-serializable. Without a coordinator on ``self``
    the method runs uncached.
    """
    tag_list = list(tags)

    def decorator(func: Callable[..., Awaitable[Any]]):
        @wraps(func)
        async def wrapper(self, *args, **kwargs):
            cache: CacheCoordinator | None = getattr(self, "cache", None)
            if cache is None:
                return await func(self, *args, **kwargs)

            if key_builder:
                cache_key = key_builder(*args, **kwargs)
            else:
                cache_key = generate_cache_key(key_prefix, *args, **kwargs)

            return await cache.remember(
                cache_key, lambda: func(self, *args, **kwargs), tag_list
            )

        return wrapper

    return decorator
