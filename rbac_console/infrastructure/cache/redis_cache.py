"""Redis-based cache backend shared across processes"""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

import redis.asyncio as redis

from rbac_console.infrastructure.cache.base import CacheBackend, CacheInvalidationError, CacheStats
from rbac_console.infrastructure.config.settings import get_settings

logger = logging.getLogger(__name__)

TAG_KEY_PREFIX = "tag:"


class RedisCacheBackend(CacheBackend):
    """
    Async Redis cache with TTL and tag support

    Tag membership is kept in Redis sets (``tag:<name>``) so that an
    invalidation issued by one process clears entries written by any other.
    When Redis is unreachable every read is a miss and every write a no-op.
    """

    name = "redis"

    def __init__(self, redis_client: redis.Redis | None = None):
        """
        Initialize cache backend

        Args:
            redis_client: Optional Redis client (for testing/DI)
        """
        self.redis = redis_client
        self.settings = get_settings()
        self._connected = redis_client is not None
        self._stats = CacheStats(backend=self.name)

    async def connect(self):
        """Establish Redis connection (call on app startup)"""
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password
                    if self.settings.redis_password
                    else None,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_keepalive=True,
                )
                # Test connection
                await self.redis.ping()
                self._connected = True
                logger.info(
                    f"Redis cache connected: {self.settings.redis_host}:{self.settings.redis_port}"
                )
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning(
                    f"Redis connection failed: {e}. Cache disabled - falling back to database queries."
                )
                self._connected = False
                self.redis = None

    async def disconnect(self):
        """Close Redis connection (call on app shutdown)"""
        if self.redis:
            await self.redis.aclose()
            self._connected = False
            logger.info("Redis cache disconnected")

    def is_available(self) -> bool:
        """Check if Redis is connected and available"""
        return self._connected and self.redis is not None

    async def get(self, key: str) -> Any | None:
        """
        Get value from cache

        Returns:
            Cached value (deserialized from JSON) or None if not found/unavailable
        """
        if not self.is_available() or self.redis is None:
            return None

        redis_client = self.redis  # Local variable for type narrowing
        try:
            value = await redis_client.get(key)
            if value:
                self._stats.hits += 1
                logger.debug(f"Cache HIT: {key}")
                return json.loads(value)
            self._stats.misses += 1
            logger.debug(f"Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int, tags: Iterable[str] = ()) -> bool:
        """
        Set value in cache with TTL and register it under each tag

        Returns:
            True if successful, False otherwise
        """
        if not self.is_available() or self.redis is None or ttl <= 0:
            return False

        redis_client = self.redis  # Local variable for type narrowing
        try:
            serialized = json.dumps(value)
            await redis_client.setex(key, ttl, serialized)
            for tag in tags:
                tag_key = f"{TAG_KEY_PREFIX}{tag}"
                await redis_client.sadd(tag_key, key)
                # Tag set lives at least as long as its longest-lived member
                if await redis_client.ttl(tag_key) < ttl:
                    await redis_client.expire(tag_key, ttl)
            self._stats.sets += 1
            logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache"""
        if not self.is_available() or self.redis is None:
            return False

        redis_client = self.redis  # Local variable for type narrowing
        try:
            await redis_client.delete(key)
            logger.debug(f"Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"Cache delete error for key {key}: {e}")
            return False

    async def invalidate_tag(self, tag: str) -> int:
        """
        Delete all keys registered under a tag

        Returns:
            Number of keys deleted

        Raises:
            CacheInvalidationError: if Redis fails mid-invalidation
        """
        if not self.is_available() or self.redis is None:
            return 0

        redis_client = self.redis  # Local variable for type narrowing
        tag_key = f"{TAG_KEY_PREFIX}{tag}"
        try:
            keys = await redis_client.smembers(tag_key)
            if keys:
                await redis_client.delete(*keys)
            await redis_client.delete(tag_key)
            self._stats.invalidations += 1

            if keys:
                logger.info(f"Cache INVALIDATE: tag={tag} ({len(keys)} keys deleted)")
            return len(keys)
        except Exception as e:
            logger.error(f"Cache invalidate error for tag {tag}: {e}")
            raise CacheInvalidationError([tag]) from e

    async def clear(self) -> bool:
        """
        Clear entire cache (use with caution!)

        Returns:
            True if successful, False otherwise
        """
        if not self.is_available() or self.redis is None:
            return False

        redis_client = self.redis  # Local variable for type narrowing
        try:
            await redis_client.flushdb()
            logger.warning("Cache CLEARED: All keys deleted")
            return True
        except Exception as e:
            logger.error(f"Cache clear error: {e}")
            return False

    async def get_stats(self) -> CacheStats:
        """Process-local hit counters plus Redis-side tag sizes"""
        if self.is_available() and self.redis is not None:
            redis_client = self.redis
            try:
                self._stats.entries = int(await redis_client.dbsize())
                tags: dict[str, int] = {}
                async for tag_key in redis_client.scan_iter(match=f"{TAG_KEY_PREFIX}*"):
                    tags[tag_key[len(TAG_KEY_PREFIX):]] = int(await redis_client.scard(tag_key))
                self._stats.tags = tags
            except Exception as e:
                logger.error(f"Cache stats error: {e}")
        return self._stats
