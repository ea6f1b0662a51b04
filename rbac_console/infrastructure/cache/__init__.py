from rbac_console.infrastructure.cache.base import CacheBackend, CacheInvalidationError, CacheStats
from rbac_console.infrastructure.cache.coordinator import (
    CacheCoordinator,
    cached,
    generate_cache_key,
)
from rbac_console.infrastructure.cache.memory_cache import MemoryCacheBackend
from rbac_console.infrastructure.cache.redis_cache import RedisCacheBackend

__all__ = [
    "CacheBackend",
    "CacheInvalidationError",
    "CacheStats",
    "CacheCoordinator",
    "MemoryCacheBackend",
    "RedisCacheBackend",
    "cached",
    "generate_cache_key",
]
