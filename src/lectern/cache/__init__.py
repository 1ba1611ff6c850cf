"""Cache layer for Lectern.

Provides the analytics cache namespace and store adapters:
- Hierarchical key and scope builders for analytics data
- TTL-based expiration for computed metrics
- Scope and pattern deletes used by the invalidation engine
- Key counts per analytics namespace
"""

from lectern.cache.keys import (
    AnalyticsCacheKeys,
    AnalyticsCacheTTL,
    CachePrefix,
    CacheScope,
    build_key,
    build_pattern,
)
from lectern.cache.redis import RedisCacheStore, close_redis, get_redis
from lectern.cache.stats import CacheStats, cache_stats
from lectern.cache.store import CacheStore, InMemoryCacheStore

__all__ = [
    # Keys
    "AnalyticsCacheKeys",
    "AnalyticsCacheTTL",
    "CachePrefix",
    "CacheScope",
    "build_key",
    "build_pattern",
    # Stores
    "CacheStore",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "get_redis",
    "close_redis",
    # Stats
    "CacheStats",
    "cache_stats",
]
