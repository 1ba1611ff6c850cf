"""Redis cache store for the analytics cache.

Provides async Redis operations for cached analytics values.
Uses redis-py async client for connection pooling.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, cast

import orjson
import redis.asyncio as redis

from lectern.cache.store import CacheStore
from lectern.config import settings

if TYPE_CHECKING:
    from redis.asyncio import Redis

# Module-level connection pool
_redis_client: Redis | None = None

# Default TTL (10 minutes)
DEFAULT_TTL = 600

# Keys deleted per DEL round trip during pattern deletes
DELETE_CHUNK_SIZE = 500


async def get_redis() -> Redis:
    """Get or create the Redis client.

    Uses connection pooling for efficient connection management.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(  # type: ignore[no-untyped-call]
            settings.redis_url,
            encoding="utf-8",
            decode_responses=False,
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class RedisCacheStore(CacheStore):
    """Cache operations backed by Redis.

    Values are serialized with orjson and written with a TTL.
    """

    def __init__(self, client: Redis, ttl: int = DEFAULT_TTL, scan_count: int = 500):
        self.client = client
        self.ttl = ttl
        self.scan_count = scan_count

    async def get(self, key: str) -> Any | None:
        raw = await self.client.get(key)
        if raw is None:
            return None
        return orjson.loads(raw)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        await self.client.setex(key, ttl or self.ttl, orjson.dumps(value))

    async def delete(self, key: str) -> int:
        return cast(int, await self.client.delete(key))

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching ``pattern``.

        Uses SCAN to avoid blocking on large keyspaces and deletes the
        matches in chunks.
        """
        deleted = 0
        chunk: list[bytes | str] = []

        async for key in self.client.scan_iter(match=pattern, count=self.scan_count):
            chunk.append(key)
            if len(chunk) >= DELETE_CHUNK_SIZE:
                deleted += cast(int, await self.client.delete(*chunk))
                chunk = []

        if chunk:
            deleted += cast(int, await self.client.delete(*chunk))

        return deleted

    async def count_pattern(self, pattern: str) -> int:
        """Count keys matching ``pattern`` with SCAN, without fetching values."""
        count = 0
        async for _ in self.client.scan_iter(match=pattern, count=self.scan_count):
            count += 1
        return count

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await cast(Awaitable[bool], self.client.ping())
            return True
        except Exception:
            return False
