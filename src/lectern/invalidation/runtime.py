"""Runtime wiring for the analytics cache invalidator."""

from __future__ import annotations

import logging

from lectern.cache.redis import RedisCacheStore, get_redis
from lectern.cache.store import CacheStore
from lectern.config import settings
from lectern.invalidation.service import AnalyticsCacheInvalidator

logger = logging.getLogger(__name__)


async def create_store() -> CacheStore:
    """Create a cache store over the shared Redis connection pool."""
    return RedisCacheStore(await get_redis())


async def create_invalidator(store: CacheStore | None = None) -> AnalyticsCacheInvalidator:
    """Create an invalidator configured from settings.

    Uses the shared Redis connection pool unless a store is given.
    """
    if store is None:
        store = await create_store()

    invalidator = AnalyticsCacheInvalidator(
        store,
        eviction_timeout=settings.eviction_timeout,
        max_concurrent_evictions=settings.max_concurrent_evictions,
    )
    logger.info("Cache invalidator created (%s)", type(store).__name__)
    return invalidator
