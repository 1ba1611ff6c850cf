"""Cache store adapter interface.

Provides the operations the analytics layer needs from a key/value store:
- InMemoryCacheStore: for single-instance deployments and tests
- RedisCacheStore (lectern.cache.redis): for shared caches

The invalidation engine only uses ``delete_scope`` and ``delete_pattern``.
Both are idempotent; calling them redundantly is safe. ``count_pattern``
backs the cache statistics.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from fnmatch import fnmatchcase
from typing import Any

from lectern.cache.keys import DELIMITER, WILDCARD


class CacheStore(ABC):
    """Abstract cache store interface."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Cache a value, expiring after ``ttl`` seconds when given."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> int:
        """Delete a single key. Returns the number of keys removed."""
        pass

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the number removed."""
        pass

    @abstractmethod
    async def count_pattern(self, pattern: str) -> int:
        """Count the live keys matching a glob pattern."""
        pass

    async def delete_scope(self, key: str) -> int:
        """Delete a key and every key nested beneath it."""
        deleted = await self.delete(key)
        deleted += await self.delete_pattern(f"{key}{DELIMITER}{WILDCARD}")
        return deleted

    async def health_check(self) -> bool:
        """Check store connectivity."""
        return True


class InMemoryCacheStore(CacheStore):
    """Process-local cache store with TTL support.

    Expired entries are dropped lazily on access.
    """

    def __init__(self, default_ttl: int | None = None) -> None:
        self.default_ttl = default_ttl
        self._data: dict[str, tuple[Any, float | None]] = {}

    def _expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and expires_at <= time.monotonic()

    async def get(self, key: str) -> Any | None:
        entry = self._data.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if self._expired(expires_at):
            del self._data[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ttl = ttl if ttl is not None else self.default_ttl
        expires_at = time.monotonic() + ttl if ttl is not None else None
        self._data[key] = (value, expires_at)

    async def delete(self, key: str) -> int:
        entry = self._data.pop(key, None)
        if entry is None or self._expired(entry[1]):
            return 0
        return 1

    async def delete_pattern(self, pattern: str) -> int:
        matched = [key for key in self._data if fnmatchcase(key, pattern)]
        deleted = 0
        for key in matched:
            deleted += await self.delete(key)
        return deleted

    async def count_pattern(self, pattern: str) -> int:
        return sum(1 for key in self.keys() if fnmatchcase(key, pattern))

    def keys(self) -> list[str]:
        """Live keys, for inspection."""
        return [key for key, (_, expires_at) in self._data.items() if not self._expired(expires_at)]
