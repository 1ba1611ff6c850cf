"""Global pytest configuration and fixtures.

Provides a recording cache store and a quiet metrics registry for
invalidation tests.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from lectern.cache.store import InMemoryCacheStore
from lectern.invalidation.service import AnalyticsCacheInvalidator
from lectern.observability.metrics import MetricsRegistry


class RecordingCacheStore(InMemoryCacheStore):
    """In-memory store that records every eviction call it receives.

    Targets listed in ``fail_on`` raise ConnectionError, simulating an
    unavailable store for that call only.
    """

    def __init__(self, fail_on: set[str] | None = None) -> None:
        super().__init__()
        self.calls: list[tuple[str, str]] = []
        self.fail_on = fail_on or set()

    def _record(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        if target in self.fail_on:
            raise ConnectionError(f"store unavailable for {target}")

    async def delete_scope(self, key: str) -> int:
        self._record("scope", key)
        deleted = await self.delete(key)
        deleted += await super().delete_pattern(f"{key}:*")
        return deleted

    async def delete_pattern(self, pattern: str) -> int:
        self._record("pattern", pattern)
        return await super().delete_pattern(pattern)

    def targets(self) -> list[str]:
        return [target for _, target in self.calls]


StoreFactory = Callable[..., RecordingCacheStore]


@pytest.fixture
def make_store() -> StoreFactory:
    """Factory for recording stores, optionally failing on some targets."""

    def _make(fail_on: set[str] | None = None) -> RecordingCacheStore:
        return RecordingCacheStore(fail_on=fail_on)

    return _make


@pytest.fixture
def store(make_store: StoreFactory) -> RecordingCacheStore:
    """Create a fresh recording store."""
    return make_store()


@pytest.fixture
def invalidator(store: RecordingCacheStore) -> AnalyticsCacheInvalidator:
    """Create an invalidator over the recording store, with metrics disabled."""
    return AnalyticsCacheInvalidator(store, metrics=MetricsRegistry())
