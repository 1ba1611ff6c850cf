"""Analytics cache invalidator.

Routes invalidation events to their category policy and evicts the
resulting scopes from the cache store. Invalidation is best effort:
a stale entry heals through TTL expiry or the next overlapping
invalidation, so no failure in here is ever raised to the producer whose
write triggered the event.

Example:
    invalidator = AnalyticsCacheInvalidator(RedisCacheStore(await get_redis()))

    await invalidator.handle_event(
        InvalidationEvent(InvalidationEventType.COURSE_PUBLISHED, course_id="c1")
    )
    await invalidator.handle_batch(events)
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from lectern.invalidation.events import InvalidationEvent
from lectern.invalidation.policies import bulk_scopes_for, scopes_for
from lectern.invalidation.settle import failures, settle_all
from lectern.observability.logging import LogContext
from lectern.observability.metrics import MetricsRegistry, get_metrics

if TYPE_CHECKING:
    from lectern.cache.keys import CacheScope
    from lectern.cache.store import CacheStore

logger = logging.getLogger(__name__)


def group_events_by_type(
    events: Sequence[InvalidationEvent],
) -> dict[str, list[InvalidationEvent]]:
    """Group events by type tag, in order of first appearance."""
    groups: dict[str, list[InvalidationEvent]] = {}
    for event in events:
        groups.setdefault(event.type_name, []).append(event)
    return groups


def event_type_label(event: InvalidationEvent) -> str:
    """Metric label for an event type; unrecognised tags share one label."""
    return event.type_name if event.known_type is not None else "unknown"


class AnalyticsCacheInvalidator:
    """Evicts analytics cache scopes in response to domain events.

    The invalidator holds no state between calls and can be shared by any
    number of producers. Every eviction for an event, and every group of a
    batch, runs concurrently under settle-all semantics.
    """

    def __init__(
        self,
        store: CacheStore,
        *,
        eviction_timeout: float | None = None,
        max_concurrent_evictions: int | None = None,
        metrics: MetricsRegistry | None = None,
    ):
        self.store = store
        self.eviction_timeout = eviction_timeout
        self._semaphore = (
            asyncio.Semaphore(max_concurrent_evictions) if max_concurrent_evictions else None
        )
        self._metrics = metrics if metrics is not None else get_metrics()

    # -------------------------------------------------------------------------
    # Single-event path
    # -------------------------------------------------------------------------

    async def handle_event(self, event: InvalidationEvent) -> None:
        """Invalidate the cache scopes affected by one event. Never raises."""
        self._metrics.invalidation_events_total.labels(
            event_type=event_type_label(event), path="single"
        ).inc()
        await self._route(event)

    async def _route(self, event: InvalidationEvent) -> None:
        with LogContext(
            event_id=event.event_id,
            event_type=event.type_name,
            correlation_id=(event.metadata or {}).get("correlation_id"),
        ):
            try:
                scopes = scopes_for(event)
                if scopes is None:
                    logger.warning(f"Unknown cache invalidation event type: {event.type_name}")
                    return

                logger.debug(
                    f"Handling cache invalidation for {event.type_name}",
                    extra={"scopes": [s.target for s in scopes], "metadata": event.metadata},
                )
                failed = await self._evict_all(scopes, event.type_name)
                if failed:
                    logger.warning(
                        f"Cache invalidation for {event.type_name} finished with "
                        f"{failed}/{len(scopes)} failed evictions"
                    )
            except Exception:
                logger.exception(f"Cache invalidation failed for event {event.type_name}")

    # -------------------------------------------------------------------------
    # Batch path
    # -------------------------------------------------------------------------

    async def handle_batch(self, events: Sequence[InvalidationEvent]) -> None:
        """Invalidate the cache for a burst of events. Never raises.

        Events of a bulk-optimizable type evict each distinct course and
        student once, plus the aggregate scopes of that type; other events go
        through the single-event path one by one.
        """
        if not events:
            return

        try:
            logger.info(f"Processing batch cache invalidation for {len(events)} events")
            self._metrics.invalidation_batch_size.observe(len(events))

            groups = group_events_by_type(events)
            results = await settle_all(
                self._process_group(type_name, group) for type_name, group in groups.items()
            )
            for error in failures(results):
                logger.error(f"Batch event group raised: {error!r}")

            logger.info(f"Batch cache invalidation completed for {len(events)} events")
        except Exception:
            logger.exception("Batch cache invalidation failed")

    async def _process_group(self, type_name: str, events: list[InvalidationEvent]) -> None:
        try:
            self._metrics.invalidation_events_total.labels(
                event_type=event_type_label(events[0]), path="batch"
            ).inc(len(events))

            scopes = bulk_scopes_for(events)
            if scopes is None:
                await settle_all(self._route(event) for event in events)
                return

            with LogContext(event_type=type_name):
                logger.debug(
                    f"Deduplicated {len(events)} {type_name} events into {len(scopes)} evictions"
                )
                await self._evict_all(scopes, type_name)
        except Exception:
            logger.exception(f"Batch event group processing failed for {type_name}")

    # -------------------------------------------------------------------------
    # Evictions
    # -------------------------------------------------------------------------

    async def _evict_all(self, scopes: Sequence[CacheScope], type_name: str) -> int:
        """Evict every scope concurrently. Returns the number of failed evictions."""
        results = await settle_all(self._evict(scope, type_name) for scope in scopes)
        return sum(1 for ok in results if ok is not True)

    async def _evict(self, scope: CacheScope, type_name: str) -> bool:
        start_time = time.perf_counter()
        try:
            async with self._semaphore or contextlib.nullcontext():
                await self._delete(scope)
        except Exception as e:
            logger.error(
                f"Eviction of {scope.target} failed for {type_name}: {e!r}",
                extra={"scope": scope.target},
            )
            self._metrics.cache_evictions_total.labels(scope=scope.kind, outcome="error").inc()
            return False
        finally:
            self._metrics.cache_eviction_duration_seconds.labels(scope=scope.kind).observe(
                time.perf_counter() - start_time
            )

        self._metrics.cache_evictions_total.labels(scope=scope.kind, outcome="ok").inc()
        return True

    async def _delete(self, scope: CacheScope) -> int:
        if scope.is_pattern:
            call = self.store.delete_pattern(scope.target)
        else:
            call = self.store.delete_scope(scope.target)

        if self.eviction_timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout=self.eviction_timeout)
