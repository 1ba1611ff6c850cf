"""Prometheus metrics for the invalidation engine.

Provides metrics collection and exposure:
- Invalidation events received (single and batch path)
- Cache evictions by scope and outcome
- Eviction latency
- Batch sizes

Usage:
    from lectern.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.cache_evictions_total.labels(scope="course", outcome="ok").inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram
from prometheus_client import generate_latest as _generate_latest

from lectern.config import settings

logger = logging.getLogger(__name__)


class NoOpMetric:
    """No-op metric for when metrics are disabled."""

    def labels(self, **kwargs: Any) -> "NoOpMetric":
        """Return self for chaining."""
        return self

    def inc(self, amount: float = 1) -> None:
        """No-op."""
        pass

    def observe(self, value: float) -> None:
        """No-op."""
        pass


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    invalidation_events_total: Any = field(default_factory=NoOpMetric)
    cache_evictions_total: Any = field(default_factory=NoOpMetric)
    cache_eviction_duration_seconds: Any = field(default_factory=NoOpMetric)
    invalidation_batch_size: Any = field(default_factory=NoOpMetric)

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: CollectorRegistry | None = field(default=None, repr=False)

    def initialize(
        self,
        enabled: bool | None = None,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if enabled is None:
            enabled = settings.enable_metrics

        if not enabled:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = registry if registry is not None else REGISTRY

        self.invalidation_events_total = Counter(
            "lectern_invalidation_events_total",
            "Invalidation events received",
            ["event_type", "path"],
            registry=self._registry,
        )

        self.cache_evictions_total = Counter(
            "lectern_cache_evictions_total",
            "Cache scope evictions",
            ["scope", "outcome"],
            registry=self._registry,
        )

        self.cache_eviction_duration_seconds = Histogram(
            "lectern_cache_eviction_duration_seconds",
            "Cache scope eviction latency in seconds",
            ["scope"],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
            registry=self._registry,
        )

        self.invalidation_batch_size = Histogram(
            "lectern_invalidation_batch_size",
            "Events per invalidation batch",
            buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000),
            registry=self._registry,
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if self._registry is None:
            return b"# Metrics disabled\n"
        return _generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry
