"""Observability module for Lectern.

Provides metrics and structured logging:
- Prometheus metrics for invalidations and evictions
- JSON structured logging with event correlation
"""

from lectern.observability.logging import (
    LogContext,
    configure_logging,
    correlation_id_var,
    current_context,
    event_id_var,
    event_type_var,
)
from lectern.observability.metrics import (
    MetricsRegistry,
    NoOpMetric,
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "LogContext",
    "event_id_var",
    "event_type_var",
    "correlation_id_var",
    "current_context",
    # Metrics
    "MetricsRegistry",
    "NoOpMetric",
    "metrics_registry",
    "get_metrics",
]
