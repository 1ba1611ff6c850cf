"""Event-driven invalidation of the analytics cache.

Domain writes (course published, student enrolled, payment completed, ...)
produce InvalidationEvents. The invalidator maps each event to the cache
scopes it makes stale and evicts them:
- Single events are routed to their category policy
- Batches are grouped by type; bulk groups evict each distinct scope once
- Evictions run concurrently and failures are logged, never raised
"""

from lectern.invalidation.events import (
    BULK_OPTIMIZABLE_TYPES,
    EVENT_CATEGORIES,
    EventCategory,
    InvalidationEvent,
    InvalidationEventType,
    InvalidEventPayload,
)
from lectern.invalidation.policies import POLICIES, scopes_for
from lectern.invalidation.runtime import create_invalidator
from lectern.invalidation.service import AnalyticsCacheInvalidator
from lectern.invalidation.settle import settle_all

__all__ = [
    # Events
    "InvalidationEvent",
    "InvalidationEventType",
    "InvalidEventPayload",
    "EventCategory",
    "EVENT_CATEGORIES",
    "BULK_OPTIMIZABLE_TYPES",
    # Policies
    "POLICIES",
    "scopes_for",
    # Service
    "AnalyticsCacheInvalidator",
    "create_invalidator",
    "settle_all",
]
