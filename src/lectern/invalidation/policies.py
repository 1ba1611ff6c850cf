"""Per-category invalidation policies.

Each policy maps one event to the ordered list of cache scopes it must
evict. Policies are pure apart from logging skipped scopes; the invalidator
performs the evictions.

Aggregate scopes (platform, trending, top performers) are only evicted for
events that can move platform-wide or cross-course numbers: course changes,
enrollment changes, revenue, deletions. High-frequency events such as
lesson progress and grading evict their narrow scopes and the dashboards.

Bulk policies serve the batch path: a burst of course or enrollment events
evicts each distinct course and student once, plus the aggregate bundles
of that type, whether or not any event carried an id.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from lectern.cache.keys import AnalyticsCacheKeys as Keys
from lectern.cache.keys import CacheScope
from lectern.invalidation.events import EventCategory, InvalidationEvent, InvalidationEventType

logger = logging.getLogger(__name__)

Policy = Callable[[InvalidationEvent], list[CacheScope]]
BulkPolicy = Callable[[Sequence[InvalidationEvent]], list[CacheScope]]


def platform_scopes() -> list[CacheScope]:
    """Platform metrics and every dashboard that embeds them."""
    return [Keys.platform_scope(), Keys.dashboard_scope()]


def trending_scopes() -> list[CacheScope]:
    """Cross-course rankings."""
    return [Keys.trending_scope(), Keys.top_performers_scope()]


def course_policy(event: InvalidationEvent) -> list[CacheScope]:
    if not event.course_id:
        logger.warning("Course event missing course_id")
        return []

    return [Keys.course_scope(event.course_id), *platform_scopes(), *trending_scopes()]


def course_deleted_policy(event: InvalidationEvent) -> list[CacheScope]:
    if not event.course_id:
        logger.warning("Course deleted event missing course_id")
        return []

    # Deletion can touch any aggregate, so flush the whole namespace
    return [Keys.course_scope(event.course_id), Keys.all_scope()]


def enrollment_policy(event: InvalidationEvent) -> list[CacheScope]:
    scopes: list[CacheScope] = []

    if event.course_id:
        scopes.append(Keys.course_scope(event.course_id))

    if event.user_id:
        scopes.append(Keys.student_scope(event.user_id))

    if event.course_id and event.user_id:
        scopes.append(Keys.enrollment_scope(event.course_id, event.user_id))
    else:
        logger.debug("Enrollment event without both ids, skipping enrollment scope")

    scopes.extend(platform_scopes())
    scopes.extend(trending_scopes())
    return scopes


def lesson_progress_policy(event: InvalidationEvent) -> list[CacheScope]:
    scopes: list[CacheScope] = []

    if event.course_id:
        scopes.append(Keys.course_scope(event.course_id))

    if event.user_id:
        scopes.append(Keys.student_scope(event.user_id))

    scopes.append(Keys.dashboard_scope())
    return scopes


def assessment_policy(event: InvalidationEvent) -> list[CacheScope]:
    scopes: list[CacheScope] = []

    if event.course_id and event.user_id:
        scopes.append(Keys.assessment_scope(event.course_id, event.user_id))
    else:
        logger.warning("Assessment event missing course_id or user_id, skipping assessment scope")

    scopes.append(Keys.dashboard_scope())
    return scopes


def payment_policy(event: InvalidationEvent) -> list[CacheScope]:
    # Without a course the payment data of every course is evicted
    return [Keys.payment_scope(event.course_id or None), *platform_scopes()]


def user_policy(event: InvalidationEvent) -> list[CacheScope]:
    if not event.user_id:
        logger.warning("User event missing user_id")
        return []

    return [Keys.student_scope(event.user_id), *platform_scopes()]


def user_deleted_policy(event: InvalidationEvent) -> list[CacheScope]:
    if not event.user_id:
        logger.warning("User deleted event missing user_id")
        return []

    return [Keys.student_scope(event.user_id), Keys.all_scope()]


def communication_policy(event: InvalidationEvent) -> list[CacheScope]:
    scopes: list[CacheScope] = []

    # Engagement metrics of the course and of the author
    if event.course_id:
        scopes.append(Keys.course_scope(event.course_id))

    if event.user_id:
        scopes.append(Keys.student_scope(event.user_id))

    return scopes


POLICIES: dict[EventCategory, Policy] = {
    EventCategory.COURSE: course_policy,
    EventCategory.COURSE_DELETED: course_deleted_policy,
    EventCategory.ENROLLMENT: enrollment_policy,
    EventCategory.LESSON_PROGRESS: lesson_progress_policy,
    EventCategory.ASSESSMENT: assessment_policy,
    EventCategory.PAYMENT: payment_policy,
    EventCategory.USER: user_policy,
    EventCategory.USER_DELETED: user_deleted_policy,
    EventCategory.COMMUNICATION: communication_policy,
}


def scopes_for(event: InvalidationEvent) -> list[CacheScope] | None:
    """Scopes evicted for ``event``, or None when its type is not recognised."""
    category = event.category
    if category is None:
        return None
    return POLICIES[category](event)


# -------------------------------------------------------------------------
# Bulk policies (batch path)
# -------------------------------------------------------------------------


def unique_ids(values: Iterable[str | None]) -> list[str]:
    """Distinct non-empty ids, first occurrence order."""
    return list(dict.fromkeys(v for v in values if v))


def bulk_course_policy(events: Sequence[InvalidationEvent]) -> list[CacheScope]:
    """Each distinct course once, then the platform bundle.

    Rankings are left to TTL expiry during bursts of course updates.
    """
    scopes = [Keys.course_scope(cid) for cid in unique_ids(e.course_id for e in events)]
    scopes.extend(platform_scopes())
    return scopes


def bulk_enrollment_policy(events: Sequence[InvalidationEvent]) -> list[CacheScope]:
    """Each distinct course and student once, then platform and rankings."""
    scopes = [Keys.course_scope(cid) for cid in unique_ids(e.course_id for e in events)]
    scopes.extend(Keys.student_scope(uid) for uid in unique_ids(e.user_id for e in events))
    scopes.extend(platform_scopes())
    scopes.extend(trending_scopes())
    return scopes


BULK_POLICIES: dict[InvalidationEventType, BulkPolicy] = {
    InvalidationEventType.COURSE_UPDATED: bulk_course_policy,
    InvalidationEventType.COURSE_PUBLISHED: bulk_course_policy,
    InvalidationEventType.ENROLLMENT_CREATED: bulk_enrollment_policy,
    InvalidationEventType.ENROLLMENT_COMPLETED: bulk_enrollment_policy,
}


def bulk_scopes_for(events: Sequence[InvalidationEvent]) -> list[CacheScope] | None:
    """Scopes evicted for a group of same-type events.

    Returns None when the type has no bulk policy; each event is then routed
    on its own.
    """
    known = events[0].known_type if events else None
    policy = BULK_POLICIES.get(known) if known is not None else None
    if policy is None:
        return None
    return policy(events)
