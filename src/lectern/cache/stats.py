"""Analytics cache statistics.

Counts the live keys in each analytics namespace, for operators checking
how much an invalidation removed or how large the cache has grown.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from pydantic import BaseModel

from lectern.cache.keys import AnalyticsCacheKeys as Keys
from lectern.cache.keys import DELIMITER, WILDCARD, build_pattern
from lectern.cache.store import CacheStore

REPORT = "report"


class CacheStats(BaseModel):
    """Key counts in the analytics namespace.

    Course and student counts include the reports nested under them.
    """

    timestamp: datetime
    total_keys: int
    course_keys: int
    student_keys: int
    dashboard_keys: int
    report_keys: int


def _report_pattern(namespace: str) -> str:
    # analytics:{namespace}:{id}:report:*
    return f"{build_pattern(Keys.PREFIX, namespace)}{DELIMITER}{REPORT}{DELIMITER}{WILDCARD}"


async def cache_stats(store: CacheStore) -> CacheStats:
    """Count analytics keys per namespace.

    Counts run concurrently and are not a snapshot; keys written or
    evicted meanwhile may be counted in one total and not another.
    """
    total, courses, students, dashboards, course_reports, student_reports = await asyncio.gather(
        store.count_pattern(build_pattern(Keys.PREFIX)),
        store.count_pattern(build_pattern(Keys.PREFIX, Keys.COURSE)),
        store.count_pattern(build_pattern(Keys.PREFIX, Keys.STUDENT)),
        store.count_pattern(build_pattern(Keys.PREFIX, Keys.DASHBOARD)),
        store.count_pattern(_report_pattern(Keys.COURSE)),
        store.count_pattern(_report_pattern(Keys.STUDENT)),
    )
    return CacheStats(
        timestamp=datetime.now(timezone.utc),
        total_keys=total,
        course_keys=courses,
        student_keys=students,
        dashboard_keys=dashboards,
        report_keys=course_reports + student_reports,
    )
