"""Cache key schema for the analytics cache.

Key format: {prefix}:{namespace}:{segment}[:{segment}...]

Where:
- prefix: "analytics" (the namespace shared with the rest of the LMS cache),
  encoded like a segment
- namespace: "course", "student", "dashboard", "platform", ...
- segment: entity identifiers and variants, percent-encoded so that ":" and
  glob metacharacters inside an identifier never leak into the key structure

Everything derived from one entity is nested under that entity's key, so a
scope eviction of ``analytics:course:{id}`` also removes the course reports
stored at ``analytics:course:{id}:report:...``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote, unquote

DELIMITER = ":"
WILDCARD = "*"

Segment = str | int


class CachePrefix(str, Enum):
    """Top-level cache namespaces of the LMS."""

    USER = "user"
    COURSE = "course"
    ENROLLMENT = "enrollment"
    QUIZ = "quiz"
    ASSIGNMENT = "assignment"
    ANALYTICS = "analytics"
    SEARCH = "search"
    SESSION = "session"
    RATE_LIMIT = "ratelimit"


def _prefix_value(prefix: CachePrefix | str) -> str:
    return prefix.value if isinstance(prefix, CachePrefix) else prefix


def _encode_segment(segment: Segment) -> str:
    return quote(str(segment), safe="")


def build_key(prefix: CachePrefix | str, *segments: Segment) -> str:
    """Join a prefix and ordered segments into a cache key.

    The prefix is encoded like any segment, so distinct (prefix, segments)
    tuples always produce distinct keys.
    """
    return DELIMITER.join(_encode_segment(part) for part in (_prefix_value(prefix), *segments))


def build_pattern(prefix: CachePrefix | str, *segments: Segment) -> str:
    """Glob pattern matching every key nested below ``build_key(prefix, *segments)``."""
    return f"{build_key(prefix, *segments)}{DELIMITER}{WILDCARD}"


@dataclass(frozen=True, slots=True)
class CacheScope:
    """A region of the cache subject to eviction.

    A key scope covers the key itself and every key nested beneath it.
    A pattern scope covers every key matching the glob.
    """

    kind: str
    target: str
    is_pattern: bool = False

    def __str__(self) -> str:
        return self.target


class AnalyticsCacheTTL:
    """TTL values (seconds) for analytics data, by update frequency."""

    DASHBOARD_METRICS = 300
    COURSE_ANALYTICS = 600
    STUDENT_ANALYTICS = 600
    COURSE_REPORT = 1800
    STUDENT_REPORT = 1800
    PLATFORM_METRICS = 900
    TRENDING_COURSES = 900
    TOP_PERFORMERS = 1800


class AnalyticsCacheKeys:
    """Key and scope builders for the analytics namespace."""

    PREFIX = CachePrefix.ANALYTICS.value

    COURSE = "course"
    STUDENT = "student"
    ENROLLMENT = "enrollment"
    ASSESSMENT = "assessment"
    PAYMENT = "payment"
    DASHBOARD = "dashboard"
    PLATFORM = "platform"
    TRENDING = "trending"
    TOP_PERFORMERS = "top-performers"

    # -------------------------------------------------------------------------
    # Value keys (written by the metrics layer)
    # -------------------------------------------------------------------------

    @classmethod
    def course_analytics(cls, course_id: str) -> str:
        """Key for computed course analytics."""
        return build_key(cls.PREFIX, cls.COURSE, course_id)

    @classmethod
    def course_report(cls, course_id: str, start_date: str, end_date: str) -> str:
        """Key for a course report over a date range."""
        return build_key(cls.PREFIX, cls.COURSE, course_id, "report", start_date, end_date)

    @classmethod
    def student_analytics(cls, user_id: str) -> str:
        """Key for computed student analytics."""
        return build_key(cls.PREFIX, cls.STUDENT, user_id)

    @classmethod
    def student_report(cls, user_id: str, start_date: str, end_date: str) -> str:
        """Key for a student report over a date range."""
        return build_key(cls.PREFIX, cls.STUDENT, user_id, "report", start_date, end_date)

    @classmethod
    def enrollment_progress(cls, course_id: str, user_id: str) -> str:
        return build_key(cls.PREFIX, cls.ENROLLMENT, course_id, user_id)

    @classmethod
    def assessment_summary(cls, course_id: str, user_id: str) -> str:
        return build_key(cls.PREFIX, cls.ASSESSMENT, course_id, user_id)

    @classmethod
    def revenue(cls, course_id: str) -> str:
        return build_key(cls.PREFIX, cls.PAYMENT, course_id)

    @classmethod
    def dashboard_metrics(cls, user_id: str, role: str) -> str:
        """Key for a user's dashboard, per role."""
        return build_key(cls.PREFIX, cls.DASHBOARD, user_id, role)

    @classmethod
    def platform_metrics(cls, start_date: str, end_date: str) -> str:
        return build_key(cls.PREFIX, cls.PLATFORM, start_date, end_date)

    @classmethod
    def trending_courses(cls, limit: int, start_date: str, end_date: str) -> str:
        return build_key(cls.PREFIX, cls.TRENDING, limit, start_date, end_date)

    @classmethod
    def top_performers(cls, limit: int) -> str:
        return build_key(cls.PREFIX, cls.TOP_PERFORMERS, limit)

    @classmethod
    def parse_key(cls, key: str) -> dict[str, object] | None:
        """Parse an analytics key into namespace and decoded segments.

        Returns None if the key is outside the analytics namespace.
        """
        parts = key.split(DELIMITER)
        if len(parts) < 2 or parts[0] != cls.PREFIX:
            return None

        return {
            "prefix": parts[0],
            "namespace": parts[1],
            "segments": [unquote(p) for p in parts[2:]],
        }

    # -------------------------------------------------------------------------
    # Invalidation scopes
    # -------------------------------------------------------------------------

    @classmethod
    def course_scope(cls, course_id: str) -> CacheScope:
        return CacheScope(cls.COURSE, cls.course_analytics(course_id))

    @classmethod
    def student_scope(cls, user_id: str) -> CacheScope:
        return CacheScope(cls.STUDENT, cls.student_analytics(user_id))

    @classmethod
    def enrollment_scope(cls, course_id: str, user_id: str) -> CacheScope:
        return CacheScope(cls.ENROLLMENT, cls.enrollment_progress(course_id, user_id))

    @classmethod
    def assessment_scope(cls, course_id: str, user_id: str) -> CacheScope:
        return CacheScope(cls.ASSESSMENT, cls.assessment_summary(course_id, user_id))

    @classmethod
    def payment_scope(cls, course_id: str | None = None) -> CacheScope:
        """Payment data for one course, or for every course when none is given."""
        if course_id:
            return CacheScope(cls.PAYMENT, cls.revenue(course_id))
        return CacheScope(cls.PAYMENT, build_pattern(cls.PREFIX, cls.PAYMENT), is_pattern=True)

    @classmethod
    def dashboard_scope(cls) -> CacheScope:
        return CacheScope(cls.DASHBOARD, build_pattern(cls.PREFIX, cls.DASHBOARD), is_pattern=True)

    @classmethod
    def platform_scope(cls) -> CacheScope:
        return CacheScope(cls.PLATFORM, build_pattern(cls.PREFIX, cls.PLATFORM), is_pattern=True)

    @classmethod
    def trending_scope(cls) -> CacheScope:
        return CacheScope(cls.TRENDING, build_pattern(cls.PREFIX, cls.TRENDING), is_pattern=True)

    @classmethod
    def top_performers_scope(cls) -> CacheScope:
        return CacheScope(
            cls.TOP_PERFORMERS,
            build_pattern(cls.PREFIX, cls.TOP_PERFORMERS),
            is_pattern=True,
        )

    @classmethod
    def all_scope(cls) -> CacheScope:
        """Every entry in the analytics namespace (full flush)."""
        return CacheScope("all", build_pattern(cls.PREFIX), is_pattern=True)
