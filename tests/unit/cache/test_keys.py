"""Tests for cache key generation."""

import pytest

from lectern.cache.keys import (
    AnalyticsCacheKeys,
    CachePrefix,
    CacheScope,
    build_key,
    build_pattern,
)


class TestBuildKey:
    """Test key and pattern builders."""

    def test_joins_prefix_and_segments(self) -> None:
        """Segments are joined with the delimiter in order."""
        assert build_key(CachePrefix.COURSE, "456", "modules", "789") == "course:456:modules:789"

    def test_accepts_plain_prefix_and_numbers(self) -> None:
        """Numeric segments are stringified."""
        assert build_key("analytics", 2024, 1, 15) == "analytics:2024:1:15"

    def test_prefix_enum_value(self) -> None:
        """Enum prefixes use their value, not their name."""
        assert build_key(CachePrefix.USER, "123") == "user:123"

    def test_pattern_appends_wildcard(self) -> None:
        """Patterns match everything nested below the key."""
        assert build_pattern("analytics", "dashboard") == "analytics:dashboard:*"
        assert build_pattern("analytics") == "analytics:*"

    def test_delimiter_in_segment_is_escaped(self) -> None:
        """A delimiter inside an identifier cannot fake a nested key."""
        assert build_key("analytics", "a:b") != build_key("analytics", "a", "b")
        assert build_key("analytics", "a:b") == "analytics:a%3Ab"

    def test_wildcard_in_segment_is_escaped(self) -> None:
        """Glob metacharacters inside identifiers are not wildcards."""
        key = build_key("analytics", "course", "*")
        assert "*" not in key

    @pytest.mark.parametrize(
        ("left", "right"),
        [
            (("course", "1"), ("course", "1", "")),
            (("course", "1:2"), ("course", "1", "2")),
            (("course", "%3A"), ("course", ":")),
            (("course",), ("course", "")),
        ],
    )
    def test_distinct_tuples_never_collide(
        self, left: tuple[str, ...], right: tuple[str, ...]
    ) -> None:
        """Key construction is injective."""
        assert build_key("analytics", *left) != build_key("analytics", *right)

    def test_delimiter_in_prefix_is_escaped(self) -> None:
        """A prefix containing the delimiter cannot pose as prefix plus namespace."""
        assert build_key("analytics:course", "c1") != build_key("analytics", "course", "c1")
        assert build_key("analytics:course", "c1") == "analytics%3Acourse:c1"
        assert build_pattern("analytics*") == "analytics%2A:*"

    def test_key_is_deterministic(self) -> None:
        """Same input, same key."""
        assert build_key("analytics", "course", "c1") == build_key("analytics", "course", "c1")


class TestAnalyticsCacheKeys:
    """Test analytics key and scope builders."""

    def test_course_analytics_key(self) -> None:
        """Course analytics key has correct format."""
        assert AnalyticsCacheKeys.course_analytics("c1") == "analytics:course:c1"

    def test_course_report_nested_under_course(self) -> None:
        """Course reports live below the course scope."""
        key = AnalyticsCacheKeys.course_report("c1", "2024-01-01", "2024-02-01")
        assert key == "analytics:course:c1:report:2024-01-01:2024-02-01"

    def test_student_report_nested_under_student(self) -> None:
        """Student reports live below the student scope."""
        key = AnalyticsCacheKeys.student_report("u1", "2024-01-01", "2024-02-01")
        assert key.startswith("analytics:student:u1:")

    def test_dashboard_metrics_key(self) -> None:
        """Dashboard key includes user and role."""
        assert AnalyticsCacheKeys.dashboard_metrics("u1", "STUDENT") == (
            "analytics:dashboard:u1:STUDENT"
        )

    def test_top_performers_key(self) -> None:
        """Top performers key is under its own namespace."""
        assert AnalyticsCacheKeys.top_performers(10) == "analytics:top-performers:10"

    def test_course_scope(self) -> None:
        """Course scope targets the course key."""
        assert AnalyticsCacheKeys.course_scope("c1") == CacheScope(
            "course", "analytics:course:c1"
        )

    def test_enrollment_and_assessment_scopes_are_distinct(self) -> None:
        """Enrollment and assessment scopes for the same pair differ."""
        enrollment = AnalyticsCacheKeys.enrollment_scope("c1", "u1")
        assessment = AnalyticsCacheKeys.assessment_scope("c1", "u1")
        assert enrollment.target == "analytics:enrollment:c1:u1"
        assert assessment.target == "analytics:assessment:c1:u1"

    def test_payment_scope_for_course(self) -> None:
        """Payment scope with a course is a key scope."""
        scope = AnalyticsCacheKeys.payment_scope("c1")
        assert scope.target == "analytics:payment:c1"
        assert not scope.is_pattern

    def test_payment_scope_global(self) -> None:
        """Payment scope without a course covers every course."""
        scope = AnalyticsCacheKeys.payment_scope()
        assert scope.target == "analytics:payment:*"
        assert scope.is_pattern

    @pytest.mark.parametrize(
        ("scope", "target"),
        [
            (AnalyticsCacheKeys.dashboard_scope(), "analytics:dashboard:*"),
            (AnalyticsCacheKeys.platform_scope(), "analytics:platform:*"),
            (AnalyticsCacheKeys.trending_scope(), "analytics:trending:*"),
            (AnalyticsCacheKeys.top_performers_scope(), "analytics:top-performers:*"),
            (AnalyticsCacheKeys.all_scope(), "analytics:*"),
        ],
    )
    def test_pattern_scopes(self, scope: CacheScope, target: str) -> None:
        """Aggregate scopes are wildcard patterns."""
        assert scope.target == target
        assert scope.is_pattern

    def test_scope_str_is_target(self) -> None:
        """Scopes render as their target."""
        assert str(AnalyticsCacheKeys.student_scope("u1")) == "analytics:student:u1"

    def test_parse_valid_key(self) -> None:
        """Valid key is parsed and decoded."""
        result = AnalyticsCacheKeys.parse_key(build_key("analytics", "course", "a:b", "report"))
        assert result is not None
        assert result["prefix"] == "analytics"
        assert result["namespace"] == "course"
        assert result["segments"] == ["a:b", "report"]

    def test_parse_invalid_key_returns_none(self) -> None:
        """Keys outside the analytics namespace return None."""
        assert AnalyticsCacheKeys.parse_key("invalid") is None
        assert AnalyticsCacheKeys.parse_key("user:123") is None
