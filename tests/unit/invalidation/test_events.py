"""Tests for invalidation event schemas."""

from datetime import UTC, datetime

import orjson
import pytest

from lectern.invalidation.events import (
    BULK_OPTIMIZABLE_TYPES,
    EVENT_CATEGORIES,
    EventCategory,
    InvalidationEvent,
    InvalidationEventType,
    InvalidEventPayload,
)
from lectern.invalidation.policies import POLICIES


class TestEventTaxonomy:
    """Test the closed set of event types and categories."""

    def test_every_type_has_a_category(self) -> None:
        """No event type falls through dispatch."""
        assert set(EVENT_CATEGORIES) == set(InvalidationEventType)

    def test_every_category_has_a_policy(self) -> None:
        """Every category is handled by exactly one policy."""
        assert set(POLICIES) == set(EventCategory)

    def test_wire_values(self) -> None:
        """Event type values match the producer tags."""
        assert InvalidationEventType.ENROLLMENT_CREATED.value == "enrollment.created"
        assert InvalidationEventType.LESSON_PROGRESS_UPDATED.value == "lesson.progress.updated"
        assert InvalidationEventType.REFUND_PROCESSED.value == "refund.processed"
        assert InvalidationEventType.DISCUSSION_POST_CREATED.value == "discussion.post.created"

    def test_deletions_have_their_own_category(self) -> None:
        """Deletion events use the aggressive policies."""
        assert EVENT_CATEGORIES[InvalidationEventType.COURSE_DELETED] is EventCategory.COURSE_DELETED
        assert EVENT_CATEGORIES[InvalidationEventType.USER_DELETED] is EventCategory.USER_DELETED

    def test_bulk_optimizable_types(self) -> None:
        """Only course updates and enrollment creation/completion are merged."""
        assert BULK_OPTIMIZABLE_TYPES == {
            InvalidationEventType.COURSE_UPDATED,
            InvalidationEventType.COURSE_PUBLISHED,
            InvalidationEventType.ENROLLMENT_CREATED,
            InvalidationEventType.ENROLLMENT_COMPLETED,
        }


class TestInvalidationEvent:
    """Test event dataclass behavior."""

    def test_has_defaults(self) -> None:
        """Events get an id and a UTC timestamp."""
        event = InvalidationEvent(InvalidationEventType.COURSE_CREATED, course_id="c1")
        assert event.event_id
        assert event.timestamp.tzinfo is not None
        assert event.user_id is None
        assert event.metadata is None

    def test_is_immutable(self) -> None:
        """Events are frozen."""
        event = InvalidationEvent(InvalidationEventType.COURSE_CREATED)
        with pytest.raises(AttributeError):
            event.course_id = "changed"  # type: ignore

    def test_known_string_type_is_normalised(self) -> None:
        """A known tag given as a string becomes the enum member."""
        event = InvalidationEvent("payment.completed")
        assert event.event_type is InvalidationEventType.PAYMENT_COMPLETED
        assert event.category is EventCategory.PAYMENT

    def test_unknown_type_is_kept(self) -> None:
        """Unknown tags are preserved for logging."""
        event = InvalidationEvent("course.archived")
        assert event.known_type is None
        assert event.category is None
        assert event.type_name == "course.archived"

    def test_tolerates_no_identifiers(self) -> None:
        """Any combination of ids, including none, is accepted."""
        event = InvalidationEvent(InvalidationEventType.MESSAGE_SENT)
        assert event.type_name == "message.sent"


class TestEventPayloads:
    """Test parsing producer payloads."""

    def test_from_dict_camel_case(self) -> None:
        """camelCase payloads from the LMS are accepted."""
        event = InvalidationEvent.from_dict(
            {
                "eventType": "enrollment.completed",
                "timestamp": "2024-03-01T10:00:00+00:00",
                "courseId": "c1",
                "userId": "u1",
                "enrollmentId": "e1",
                "metadata": {"source": "graphql"},
            }
        )

        assert event.event_type is InvalidationEventType.ENROLLMENT_COMPLETED
        assert event.course_id == "c1"
        assert event.user_id == "u1"
        assert event.enrollment_id == "e1"
        assert event.timestamp == datetime(2024, 3, 1, 10, 0, tzinfo=UTC)
        assert event.metadata == {"source": "graphql"}

    def test_from_dict_snake_case(self) -> None:
        """snake_case payloads are accepted."""
        event = InvalidationEvent.from_dict({"type": "quiz.graded", "course_id": 7, "user_id": "u"})
        assert event.event_type is InvalidationEventType.QUIZ_GRADED
        assert event.course_id == "7"

    def test_from_dict_keeps_unknown_type(self) -> None:
        """Unknown tags parse; the router decides what to do with them."""
        event = InvalidationEvent.from_dict({"type": "badge.awarded"})
        assert event.known_type is None

    def test_from_dict_requires_type(self) -> None:
        """Payloads without a type are rejected."""
        with pytest.raises(InvalidEventPayload):
            InvalidationEvent.from_dict({"courseId": "c1"})

    def test_from_dict_rejects_bad_timestamp(self) -> None:
        """Unparseable timestamps are rejected."""
        with pytest.raises(InvalidEventPayload):
            InvalidationEvent.from_dict({"type": "user.created", "timestamp": "yesterday"})

    def test_from_bytes_rejects_invalid_json(self) -> None:
        """Invalid JSON raises InvalidEventPayload, which is a ValueError."""
        with pytest.raises(ValueError):
            InvalidationEvent.from_bytes(b"{not json")

    def test_from_bytes_rejects_non_object(self) -> None:
        """JSON that is not an object is rejected."""
        with pytest.raises(InvalidEventPayload):
            InvalidationEvent.from_bytes(b"[1, 2]")

    def test_to_bytes_is_parsed_back(self) -> None:
        """Serialized events parse to an equal event."""
        event = InvalidationEvent(
            InvalidationEventType.REFUND_PROCESSED,
            course_id="c1",
            payment_id="p1",
            metadata={"amount": 10},
        )
        assert InvalidationEvent.from_bytes(event.to_bytes()) == event

    def test_to_dict_omits_absent_ids(self) -> None:
        """Only present identifiers are serialized."""
        data = InvalidationEvent(InvalidationEventType.USER_CREATED, user_id="u1").to_dict()
        assert data["event_type"] == "user.created"
        assert data["user_id"] == "u1"
        assert "course_id" not in data
        assert orjson.loads(orjson.dumps(data)) == data
