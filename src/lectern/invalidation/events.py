"""Invalidation event schemas.

Defines the domain change notifications that can make cached analytics
stale, and the category each one belongs to. Producers build an
InvalidationEvent when a write commits and hand it to the invalidator once.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

import orjson


class InvalidationEventType(str, Enum):
    """Domain change that may invalidate analytics."""

    # Course events
    COURSE_CREATED = "course.created"
    COURSE_UPDATED = "course.updated"
    COURSE_PUBLISHED = "course.published"
    COURSE_DELETED = "course.deleted"

    # Enrollment events
    ENROLLMENT_CREATED = "enrollment.created"
    ENROLLMENT_COMPLETED = "enrollment.completed"
    ENROLLMENT_WITHDRAWN = "enrollment.withdrawn"
    LESSON_PROGRESS_UPDATED = "lesson.progress.updated"

    # Assessment events
    QUIZ_SUBMITTED = "quiz.submitted"
    QUIZ_GRADED = "quiz.graded"
    ASSIGNMENT_SUBMITTED = "assignment.submitted"
    ASSIGNMENT_GRADED = "assignment.graded"

    # Payment events
    PAYMENT_COMPLETED = "payment.completed"
    PAYMENT_FAILED = "payment.failed"
    REFUND_PROCESSED = "refund.processed"

    # User events
    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"
    USER_DELETED = "user.deleted"

    # Communication events
    DISCUSSION_POST_CREATED = "discussion.post.created"
    MESSAGE_SENT = "message.sent"
    ANNOUNCEMENT_CREATED = "announcement.created"


class EventCategory(str, Enum):
    """Group of event types sharing one invalidation policy."""

    COURSE = "course"
    COURSE_DELETED = "course_deleted"
    ENROLLMENT = "enrollment"
    LESSON_PROGRESS = "lesson_progress"
    ASSESSMENT = "assessment"
    PAYMENT = "payment"
    USER = "user"
    USER_DELETED = "user_deleted"
    COMMUNICATION = "communication"


EVENT_CATEGORIES: dict[InvalidationEventType, EventCategory] = {
    InvalidationEventType.COURSE_CREATED: EventCategory.COURSE,
    InvalidationEventType.COURSE_UPDATED: EventCategory.COURSE,
    InvalidationEventType.COURSE_PUBLISHED: EventCategory.COURSE,
    InvalidationEventType.COURSE_DELETED: EventCategory.COURSE_DELETED,
    InvalidationEventType.ENROLLMENT_CREATED: EventCategory.ENROLLMENT,
    InvalidationEventType.ENROLLMENT_COMPLETED: EventCategory.ENROLLMENT,
    InvalidationEventType.ENROLLMENT_WITHDRAWN: EventCategory.ENROLLMENT,
    InvalidationEventType.LESSON_PROGRESS_UPDATED: EventCategory.LESSON_PROGRESS,
    InvalidationEventType.QUIZ_SUBMITTED: EventCategory.ASSESSMENT,
    InvalidationEventType.QUIZ_GRADED: EventCategory.ASSESSMENT,
    InvalidationEventType.ASSIGNMENT_SUBMITTED: EventCategory.ASSESSMENT,
    InvalidationEventType.ASSIGNMENT_GRADED: EventCategory.ASSESSMENT,
    InvalidationEventType.PAYMENT_COMPLETED: EventCategory.PAYMENT,
    InvalidationEventType.PAYMENT_FAILED: EventCategory.PAYMENT,
    InvalidationEventType.REFUND_PROCESSED: EventCategory.PAYMENT,
    InvalidationEventType.USER_CREATED: EventCategory.USER,
    InvalidationEventType.USER_UPDATED: EventCategory.USER,
    InvalidationEventType.USER_DELETED: EventCategory.USER_DELETED,
    InvalidationEventType.DISCUSSION_POST_CREATED: EventCategory.COMMUNICATION,
    InvalidationEventType.MESSAGE_SENT: EventCategory.COMMUNICATION,
    InvalidationEventType.ANNOUNCEMENT_CREATED: EventCategory.COMMUNICATION,
}

# Types whose batches are merged into one deduplicated set of evictions
BULK_OPTIMIZABLE_TYPES = frozenset(
    {
        InvalidationEventType.COURSE_UPDATED,
        InvalidationEventType.COURSE_PUBLISHED,
        InvalidationEventType.ENROLLMENT_CREATED,
        InvalidationEventType.ENROLLMENT_COMPLETED,
    }
)

# Payload field names accepted by from_dict, mapped to dataclass fields
_ID_FIELDS = {
    "user_id": ("user_id", "userId"),
    "course_id": ("course_id", "courseId"),
    "enrollment_id": ("enrollment_id", "enrollmentId"),
    "lesson_id": ("lesson_id", "lessonId"),
    "quiz_id": ("quiz_id", "quizId"),
    "assignment_id": ("assignment_id", "assignmentId"),
    "payment_id": ("payment_id", "paymentId"),
}
_TYPE_FIELDS = ("event_type", "eventType", "type")


class InvalidEventPayload(ValueError):
    """Raised when a producer payload cannot be turned into an event."""


def parse_event_type(value: InvalidationEventType | str) -> InvalidationEventType | None:
    """Return the matching event type, or None for an unrecognised tag."""
    if isinstance(value, InvalidationEventType):
        return value
    try:
        return InvalidationEventType(value)
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class InvalidationEvent:
    """A domain change that may have made cached analytics stale.

    ``event_type`` is normalised to an InvalidationEventType when the tag is
    known; unknown tags are kept as plain strings so that the router can log
    and drop them. Identifiers are all optional and independent.
    """

    event_type: InvalidationEventType | str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    user_id: str | None = None
    course_id: str | None = None
    enrollment_id: str | None = None
    lesson_id: str | None = None
    quiz_id: str | None = None
    assignment_id: str | None = None
    payment_id: str | None = None
    metadata: Mapping[str, Any] | None = None  # Forwarded to logs only
    event_id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self) -> None:
        known = parse_event_type(self.event_type)
        if known is not None:
            object.__setattr__(self, "event_type", known)

    @property
    def known_type(self) -> InvalidationEventType | None:
        """The event type, or None when the tag is not recognised."""
        return self.event_type if isinstance(self.event_type, InvalidationEventType) else None

    @property
    def type_name(self) -> str:
        """The wire value of the event type."""
        if isinstance(self.event_type, InvalidationEventType):
            return self.event_type.value
        return str(self.event_type)

    @property
    def category(self) -> EventCategory | None:
        known = self.known_type
        return EVENT_CATEGORIES[known] if known is not None else None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        data: dict[str, Any] = {
            "event_id": self.event_id,
            "event_type": self.type_name,
            "timestamp": self.timestamp.isoformat(),
        }
        for name in _ID_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.metadata is not None:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InvalidationEvent":
        """Build an event from a producer payload.

        Accepts snake_case and camelCase field names.
        """
        event_type = next((data[k] for k in _TYPE_FIELDS if data.get(k)), None)
        if event_type is None:
            raise InvalidEventPayload("Event payload is missing its type")

        if not isinstance(event_type, InvalidationEventType):
            event_type = str(event_type)
        kwargs: dict[str, Any] = {"event_type": event_type}

        for name, aliases in _ID_FIELDS.items():
            value = next((data[a] for a in aliases if data.get(a) is not None), None)
            if value is not None:
                kwargs[name] = str(value)

        timestamp = data.get("timestamp")
        if isinstance(timestamp, datetime):
            kwargs["timestamp"] = timestamp
        elif timestamp is not None:
            try:
                kwargs["timestamp"] = datetime.fromisoformat(str(timestamp))
            except ValueError as e:
                raise InvalidEventPayload(f"Invalid event timestamp: {timestamp!r}") from e

        metadata = data.get("metadata")
        if metadata is not None:
            if not isinstance(metadata, Mapping):
                raise InvalidEventPayload("Event metadata must be an object")
            kwargs["metadata"] = dict(metadata)

        event_id = data.get("event_id") or data.get("eventId")
        if event_id:
            kwargs["event_id"] = str(event_id)

        return cls(**kwargs)

    @classmethod
    def from_bytes(cls, data: bytes) -> "InvalidationEvent":
        """Deserialize from JSON bytes."""
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as e:
            raise InvalidEventPayload(f"Event payload is not valid JSON: {e}") from e
        if not isinstance(parsed, Mapping):
            raise InvalidEventPayload("Event payload must be a JSON object")
        return cls.from_dict(parsed)

    def to_bytes(self) -> bytes:
        """Serialize to JSON bytes."""
        return orjson.dumps(self.to_dict())
