"""Event construction shared by the CLI commands."""

from __future__ import annotations

import typer

from lectern.invalidation.events import InvalidationEvent, InvalidationEventType, parse_event_type


def build_event(
    event_type: str,
    course_id: str | None,
    user_id: str | None,
) -> InvalidationEvent:
    """Build an event from command-line values, exiting on an unknown type."""
    if parse_event_type(event_type) is None:
        known = ", ".join(t.value for t in InvalidationEventType)
        typer.echo(f"Error: Unknown event type {event_type!r}. Known types: {known}", err=True)
        raise typer.Exit(code=1)

    return InvalidationEvent(event_type, course_id=course_id, user_id=user_id)
