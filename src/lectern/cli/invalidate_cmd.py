"""CLI command for running a single invalidation.

Usage:
    lectern invalidate course.deleted --course-id c1
    lectern invalidate user.updated --user-id u1
"""

from __future__ import annotations

import asyncio

import typer

from lectern.cli._events import build_event
from lectern.invalidation.events import InvalidationEvent

app = typer.Typer(help="Run one invalidation event against the cache")


@app.callback(invoke_without_command=True)
def invalidate(
    event_type: str = typer.Argument(
        ...,
        help="Event type, e.g. course.deleted",
    ),
    course_id: str | None = typer.Option(
        None,
        "--course-id",
        "-c",
        help="Course the event refers to",
    ),
    user_id: str | None = typer.Option(
        None,
        "--user-id",
        "-u",
        help="User the event refers to",
    ),
) -> None:
    """Evict the cache scopes affected by one event."""
    event = build_event(event_type, course_id, user_id)
    asyncio.run(_invalidate(event))
    typer.echo(f"Invalidation for {event.type_name} dispatched")


async def _invalidate(event: InvalidationEvent) -> None:
    """Async implementation of invalidate command."""
    from lectern.cache.redis import close_redis
    from lectern.invalidation.runtime import create_invalidator
    from lectern.observability.logging import configure_logging

    configure_logging()

    try:
        invalidator = await create_invalidator()
        await invalidator.handle_event(event)
    finally:
        await close_redis()
