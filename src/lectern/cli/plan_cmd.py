"""CLI command for previewing an invalidation.

Usage:
    lectern plan course.published --course-id c1
    lectern plan payment.completed
"""

from __future__ import annotations

import typer

from lectern.cli._events import build_event
from lectern.invalidation.policies import scopes_for

app = typer.Typer(help="Show the cache scopes an event would evict")


@app.callback(invoke_without_command=True)
def plan(
    event_type: str = typer.Argument(
        ...,
        help="Event type, e.g. course.published",
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
    """Print the scopes an event evicts, without touching the cache."""
    from rich.console import Console
    from rich.table import Table

    console = Console()
    event = build_event(event_type, course_id, user_id)
    scopes = scopes_for(event) or []

    if not scopes:
        console.print(f"[yellow]No cache scopes evicted for[/yellow] {event.type_name}")
        return

    table = Table(title=f"Evictions for {event.type_name}")
    table.add_column("Scope")
    table.add_column("Target")
    table.add_column("Operation")

    for scope in scopes:
        operation = "delete pattern" if scope.is_pattern else "delete scope"
        table.add_row(scope.kind, scope.target, operation)

    console.print(table)
