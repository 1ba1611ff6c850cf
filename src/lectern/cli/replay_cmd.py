"""CLI command for replaying invalidation events.

Reads a JSON array of events, or one JSON event per line, and runs them
through the batch processor.

Usage:
    lectern replay events.json
    lectern replay events.jsonl --dry-run
"""

from __future__ import annotations

import asyncio
from collections import Counter
from pathlib import Path

import orjson
import typer

from lectern.invalidation.events import InvalidationEvent, InvalidEventPayload

app = typer.Typer(help="Replay a file of invalidation events")


def load_events(raw: bytes) -> list[InvalidationEvent]:
    """Parse a JSON array or JSON-lines document into events."""
    text = raw.strip()
    if not text:
        return []

    if text.startswith(b"["):
        try:
            payloads = orjson.loads(text)
        except orjson.JSONDecodeError as e:
            raise InvalidEventPayload(f"Invalid JSON array: {e}") from e
        events = []
        for index, payload in enumerate(payloads):
            if not isinstance(payload, dict):
                raise InvalidEventPayload(f"Item {index}: event must be a JSON object")
            try:
                events.append(InvalidationEvent.from_dict(payload))
            except InvalidEventPayload as e:
                raise InvalidEventPayload(f"Item {index}: {e}") from e
        return events

    events = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            events.append(InvalidationEvent.from_bytes(line))
        except InvalidEventPayload as e:
            raise InvalidEventPayload(f"Line {line_no}: {e}") from e
    return events


@app.callback(invoke_without_command=True)
def replay(
    path: Path = typer.Argument(
        ...,
        help="Path to a JSON or JSON-lines file of events",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Parse and summarise without touching the cache",
    ),
) -> None:
    """Run every event in a file through the batch processor."""
    from rich.console import Console
    from rich.table import Table

    console = Console()

    try:
        events = load_events(path.read_bytes())
    except InvalidEventPayload as e:
        console.print(f"[red]Error reading events:[/red] {e}")
        raise typer.Exit(code=1) from e

    counts = Counter(event.type_name for event in events)
    table = Table(title=f"{len(events)} events in {path.name}")
    table.add_column("Event type")
    table.add_column("Count", justify="right")
    for type_name, count in counts.items():
        table.add_row(type_name, str(count))
    console.print(table)

    if dry_run or not events:
        return

    asyncio.run(_replay(events))
    console.print("[green]Batch invalidation dispatched[/green]")


async def _replay(events: list[InvalidationEvent]) -> None:
    """Async implementation of replay command."""
    from lectern.cache.redis import close_redis
    from lectern.invalidation.runtime import create_invalidator
    from lectern.observability.logging import configure_logging

    configure_logging()

    try:
        invalidator = await create_invalidator()
        await invalidator.handle_batch(events)
    finally:
        await close_redis()
