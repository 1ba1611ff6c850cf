"""CLI command for inspecting the analytics cache.

Usage:
    lectern stats
"""

from __future__ import annotations

import asyncio

import typer

from lectern.cache.stats import CacheStats

app = typer.Typer(help="Count the keys in the analytics cache")


@app.callback(invoke_without_command=True)
def stats() -> None:
    """Print live key counts per analytics namespace."""
    from rich.console import Console
    from rich.table import Table

    result = asyncio.run(_stats())

    console = Console()
    console.print(f"Analytics cache at {result.timestamp:%Y-%m-%d %H:%M:%S} UTC")

    table = Table()
    table.add_column("Namespace")
    table.add_column("Keys", justify="right")

    table.add_row("course", str(result.course_keys))
    table.add_row("student", str(result.student_keys))
    table.add_row("dashboard", str(result.dashboard_keys))
    table.add_row("reports", str(result.report_keys))
    table.add_row("total", str(result.total_keys), style="bold")

    console.print(table)


async def _stats() -> CacheStats:
    """Async implementation of stats command."""
    from lectern.cache.redis import close_redis
    from lectern.cache.stats import cache_stats
    from lectern.invalidation.runtime import create_store

    try:
        return await cache_stats(await create_store())
    finally:
        await close_redis()
