"""Settle-all fan-out.

Runs a set of awaitables concurrently and waits for every one of them,
returning failures in place of results. A failing awaitable never cancels
its siblings.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def settle_all(aws: Iterable[Awaitable[T]]) -> list[T | BaseException]:
    """Await all of ``aws`` concurrently.

    Results are returned in input order; an awaitable that raised contributes
    its exception instead of a result.
    """
    pending = list(aws)
    if not pending:
        return []
    return await asyncio.gather(*pending, return_exceptions=True)


def failures(results: Iterable[T | BaseException]) -> list[BaseException]:
    """Exceptions among settled results."""
    return [r for r in results if isinstance(r, BaseException)]
