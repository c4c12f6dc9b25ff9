"""Wait strategies for the retry loop.

Provides the two-source wait the orchestrator suspends on between attempts:
    - race: First to complete wins, cancel others
    - sleep_or_cancel: Backoff delay raced against context cancellation

Example:
    >>> if not await sleep_or_cancel(delay, ctx):
    ...     return Err(RetryCancelled(ctx.cause, attempts))
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from .context import CancelContext

T = TypeVar("T")

# Marker returned by the timer side of sleep_or_cancel
_ELAPSED = object()


async def race(
    *coros: Awaitable[T],
    timeout: float | None = None,
) -> T:
    """Race multiple awaitables - first to complete wins.

    Cancels all remaining awaitables after the first completes and waits
    for those cancellations, so losers have no further effect.
    If the first to complete raises, that exception propagates.

    Raises:
        ValueError: If no awaitables provided
        asyncio.TimeoutError: If timeout expires
    """
    if not coros:
        raise ValueError("race() requires at least one coroutine")

    tasks = [asyncio.ensure_future(c) for c in coros]

    try:
        done, pending = await asyncio.wait(
            tasks,
            timeout=timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if not done:
            raise asyncio.TimeoutError()

        # Several may finish in the same loop iteration; keep argument order
        winner = next(t for t in tasks if t in done)
        return winner.result()

    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise


async def _elapse(delay: float) -> object:
    await asyncio.sleep(delay)
    return _ELAPSED


async def sleep_or_cancel(delay: float, ctx: CancelContext) -> bool:
    """Wait *delay* seconds unless *ctx* fires first.

    Returns:
        True if the delay elapsed with the context still live,
        False if the context fired first (or at the same time).
    """
    if ctx.cancelled:
        return False
    if delay <= 0:
        await asyncio.sleep(0)
        return not ctx.cancelled

    winner = await race(_elapse(delay), ctx.wait())
    return winner is _ELAPSED and not ctx.cancelled
