"""Bounded producer/consumer handoff for fetched messages.

A fetch runs as a separate task that pushes items into a fixed-capacity
queue while the caller drains it. Once the producer finishes, the queue is
closed and the producer's outcome is collected, so a failed fetch surfaces
after the items it managed to deliver.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")

_CLOSED = object()


class Emitter(Generic[T]):
    """Write side of the queue handed to producers."""

    def __init__(self, queue: asyncio.Queue) -> None:
        self._queue = queue

    async def __call__(self, item: T) -> None:
        await self._queue.put(item)


async def stream(
    producer: Callable[[Emitter[T]], Awaitable[None]],
    maxsize: int = 10,
) -> AsyncIterator[T]:
    """Run ``producer`` concurrently and yield what it emits.

    Args:
        producer: Coroutine function receiving an emitter to push items with.
        maxsize: Queue capacity; the producer blocks while the queue is full.

    Yields:
        Items in the order the producer emitted them.

    Raises:
        Exception: Whatever the producer raised, once its items are drained.
    """

    queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    async def _run() -> None:
        try:
            await producer(Emitter(queue))
        except asyncio.CancelledError:
            raise
        except Exception:
            await queue.put(_CLOSED)
            raise
        await queue.put(_CLOSED)

    task = asyncio.create_task(_run())
    closed = False
    try:
        while True:
            item = await queue.get()
            if item is _CLOSED:
                closed = True
                break
            yield item
    finally:
        if not closed:
            # Consumer stopped early; the producer's outcome no longer matters.
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task
    # Re-raises the producer's exception, if any.
    await task
