"""Event bus merging frame and input events into one ordered stream.

Multi-producer, single-consumer, unbounded, FIFO across all producers
combined. Closing the bus is how the consumer tells producers to stop.
"""

from __future__ import annotations

import asyncio
import logging

from termcam.domain.models import AppEvent

logger = logging.getLogger(__name__)


class BusClosedError(Exception):
    """Raised when publishing to a bus whose consumer has gone away."""


class EventBus:
    """Unbounded FIFO queue of application events."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[AppEvent] = asyncio.Queue()
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return self._queue.qsize()

    async def publish(self, event: AppEvent) -> None:
        """Append an event.

        Raises:
            BusClosedError: If the consumer has closed the bus.
        """
        if self._closed:
            raise BusClosedError(f"cannot publish {event.event_type}: bus is closed")
        self._queue.put_nowait(event)

    async def next(self) -> AppEvent:
        """Wait for and return the oldest pending event."""
        return await self._queue.get()

    def close(self) -> None:
        """Stop accepting events and drop anything still queued."""
        if self._closed:
            return
        self._closed = True
        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            dropped += 1
        logger.debug("Event bus closed (%d pending events dropped)", dropped)
