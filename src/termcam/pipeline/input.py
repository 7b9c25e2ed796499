"""The input pipeline task.

Translates raw terminal events into application events, in arrival order,
without filtering. Deciding what a key means is the application loop's job.
"""

from __future__ import annotations

import logging

from termcam.domain.models import AppEvent, KeyPressed, TerminalResized
from termcam.pipeline.bus import BusClosedError, EventBus
from termcam.terminal.base import RawEvent, RawKey, RawResize, TerminalBackend

logger = logging.getLogger(__name__)


def translate(raw: RawEvent) -> AppEvent | None:
    """Map one raw terminal event to its application event."""
    if isinstance(raw, RawKey):
        return KeyPressed(key=raw.key)
    if isinstance(raw, RawResize):
        return TerminalResized(width=raw.width, height=raw.height)
    logger.debug("Ignoring unknown raw event %r", raw)
    return None


class InputPipeline:
    """Background producer of key and resize events."""

    def __init__(self, backend: TerminalBackend, bus: EventBus) -> None:
        self._backend = backend
        self._bus = bus
        self._events_published = 0

    @property
    def events_published(self) -> int:
        return self._events_published

    async def run(self) -> None:
        """Forward terminal events until the stream ends or the bus closes."""
        logger.info("Input pipeline started")
        try:
            async for raw in self._backend.events():
                event = translate(raw)
                if event is None:
                    continue
                await self._bus.publish(event)
                self._events_published += 1
        except BusClosedError:
            logger.info("Event bus closed, input pipeline stopping")
        finally:
            logger.info("Input pipeline stopped after %d events", self._events_published)
