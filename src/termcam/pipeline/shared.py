"""Shared render configuration guarded by a reader/writer lock.

The capture task reads the configuration every tick and writes it when it
fails over to another camera; the application loop writes it on user input
and reads it on every redraw. The whole ``RenderConfig`` is locked as one
unit, and since it is frozen, a snapshot taken under the read lock stays
consistent for as long as the reader keeps it.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from termcam.domain.models import RenderConfig

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """asyncio reader/writer lock.

    Any number of readers may hold the lock together; a writer holds it
    alone. Waiting writers block new readers so that frequent reads cannot
    starve an update.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writing = False
        self._waiting_writers = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writing(self) -> bool:
        return self._writing

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writing and self._waiting_writers == 0)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._cond.wait_for(lambda: not self._writing and self._readers == 0)
            finally:
                self._waiting_writers -= 1
                self._cond.notify_all()
            self._writing = True
        try:
            yield
        finally:
            async with self._cond:
                self._writing = False
                self._cond.notify_all()


class SharedRenderConfig:
    """The one mutable cell holding the current RenderConfig."""

    def __init__(self, config: RenderConfig) -> None:
        self._config = config
        self._lock = ReadWriteLock()

    @property
    def lock(self) -> ReadWriteLock:
        return self._lock

    async def snapshot(self) -> RenderConfig:
        """Return the current configuration under the read lock."""
        async with self._lock.read():
            return self._config

    async def update(self, transform: Callable[[RenderConfig], RenderConfig]) -> RenderConfig:
        """Replace the configuration with ``transform(current)`` under the write lock."""
        async with self._lock.write():
            updated = transform(self._config)
            if not isinstance(updated, RenderConfig):
                raise TypeError(f"transform must return a RenderConfig, got {type(updated).__name__}")
            self._config = updated
            return updated

    async def replace(self, **changes: object) -> RenderConfig:
        """Replace whole fields, re-validating the result."""
        return await self.update(lambda current: RenderConfig(**{**dict(current), **changes}))
