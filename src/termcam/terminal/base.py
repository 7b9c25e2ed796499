"""Abstract base class for the terminal backend.

The backend owns the screen and the keyboard: it delivers raw key and
resize events, and paints rendered frames. Sizes reported by the backend
are always the video area, i.e. the cells available for the picture once
the surrounding panel and status line are accounted for.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Union

from pydantic import BaseModel, ConfigDict, Field

from termcam.domain.models import KeyPress, RenderConfig, RenderedFrame

logger = logging.getLogger(__name__)


class RawKey(BaseModel):
    """A decoded key press as read from the terminal."""

    model_config = ConfigDict(frozen=True)

    key: KeyPress


class RawResize(BaseModel):
    """The terminal was resized; sizes are the new video area."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(ge=0)
    height: int = Field(ge=0)


RawEvent = Union[RawKey, RawResize]


class TerminalBackend(ABC):
    """Abstract interface for drawing frames and reading terminal input.

    Example usage::

        async with ConsoleTerminal() as terminal:
            async for event in terminal.events():
                ...
    """

    @abstractmethod
    def size(self) -> tuple[int, int]:
        """Current video area (width, height) in cells."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Take over the terminal (input mode, alternate screen).

        Raises:
            TerminalError: If there is no usable terminal.
        """
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Restore the terminal and end the event stream. Safe to call twice."""
        ...

    @abstractmethod
    def events(self) -> AsyncIterator[RawEvent]:
        """Yield raw events in arrival order until the backend stops."""
        ...

    @abstractmethod
    async def draw(self, frame: RenderedFrame, config: RenderConfig) -> None:
        """Paint ``frame`` and a status line describing ``config``."""
        ...

    async def __aenter__(self) -> TerminalBackend:
        """Async context manager entry -- takes over the terminal."""
        await self.start()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Async context manager exit -- restores the terminal."""
        await self.stop()


class TerminalError(Exception):
    """Raised when the terminal cannot be used."""
