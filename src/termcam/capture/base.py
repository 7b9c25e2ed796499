"""Abstract base class for camera capture sources.

All capture implementations must conform to this interface, enabling
the pipeline to swap between an OpenCV webcam and a scripted source in
tests without changing the rest of the system.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from termcam.domain.models import CapturedFrame

logger = logging.getLogger(__name__)


class CaptureSource(ABC):
    """Abstract interface for capturing frames from one camera device.

    Example usage::

        async with WebcamCapture(device_index=0) as capture:
            frame = await capture.capture_frame()
    """

    def __init__(self, device_index: int = 0) -> None:
        self._device_index = device_index
        self._frame_counter: int = 0
        self._is_open: bool = False

    @property
    def device_index(self) -> int:
        return self._device_index

    @property
    def is_open(self) -> bool:
        """Whether the capture device is currently open and ready."""
        return self._is_open

    @abstractmethod
    async def open(self) -> None:
        """Open and initialize the capture device.

        Raises:
            CaptureError: If the device cannot be opened.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the capture device. Safe to call more than once."""
        ...

    @abstractmethod
    async def capture_frame(self) -> CapturedFrame:
        """Read a single frame from the device.

        Raises:
            CaptureError: If the read fails.
        """
        ...

    async def __aenter__(self) -> CaptureSource:
        """Async context manager entry -- opens the capture device."""
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Async context manager exit -- closes the capture device."""
        await self.close()


class CaptureError(Exception):
    """Raised when a camera cannot be opened or read."""

    def __init__(self, message: str, device_index: int | None = None) -> None:
        super().__init__(message)
        self.device_index = device_index


class ResizeError(CaptureError):
    """Raised when the backend rejects a resize to the requested grid."""
