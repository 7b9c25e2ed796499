"""Camera capability probe.

Finds which device indices can be opened by brute-force open/close over a
bounded index range. Probing is an explicit initialization step (startup
and manual camera switch) and never runs inside the render loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import cv2

from termcam.domain.models import CameraSet

logger = logging.getLogger(__name__)

DEFAULT_MAX_INDEX = 10


def probe_cameras(
    max_index: int = DEFAULT_MAX_INDEX,
    opener: Callable[[int], Any] = cv2.VideoCapture,
) -> list[int]:
    """Return the device indices in ``0..=max_index`` that open successfully.

    Each handle is released immediately so the capture pipeline can open
    the device later without contention.
    """
    available: list[int] = []
    for index in range(max_index + 1):
        cap = opener(index)
        try:
            if cap.isOpened():
                available.append(index)
        finally:
            cap.release()
    logger.info("Probed cameras 0..%d, available: %s", max_index, available or "none")
    return available


class CameraProbe:
    """Async wrapper around ``probe_cameras`` producing CameraSets."""

    def __init__(
        self,
        max_index: int = DEFAULT_MAX_INDEX,
        opener: Callable[[int], Any] = cv2.VideoCapture,
    ) -> None:
        if max_index < 0:
            raise ValueError(f"max_index must be >= 0, got {max_index}")
        self._max_index = max_index
        self._opener = opener

    async def devices(self) -> list[int]:
        """Probe without touching any shared state."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, probe_cameras, self._max_index, self._opener)

    async def initial(self, preferred: int | None = None) -> CameraSet:
        """Probe at startup, selecting ``preferred`` when it is available."""
        devices = await self.devices()
        if not devices:
            logger.warning("No camera available; running without video")
        return CameraSet.from_devices(devices, preferred=preferred)

    async def refresh(self, current: CameraSet) -> CameraSet:
        """Re-probe, keeping the active device of ``current`` selected."""
        return current.merged(await self.devices())
