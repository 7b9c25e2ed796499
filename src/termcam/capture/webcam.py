"""OpenCV camera source used by the capture pipeline.

One ``WebcamCapture`` wraps one device index. The pipeline creates a new
instance whenever the active camera changes and closes it on any fault, so
every failure here surfaces as a ``CaptureError`` tagged with the device
index; the pipeline turns that into a camera advance.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

import cv2
import numpy as np

from termcam.capture.base import CaptureError, CaptureSource
from termcam.domain.models import CapturedFrame

logger = logging.getLogger(__name__)


class WebcamCapture(CaptureSource):
    """A single camera device opened through ``cv2.VideoCapture``.

    Opening, configuring and reading all block inside OpenCV, so each runs
    in the default thread pool executor.

    Args:
        device_index: OpenCV camera index, as found by the camera probe.
        resolution: Optional (width, height) requested from the driver. The
            driver may pick a different size; frames are resized anyway.
    """

    def __init__(
        self,
        device_index: int = 0,
        resolution: tuple[int, int] | None = None,
    ) -> None:
        super().__init__(device_index=device_index)
        self._resolution = resolution
        self._cap: cv2.VideoCapture | None = None

    def _fault(self, message: str) -> CaptureError:
        return CaptureError(f"Camera {self._device_index}: {message}", device_index=self._device_index)

    def _open_sync(self) -> cv2.VideoCapture:
        cap = cv2.VideoCapture(self._device_index)
        if not cap.isOpened():
            # A handle that failed to open still holds driver resources
            cap.release()
            raise self._fault("cannot be opened")
        if self._resolution:
            width, height = self._resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        return cap

    async def open(self) -> None:
        loop = asyncio.get_running_loop()
        self._cap = await loop.run_in_executor(None, self._open_sync)
        self._is_open = True
        logger.info(
            "Camera %d opened at %dx%d",
            self._device_index,
            int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    async def close(self) -> None:
        cap, self._cap = self._cap, None
        self._is_open = False
        if cap is not None and cap.isOpened():
            cap.release()
            logger.info("Camera %d released", self._device_index)

    async def capture_frame(self) -> CapturedFrame:
        if not self._is_open or self._cap is None:
            raise self._fault("not open")
        loop = asyncio.get_running_loop()
        image = await loop.run_in_executor(None, self._read_sync, self._cap)
        self._frame_counter += 1
        return CapturedFrame(
            image=image,
            timestamp=datetime.now(),
            frame_number=self._frame_counter,
            source_device=self._device_index,
        )

    def _read_sync(self, cap: cv2.VideoCapture) -> np.ndarray:
        ok, image = cap.read()
        # Unplugged devices keep returning ok=False rather than raising
        if not ok or image is None or image.size == 0:
            raise self._fault("read returned no frame")
        return image
