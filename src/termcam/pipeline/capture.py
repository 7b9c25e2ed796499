"""The capture pipeline task.

Periodically reads a frame from the active camera, resizes and quantizes
it under the current render mode, and publishes the rendered frame on the
event bus. Camera faults are handled by failing over to the next probed
camera; the task itself only stops when cancelled or when the bus closes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

import numpy as np

from termcam.capture.base import CaptureError, CaptureSource, ResizeError
from termcam.capture.webcam import WebcamCapture
from termcam.domain.models import FrameReady, RenderConfig, RenderedFrame, RenderMode
from termcam.pipeline.bus import BusClosedError, EventBus
from termcam.pipeline.shared import SharedRenderConfig
from termcam.render.quantize import DEFAULT_THRESHOLD, render_frame
from termcam.utils.imaging import prepare_source

logger = logging.getLogger(__name__)

SourceFactory = Callable[[int], CaptureSource]


class CapturePipeline:
    """Background producer of rendered frames.

    Each tick: snapshot config -> (re)open camera -> read -> resize ->
    convert -> quantize -> publish. The config snapshot taken at the start
    of a tick is used for the whole tick.
    """

    def __init__(
        self,
        config: SharedRenderConfig,
        bus: EventBus,
        source_factory: SourceFactory = WebcamCapture,
        tick_interval: float = 0.05,
        threshold_cutoff: int = DEFAULT_THRESHOLD,
    ) -> None:
        if tick_interval <= 0:
            raise ValueError(f"tick_interval must be > 0, got {tick_interval}")
        self._config = config
        self._bus = bus
        self._source_factory = source_factory
        self._tick_interval = tick_interval
        self._threshold_cutoff = threshold_cutoff
        self._source: CaptureSource | None = None
        self._running = False
        self._frames_published = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def frames_published(self) -> int:
        return self._frames_published

    @property
    def source(self) -> CaptureSource | None:
        """The currently open capture source, if any."""
        return self._source

    async def run(self) -> None:
        """Tick until cancelled or until the event bus closes."""
        self._running = True
        loop = asyncio.get_running_loop()
        logger.info("Capture pipeline started (tick %.0f ms)", self._tick_interval * 1000)
        try:
            while True:
                started = loop.time()
                try:
                    await self.tick()
                except BusClosedError:
                    logger.info("Event bus closed, capture pipeline stopping")
                    return
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("Unexpected error in capture tick")
                elapsed = loop.time() - started
                await asyncio.sleep(max(0.0, self._tick_interval - elapsed))
        finally:
            await self._close_source()
            self._running = False
            logger.info("Capture pipeline stopped after %d frames", self._frames_published)

    async def tick(self) -> bool:
        """Run one capture iteration.

        Returns:
            True if a frame was published.

        Raises:
            BusClosedError: If the consumer has closed the event bus.
        """
        config = await self._config.snapshot()
        device = config.cameras.active_device
        if device is None:
            await self._close_source()
            return False

        target = config.target_size()
        if target[0] == 0 or target[1] == 0:
            logger.debug("Display too small to render (%dx%d)", *config.display_size)
            return False

        try:
            source = await self._ensure_source(device)
            captured = await source.capture_frame()
            loop = asyncio.get_running_loop()
            frame = await loop.run_in_executor(
                None, self._render, captured.image, config.mode, target, device
            )
        except ResizeError as e:
            await self._fail_over(device, "resize", e)
            return False
        except CaptureError as e:
            await self._fail_over(device, "capture", e)
            return False

        await self._bus.publish(FrameReady(frame=frame))
        self._frames_published += 1
        return True

    def _render(
        self,
        image: np.ndarray,
        mode: RenderMode,
        target: tuple[int, int],
        device: int,
    ) -> RenderedFrame:
        """Resize, convert and quantize (runs in thread pool)."""
        source = prepare_source(image, mode, target, self._threshold_cutoff)
        return render_frame(source, mode, source_device=device, threshold_cutoff=self._threshold_cutoff)

    async def _ensure_source(self, device: int) -> CaptureSource:
        """Return an open source for ``device``, reopening if the camera changed."""
        if self._source is not None and self._source.device_index == device and self._source.is_open:
            return self._source

        await self._close_source()
        source = self._source_factory(device)
        await source.open()
        self._source = source
        return source

    async def _close_source(self) -> None:
        if self._source is None:
            return
        source, self._source = self._source, None
        try:
            await source.close()
        except CaptureError as e:
            logger.warning("Error releasing camera %d: %s", source.device_index, e)

    async def _fail_over(self, device: int, stage: str, error: Exception) -> None:
        """Release the failing camera and advance to the next one.

        The advance only applies if ``device`` is still the active camera,
        so a switch made by the user in the meantime is not skipped over.
        """
        logger.warning("Camera %d %s failure: %s", device, stage, error)
        await self._close_source()

        def advance(current: RenderConfig) -> RenderConfig:
            if current.cameras.active_device != device:
                return current
            return current.model_copy(update={"cameras": current.cameras.advance()})

        updated = await self._config.update(advance)
        logger.info(
            "Switched camera %d -> %s", device, updated.cameras.active_device
        )
