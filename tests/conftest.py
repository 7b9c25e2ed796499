"""Shared test fixtures for the termcam test suite.

Provides common fixtures used across unit tests: sample frames, render
configurations, and scripted stand-ins for the camera and the terminal.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import AsyncIterator

import numpy as np
import pytest

from termcam.capture.base import CaptureError, CaptureSource
from termcam.domain.models import (
    CameraSet,
    CapturedFrame,
    RenderConfig,
    RenderedFrame,
    RenderMode,
    WindowScale,
)
from termcam.pipeline.bus import EventBus
from termcam.pipeline.shared import SharedRenderConfig
from termcam.terminal.base import RawEvent, TerminalBackend


# ---------------------------------------------------------------------------
# Scripted collaborators
# ---------------------------------------------------------------------------


class FakeCapture(CaptureSource):
    """A CaptureSource returning a fixed image, with switchable failures."""

    def __init__(
        self,
        device_index: int = 0,
        image: np.ndarray | None = None,
        fail_open: bool = False,
        fail_read: bool = False,
    ) -> None:
        super().__init__(device_index=device_index)
        self.image = image if image is not None else np.zeros((48, 64, 3), dtype=np.uint8)
        self.fail_open = fail_open
        self.fail_read = fail_read
        self.close_calls = 0

    async def open(self) -> None:
        if self.fail_open:
            raise CaptureError(f"cannot open {self._device_index}", device_index=self._device_index)
        self._is_open = True

    async def close(self) -> None:
        self.close_calls += 1
        self._is_open = False

    async def capture_frame(self) -> CapturedFrame:
        if self.fail_read:
            raise CaptureError("read failed", device_index=self._device_index)
        self._frame_counter += 1
        return CapturedFrame(
            image=self.image,
            timestamp=datetime(2025, 1, 1, 12, 0, 0),
            frame_number=self._frame_counter,
            source_device=self._device_index,
        )


class FakeTerminal(TerminalBackend):
    """A TerminalBackend fed from a queue that records every draw."""

    def __init__(self, width: int = 80, height: int = 24) -> None:
        self.width = width
        self.height = height
        self.draws: list[tuple[RenderedFrame, RenderConfig]] = []
        self.started = False
        self.stopped = False
        self._queue: asyncio.Queue[RawEvent | None] = asyncio.Queue()

    def push(self, event: RawEvent) -> None:
        self._queue.put_nowait(event)

    def size(self) -> tuple[int, int]:
        return self.width, self.height

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True
        self._queue.put_nowait(None)

    async def events(self) -> AsyncIterator[RawEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    async def draw(self, frame: RenderedFrame, config: RenderConfig) -> None:
        self.draws.append((frame, config))


# ---------------------------------------------------------------------------
# Frame / Image Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_image() -> np.ndarray:
    """A 48x64 BGR gradient image for testing."""
    ramp = np.linspace(0, 255, 64, dtype=np.uint8)
    image = np.zeros((48, 64, 3), dtype=np.uint8)
    image[:, :, 0] = ramp
    image[:, :, 1] = ramp[::-1]
    image[:, :, 2] = 128
    return image


@pytest.fixture
def sample_frame(sample_image: np.ndarray) -> CapturedFrame:
    """A CapturedFrame with a sample image."""
    return CapturedFrame(
        image=sample_image,
        timestamp=datetime(2025, 1, 1, 12, 0, 0),
        frame_number=0,
        source_device=0,
    )


# ---------------------------------------------------------------------------
# Configuration Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def two_cameras() -> CameraSet:
    return CameraSet(devices=(0, 2), active=0)


@pytest.fixture
def render_config(two_cameras: CameraSet) -> RenderConfig:
    """A small half-block configuration with two cameras."""
    return RenderConfig(
        display_size=(20, 10),
        mode=RenderMode.COLORFUL_HALF_BLOCK,
        window_scale=WindowScale.SMALL,
        cameras=two_cameras,
    )


@pytest.fixture
def shared_config(render_config: RenderConfig) -> SharedRenderConfig:
    return SharedRenderConfig(render_config)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def fake_terminal() -> FakeTerminal:
    return FakeTerminal()


@pytest.fixture
def capture_factory():
    """A source factory recording every FakeCapture it creates.

    ``factory.failing_reads`` / ``factory.failing_opens`` hold device indices
    whose sources fail to read / open.
    """

    def factory(device_index: int) -> FakeCapture:
        source = FakeCapture(
            device_index=device_index,
            fail_open=device_index in factory.failing_opens,
            fail_read=device_index in factory.failing_reads,
        )
        factory.created.append(source)
        return source

    factory.created = []
    factory.failing_opens = set()
    factory.failing_reads = set()
    return factory
