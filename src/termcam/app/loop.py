"""The application loop that orchestrates the entire system.

Supervises the capture and input tasks, consumes the event bus one event
at a time, applies state transitions to the shared render configuration,
and redraws after every event.
"""

from __future__ import annotations

import asyncio
import logging

from termcam.capture.probe import CameraProbe
from termcam.config.settings import KeyBindings
from termcam.domain.models import (
    AppEvent,
    AppState,
    FrameReady,
    KeyPress,
    KeyPressed,
    RenderConfig,
    RenderedFrame,
    TerminalResized,
)
from termcam.pipeline.bus import EventBus
from termcam.pipeline.capture import CapturePipeline
from termcam.pipeline.input import InputPipeline
from termcam.pipeline.shared import SharedRenderConfig
from termcam.terminal.base import TerminalBackend

logger = logging.getLogger(__name__)


class Application:
    """The single-threaded consumer of the event bus.

    Coordinates: next event -> transition -> redraw -> repeat
    """

    def __init__(
        self,
        config: SharedRenderConfig,
        bus: EventBus,
        backend: TerminalBackend,
        capture: CapturePipeline,
        input_pipeline: InputPipeline | None = None,
        probe: CameraProbe | None = None,
        keys: KeyBindings | None = None,
    ) -> None:
        self._config = config
        self._bus = bus
        self._backend = backend
        self._capture = capture
        self._input = input_pipeline or InputPipeline(backend, bus)
        self._probe = probe
        self._keys = keys or KeyBindings()
        self._state = AppState.RUNNING
        self._frame = RenderedFrame.empty()
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is AppState.RUNNING

    @property
    def frame(self) -> RenderedFrame:
        """The most recently delivered frame."""
        return self._frame

    async def run(self) -> AppState:
        """Run until an exit key terminates the application."""
        logger.info("Application starting")
        async with self._backend:
            self._start_tasks()
            try:
                await self._redraw()
                while self._state is AppState.RUNNING:
                    event = await self._bus.next()
                    await self.handle_event(event)
                    if self._state is AppState.RUNNING:
                        await self._redraw()
            finally:
                self._bus.close()
                await self._stop_tasks()
        logger.info("Application finished: state=%s", self._state.value)
        return self._state

    def stop(self) -> None:
        """Request termination after the current event."""
        self._state = AppState.TERMINATED

    async def handle_event(self, event: AppEvent) -> None:
        """Apply one bus event. Unrecognized input is a no-op."""
        if isinstance(event, FrameReady):
            self._frame = event.frame
        elif isinstance(event, KeyPressed):
            await self._handle_key(event.key)
        elif isinstance(event, TerminalResized):
            await self._config.replace(display_size=(event.width, event.height))
            logger.debug("Display resized to %dx%d", event.width, event.height)

    async def _handle_key(self, key: KeyPress) -> None:
        action = self._keys.action_for(key.chord)
        if action is None:
            return

        # The lock toggle is never itself blocked by the lock
        if action == "lock":
            updated = await self._config.update(
                lambda c: c.model_copy(update={"ui_locked": not c.ui_locked})
            )
            logger.info("UI %s", "locked" if updated.ui_locked else "unlocked")
            return

        config = await self._config.snapshot()
        if config.ui_locked:
            logger.debug("Ignoring %s while UI is locked", key.chord)
            return

        if action == "exit":
            logger.info("Exit requested")
            self._state = AppState.TERMINATED
        elif action == "mode":
            updated = await self._config.update(
                lambda c: c.model_copy(update={"mode": c.mode.next()})
            )
            logger.info("Render mode: %s", updated.mode.value)
        elif action == "scale":
            updated = await self._config.update(
                lambda c: c.model_copy(update={"window_scale": c.window_scale.toggled()})
            )
            logger.info("Window scale: %s", updated.window_scale.name)
        elif action == "camera":
            await self._switch_camera()

    async def _switch_camera(self) -> None:
        devices = None
        if self._probe is not None:
            # Probe outside the lock; the capture task may fail over meanwhile
            devices = await self._probe.devices()

        def switch(current: RenderConfig) -> RenderConfig:
            cameras = current.cameras if devices is None else current.cameras.merged(devices)
            return current.model_copy(update={"cameras": cameras.advance()})

        updated = await self._config.update(switch)
        logger.info("Camera switched to %s", updated.cameras.active_device)

    async def _redraw(self) -> None:
        config = await self._config.snapshot()
        await self._backend.draw(self._frame, config)

    def _start_tasks(self) -> None:
        for name, coro in (("capture", self._capture.run()), ("input", self._input.run())):
            task = asyncio.create_task(coro, name=f"termcam-{name}")
            task.add_done_callback(self._on_task_done)
            self._tasks.append(task)

    async def _stop_tasks(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Task %s crashed: %s", task.get_name(), error, exc_info=error)
