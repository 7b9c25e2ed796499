"""Concurrent render pipeline for termcam.

Public API:
    EventBus -- Ordered multi-producer queue consumed by the UI loop
    BusClosedError -- Publishing after the consumer went away
    SharedRenderConfig -- Reader/writer-locked RenderConfig cell
    ReadWriteLock -- asyncio reader/writer lock
    CapturePipeline -- Periodic capture -> quantize -> publish task
    InputPipeline -- Terminal event translation task
"""

from termcam.pipeline.bus import BusClosedError, EventBus
from termcam.pipeline.shared import ReadWriteLock, SharedRenderConfig

__all__ = [
    "BusClosedError",
    "CapturePipeline",
    "EventBus",
    "InputPipeline",
    "ReadWriteLock",
    "SharedRenderConfig",
]


def __getattr__(name: str) -> object:
    """Lazy import for the tasks that pull in OpenCV or the terminal."""
    if name == "CapturePipeline":
        from termcam.pipeline.capture import CapturePipeline
        return CapturePipeline
    if name == "InputPipeline":
        from termcam.pipeline.input import InputPipeline
        return InputPipeline
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
