"""Domain models for termcam.

This package contains all core data structures, enumerations, and value
objects used throughout the system. All models use Pydantic v2 for
validation and serialization.
"""

from termcam.domain.models import (
    AppEvent,
    AppState,
    CameraSet,
    CapturedFrame,
    FrameReady,
    KeyPress,
    KeyPressed,
    RenderConfig,
    RenderedCell,
    RenderedFrame,
    RenderMode,
    TerminalResized,
    WindowScale,
)

__all__ = [
    "AppEvent",
    "AppState",
    "CameraSet",
    "CapturedFrame",
    "FrameReady",
    "KeyPress",
    "KeyPressed",
    "RenderConfig",
    "RenderedCell",
    "RenderedFrame",
    "RenderMode",
    "TerminalResized",
    "WindowScale",
]
