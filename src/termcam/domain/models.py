"""Core domain models for the termcam system.

These models represent the data flowing through the render pipeline:
captured frames from the camera, the shared render configuration,
quantized output frames, and the events merged onto the event bus.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Annotated, Iterator, Literal, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

RGB = tuple[int, int, int]

WHITE: RGB = (255, 255, 255)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class RenderMode(str, enum.Enum):
    """Pixel-to-glyph conversion strategy."""

    COLORFUL_HALF_BLOCK = "colorful_half_block"
    COLORFUL = "colorful"
    GRAYSCALE = "grayscale"
    GRAYSCALE_THRESHOLD = "grayscale_threshold"
    THRESHOLD = "threshold"

    def next(self) -> RenderMode:
        """The mode that follows this one in the switching cycle."""
        members = list(RenderMode)
        return members[(members.index(self) + 1) % len(members)]

    @property
    def label(self) -> str:
        return _MODE_LABELS[self]


_MODE_LABELS = {
    RenderMode.COLORFUL_HALF_BLOCK: "Colorful half-block",
    RenderMode.COLORFUL: "Colorful",
    RenderMode.GRAYSCALE: "Grayscale",
    RenderMode.GRAYSCALE_THRESHOLD: "Grayscale threshold",
    RenderMode.THRESHOLD: "Threshold",
}


class WindowScale(int, enum.Enum):
    """Divisor applied to the display size to get the capture grid."""

    FULL = 1
    SMALL = 2

    def toggled(self) -> WindowScale:
        return WindowScale.SMALL if self is WindowScale.FULL else WindowScale.FULL


class AppState(str, enum.Enum):
    """Lifecycle state of the application loop."""

    RUNNING = "running"
    TERMINATED = "terminated"


# ---------------------------------------------------------------------------
# Capture Models
# ---------------------------------------------------------------------------


class CapturedFrame(BaseModel):
    """A single raw frame read from a camera.

    Contains the raw image data as a numpy array along with metadata
    about when and where it was captured.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    image: np.ndarray = Field(description="Raw image data as BGR numpy array (OpenCV format)")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the frame was captured")
    frame_number: int = Field(ge=0, description="Sequential frame counter")
    source_device: int = Field(ge=0, description="Camera device index the frame came from")


class CameraSet(BaseModel):
    """Probed camera device indices plus the active position.

    ``active`` is a position into ``devices``, not a device index.
    """

    model_config = ConfigDict(frozen=True)

    devices: tuple[int, ...] = Field(default=(), description="Available device indices, in probe order")
    active: int | None = Field(default=None, description="Position of the active device in `devices`")

    @model_validator(mode="after")
    def _check_active(self) -> CameraSet:
        if self.active is not None and not 0 <= self.active < len(self.devices):
            raise ValueError(
                f"active position {self.active} is out of range for {len(self.devices)} devices"
            )
        return self

    @classmethod
    def from_devices(cls, devices: list[int] | tuple[int, ...], preferred: int | None = None) -> CameraSet:
        """Build a set selecting ``preferred`` if it was probed, else the first device."""
        devices = tuple(devices)
        if not devices:
            return cls()
        active = devices.index(preferred) if preferred in devices else 0
        return cls(devices=devices, active=active)

    @property
    def active_device(self) -> int | None:
        if self.active is None:
            return None
        return self.devices[self.active]

    def merged(self, devices: list[int] | tuple[int, ...]) -> CameraSet:
        """Adopt a fresh probe result while keeping the active device selected.

        The active device is held open by the capture task and can fail a
        second open, so it stays in the list even when the probe missed it.
        """
        found = set(devices)
        active_device = self.active_device
        if active_device is not None:
            found.add(active_device)
        return CameraSet.from_devices(sorted(found), preferred=active_device)

    def advance(self) -> CameraSet:
        """Select the next device, wrapping to the first."""
        if not self.devices:
            return self
        if self.active is None:
            return self.model_copy(update={"active": 0})
        return self.model_copy(update={"active": (self.active + 1) % len(self.devices)})


# ---------------------------------------------------------------------------
# Shared Render Configuration
# ---------------------------------------------------------------------------


class RenderConfig(BaseModel):
    """The single render configuration shared by the capture and UI tasks.

    Frozen: every change produces a new instance via ``model_copy``, so a
    reader always holds a consistent snapshot.
    """

    model_config = ConfigDict(frozen=True)

    display_size: tuple[Annotated[int, Field(ge=0)], Annotated[int, Field(ge=0)]] = Field(
        description="Video area size in terminal cells (width, height)"
    )
    mode: RenderMode = Field(default=RenderMode.COLORFUL_HALF_BLOCK)
    window_scale: WindowScale = Field(default=WindowScale.SMALL)
    cameras: CameraSet = Field(default_factory=CameraSet)
    ui_locked: bool = Field(default=False)

    def target_size(self) -> tuple[int, int]:
        """Size (width, height) the raw frame is resized to before quantization.

        Half-block mode consumes 2x2 pixels per cell, so its grid is doubled.
        """
        width, height = self.display_size
        width //= self.window_scale.value
        height //= self.window_scale.value
        if self.mode is RenderMode.COLORFUL_HALF_BLOCK:
            return width * 2, height * 2
        return width, height

    def cell_size(self) -> tuple[int, int]:
        """Size (width, height) of the rendered frame in terminal cells."""
        width, height = self.display_size
        return width // self.window_scale.value, height // self.window_scale.value


# ---------------------------------------------------------------------------
# Rendered Output Models
# ---------------------------------------------------------------------------


class RenderedCell(BaseModel):
    """One terminal cell: a glyph plus foreground and background colors.

    A color of None means the terminal default (no fill).
    """

    model_config = ConfigDict(frozen=True)

    glyph: str = Field(min_length=1, max_length=1)
    foreground: RGB | None = None
    background: RGB | None = None


class RenderedFrame(BaseModel):
    """A fully quantized frame, row-major, ready to be drawn.

    Cells are stored column-wise as numpy arrays for speed: ``glyphs`` has
    shape (h, w), ``foreground`` and ``background`` have shape (h, w, 3).
    A missing ``background`` means every cell uses the terminal default.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    glyphs: np.ndarray
    foreground: np.ndarray
    background: np.ndarray | None = None
    mode: RenderMode
    source_device: int | None = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def _check_shapes(self) -> RenderedFrame:
        if self.glyphs.ndim != 2:
            raise ValueError(f"glyphs must be 2-D, got shape {self.glyphs.shape}")
        expected = self.glyphs.shape + (3,)
        if self.foreground.shape != expected:
            raise ValueError(f"foreground shape {self.foreground.shape} != {expected}")
        if self.background is not None and self.background.shape != expected:
            raise ValueError(f"background shape {self.background.shape} != {expected}")
        for array in (self.glyphs, self.foreground, self.background):
            if array is not None:
                array.flags.writeable = False
        return self

    @classmethod
    def empty(cls, mode: RenderMode = RenderMode.COLORFUL) -> RenderedFrame:
        """A zero-sized placeholder shown before the first frame arrives."""
        return cls(
            glyphs=np.empty((0, 0), dtype="<U1"),
            foreground=np.empty((0, 0, 3), dtype=np.uint8),
            mode=mode,
        )

    @property
    def width(self) -> int:
        return int(self.glyphs.shape[1])

    @property
    def height(self) -> int:
        return int(self.glyphs.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.glyphs.size == 0

    def cell(self, x: int, y: int) -> RenderedCell:
        fg = self.foreground[y, x]
        bg = None if self.background is None else self.background[y, x]
        return RenderedCell(
            glyph=str(self.glyphs[y, x]),
            foreground=(int(fg[0]), int(fg[1]), int(fg[2])),
            background=None if bg is None else (int(bg[0]), int(bg[1]), int(bg[2])),
        )

    def rows(self) -> Iterator[list[RenderedCell]]:
        for y in range(self.height):
            yield [self.cell(x, y) for x in range(self.width)]


# ---------------------------------------------------------------------------
# Input and Event Models (discriminated union)
# ---------------------------------------------------------------------------


class KeyPress(BaseModel):
    """A normalized key press, e.g. ``escape``, ``space``, ``a`` or ``ctrl+l``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Lower-case key name ('a', 'escape', 'space', 'up', ...)")
    ctrl: bool = Field(default=False, description="Whether Ctrl was held")

    @property
    def chord(self) -> str:
        return f"ctrl+{self.name}" if self.ctrl else self.name


class FrameReady(BaseModel):
    """A rendered frame produced by the capture pipeline."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["frame_ready"] = "frame_ready"
    frame: RenderedFrame


class KeyPressed(BaseModel):
    """A key press delivered by the terminal."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["key_pressed"] = "key_pressed"
    key: KeyPress


class TerminalResized(BaseModel):
    """The video area of the terminal changed size."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["terminal_resized"] = "terminal_resized"
    width: int = Field(ge=0)
    height: int = Field(ge=0)


# Discriminated union for everything carried by the event bus
AppEvent = Annotated[
    Union[FrameReady, KeyPressed, TerminalResized],
    Field(discriminator="event_type"),
]
