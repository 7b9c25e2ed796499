"""Quantization engine: maps a resized camera image to rendered cells.

Every render mode is described by a ``CellRenderer`` entry in a single
registry. The entry carries the per-mode metadata the capture pipeline needs
(how many source pixels feed one cell, and whether the source must be color,
grayscale or thresholded) together with the function that quantizes a whole
grid. ``render_frame`` is the one entry point that dispatches on the mode.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Sequence, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from termcam.domain.models import WHITE, RenderedCell, RenderedFrame, RenderMode
from termcam.render.half_block import quantize_block, render_half_blocks

logger = logging.getLogger(__name__)

FULL_BLOCK = "█"
BLANK = " "

# Densest to sparsest
GRAY_RAMP: tuple[str, ...] = ("█", "▓", "▒", "░", " ")

DEFAULT_THRESHOLD = 150

Quantized = tuple[np.ndarray, np.ndarray, Union[np.ndarray, None]]


class SourceKind(str, enum.Enum):
    """Pixel representation a render mode expects as input."""

    COLOR = "color"  # (h, w, 3) RGB
    GRAY = "gray"  # (h, w) intensity
    THRESHOLD = "threshold"  # (h, w) intensity, already binarized


# ---------------------------------------------------------------------------
# Single-pixel rules
# ---------------------------------------------------------------------------


def gray_ramp_index(intensity: int) -> int:
    """Ramp position for an intensity: round(intensity * (levels - 1) / 255)."""
    return int(intensity * (len(GRAY_RAMP) - 1) / 255 + 0.5)


def threshold_glyph(intensity: int, cutoff: int = DEFAULT_THRESHOLD) -> str:
    return FULL_BLOCK if intensity > cutoff else BLANK


# ---------------------------------------------------------------------------
# Grid renderers
# ---------------------------------------------------------------------------


def _white_like(shape: tuple[int, ...]) -> np.ndarray:
    return np.full(shape + (3,), 255, dtype=np.uint8)


def render_colorful(image: np.ndarray) -> Quantized:
    glyphs = np.full(image.shape[:2], FULL_BLOCK, dtype="<U1")
    return glyphs, image.astype(np.uint8, copy=True), None


def render_grayscale(gray: np.ndarray) -> Quantized:
    glyphs = np.full(gray.shape, FULL_BLOCK, dtype="<U1")
    foreground = np.repeat(gray.astype(np.uint8)[..., None], 3, axis=-1)
    return glyphs, foreground, None


def render_grayscale_threshold(gray: np.ndarray) -> Quantized:
    levels = len(GRAY_RAMP) - 1
    index = np.floor(gray.astype(np.float64) * levels / 255 + 0.5).astype(np.intp)
    glyphs = np.array(GRAY_RAMP, dtype="<U1")[np.clip(index, 0, levels)]
    return glyphs, _white_like(gray.shape), None


def render_threshold(gray: np.ndarray, cutoff: int = DEFAULT_THRESHOLD) -> Quantized:
    glyphs = np.where(gray > cutoff, FULL_BLOCK, BLANK).astype("<U1")
    return glyphs, _white_like(gray.shape), None


class CellRenderer(BaseModel):
    """How one render mode turns source pixels into cells."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    mode: RenderMode
    block_size: int = Field(ge=1, description="Source pixels per cell along each axis")
    source: SourceKind
    render: Callable[..., Quantized]

    @property
    def needs_gray(self) -> bool:
        return self.source is not SourceKind.COLOR


RENDERERS: dict[RenderMode, CellRenderer] = {
    renderer.mode: renderer
    for renderer in (
        CellRenderer(
            mode=RenderMode.COLORFUL_HALF_BLOCK,
            block_size=2,
            source=SourceKind.COLOR,
            render=render_half_blocks,
        ),
        CellRenderer(mode=RenderMode.COLORFUL, block_size=1, source=SourceKind.COLOR, render=render_colorful),
        CellRenderer(mode=RenderMode.GRAYSCALE, block_size=1, source=SourceKind.GRAY, render=render_grayscale),
        CellRenderer(
            mode=RenderMode.GRAYSCALE_THRESHOLD,
            block_size=1,
            source=SourceKind.GRAY,
            render=render_grayscale_threshold,
        ),
        CellRenderer(mode=RenderMode.THRESHOLD, block_size=1, source=SourceKind.THRESHOLD, render=render_threshold),
    )
}


def renderer_for(mode: RenderMode) -> CellRenderer:
    return RENDERERS[RenderMode(mode)]


def render_frame(
    image: np.ndarray,
    mode: RenderMode,
    source_device: int | None = None,
    threshold_cutoff: int = DEFAULT_THRESHOLD,
) -> RenderedFrame:
    """Quantize a prepared source image under ``mode``.

    Args:
        image: RGB (h, w, 3) for color modes, intensity (h, w) for the
               grayscale and threshold modes.
        mode: The render mode to apply.
        source_device: Camera index recorded on the frame, if known.
        threshold_cutoff: Intensity above which Threshold draws a block.

    Returns:
        An immutable RenderedFrame.
    """
    renderer = renderer_for(mode)
    expected_ndim = 3 if renderer.source is SourceKind.COLOR else 2
    if image.ndim != expected_ndim:
        raise ValueError(
            f"{renderer.mode.value} expects a {expected_ndim}-D source, got shape {image.shape}"
        )

    if renderer.source is SourceKind.THRESHOLD:
        glyphs, foreground, background = renderer.render(image, threshold_cutoff)
    else:
        glyphs, foreground, background = renderer.render(image)

    return RenderedFrame(
        glyphs=glyphs,
        foreground=foreground,
        background=background,
        mode=renderer.mode,
        source_device=source_device,
    )


def render_cell(
    pixels: Union[int, Sequence[int], Sequence[Sequence[int]]],
    mode: RenderMode,
    threshold_cutoff: int = DEFAULT_THRESHOLD,
) -> RenderedCell:
    """Quantize a single cell's source data.

    ``pixels`` is four RGB colors for half-block mode, one RGB color for
    Colorful, and one intensity for the grayscale and threshold modes.
    """
    mode = RenderMode(mode)
    if mode is RenderMode.COLORFUL_HALF_BLOCK:
        glyph, foreground, background = quantize_block(pixels)  # type: ignore[arg-type]
        return RenderedCell(glyph=glyph, foreground=foreground, background=background)
    if mode is RenderMode.COLORFUL:
        r, g, b = (int(c) for c in pixels)  # type: ignore[union-attr]
        return RenderedCell(glyph=FULL_BLOCK, foreground=(r, g, b))

    intensity = int(pixels)  # type: ignore[arg-type]
    if mode is RenderMode.GRAYSCALE:
        return RenderedCell(glyph=FULL_BLOCK, foreground=(intensity, intensity, intensity))
    if mode is RenderMode.GRAYSCALE_THRESHOLD:
        return RenderedCell(glyph=GRAY_RAMP[gray_ramp_index(intensity)], foreground=WHITE)
    return RenderedCell(glyph=threshold_glyph(intensity, threshold_cutoff), foreground=WHITE)
