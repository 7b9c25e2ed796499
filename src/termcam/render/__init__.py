"""Quantization engine for termcam.

Turns resized camera images into grids of glyphs and colors, one
strategy per render mode.

Public API:
    render_frame -- Quantize a prepared image under a render mode
    render_cell -- Quantize a single cell's source pixels
    renderer_for -- Per-mode metadata (block size, source kind)
    quantize_block -- Reference half-block rule for one 2x2 block
"""

from termcam.render.half_block import HALF_BLOCK_GLYPHS, quantize_block, render_half_blocks
from termcam.render.quantize import (
    GRAY_RAMP,
    RENDERERS,
    CellRenderer,
    SourceKind,
    render_cell,
    render_frame,
    renderer_for,
)

__all__ = [
    "GRAY_RAMP",
    "HALF_BLOCK_GLYPHS",
    "RENDERERS",
    "CellRenderer",
    "SourceKind",
    "quantize_block",
    "render_cell",
    "render_frame",
    "render_half_blocks",
    "renderer_for",
]
