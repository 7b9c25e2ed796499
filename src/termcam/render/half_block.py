"""Half-block quantization: one terminal cell per 2x2 pixel block.

Each block is split into a foreground and a background color by nearest-pair
clustering, and the glyph is the quadrant character whose filled area matches
the foreground pixels. Sub-pixel indices are 0=top-left, 1=top-right,
2=bottom-left, 3=bottom-right.

Two implementations of the same rule live here: ``quantize_block`` works on a
single block and is the readable reference, ``render_half_blocks`` applies it
to a whole image with numpy. They must agree bit for bit.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from termcam.domain.models import RGB

# Pair evaluation order. Ties in pair distance go to the earliest pair.
PAIRS: tuple[tuple[int, int], ...] = ((0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3))

# Glyph when the foreground pair stands alone, keyed by pair position in PAIRS
PAIR_GLYPHS: tuple[str, ...] = ("▀", "▌", "▚", "▞", "▐", "▄")

# Glyph when three pixels form the foreground, keyed by the background index
CORNER_GLYPHS: tuple[str, ...] = ("▟", "▙", "▜", "▛")

HALF_BLOCK_GLYPHS = frozenset(PAIR_GLYPHS + CORNER_GLYPHS)

_OTHERS = tuple(tuple(k for k in range(4) if k not in pair) for pair in PAIRS)


def _distance(a: Sequence[int], b: Sequence[int]) -> int:
    return sum((int(x) - int(y)) ** 2 for x, y in zip(a, b))


def _average(*colors: Sequence[int]) -> RGB:
    n = len(colors)
    r, g, b = (sum(int(c[channel]) for c in colors) // n for channel in range(3))
    return r, g, b


def quantize_block(pixels: Sequence[Sequence[int]]) -> tuple[str, RGB, RGB]:
    """Reduce four RGB pixels to (glyph, foreground, background).

    Args:
        pixels: The four sub-pixel colors in TL, TR, BL, BR order.

    Returns:
        The quadrant glyph, the foreground color and the background color.
    """
    if len(pixels) != 4:
        raise ValueError(f"expected 4 pixels, got {len(pixels)}")

    best = 0
    best_distance = _distance(pixels[0], pixels[1])
    for position, (a, b) in enumerate(PAIRS[1:], start=1):
        d = _distance(pixels[a], pixels[b])
        if d < best_distance:
            best, best_distance = position, d

    a, b = PAIRS[best]
    first, second = _OTHERS[best]
    foreground = _average(pixels[a], pixels[b])

    dist_remaining = _distance(pixels[first], pixels[second])
    dist_1 = _distance(pixels[first], foreground)
    dist_2 = _distance(pixels[second], foreground)

    if dist_remaining < dist_1 and dist_remaining < dist_2:
        return PAIR_GLYPHS[best], foreground, _average(pixels[first], pixels[second])

    if dist_1 <= dist_2:
        folded, lone = first, second
    else:
        folded, lone = second, first
    r, g, bl = (int(c) for c in pixels[lone])
    return CORNER_GLYPHS[lone], _average(pixels[a], pixels[b], pixels[folded]), (r, g, bl)


_PAIR_A = np.array([a for a, _ in PAIRS])
_PAIR_B = np.array([b for _, b in PAIRS])
_OTHER_1 = np.array([first for first, _ in _OTHERS])
_OTHER_2 = np.array([second for _, second in _OTHERS])
_PAIR_GLYPH_ARRAY = np.array(PAIR_GLYPHS, dtype="<U1")
_CORNER_GLYPH_ARRAY = np.array(CORNER_GLYPHS, dtype="<U1")


def _squared(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    diff = a - b
    return (diff * diff).sum(axis=-1)


def render_half_blocks(image: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Quantize an RGB image of shape (h, w, 3) into half-block cells.

    Odd dimensions are padded with white pixels, so the output grid is
    (ceil(h / 2), ceil(w / 2)).

    Returns:
        ``(glyphs, foreground, background)`` with shapes (H, W), (H, W, 3)
        and (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"expected an (h, w, 3) RGB image, got shape {image.shape}")

    h, w = image.shape[:2]
    if h % 2 or w % 2:
        padded = np.full((h + h % 2, w + w % 2, 3), 255, dtype=np.uint8)
        padded[:h, :w] = image
        image = padded

    px = image.astype(np.int32)
    corners = np.stack([px[0::2, 0::2], px[0::2, 1::2], px[1::2, 0::2], px[1::2, 1::2]])
    rows, cols = np.indices(corners.shape[1:3])

    pair_distances = np.stack([_squared(corners[a], corners[b]) for a, b in PAIRS])
    # argmin returns the first minimum, matching the PAIRS tie order
    best = pair_distances.argmin(axis=0)

    first_idx = _OTHER_1[best]
    second_idx = _OTHER_2[best]
    a = corners[_PAIR_A[best], rows, cols]
    b = corners[_PAIR_B[best], rows, cols]
    first = corners[first_idx, rows, cols]
    second = corners[second_idx, rows, cols]

    foreground = (a + b) // 2
    dist_remaining = _squared(first, second)
    dist_1 = _squared(first, foreground)
    dist_2 = _squared(second, foreground)

    pair_branch = (dist_remaining < dist_1) & (dist_remaining < dist_2)
    fold_first = dist_1 <= dist_2

    folded = np.where(fold_first[..., None], first, second)
    lone = np.where(fold_first[..., None], second, first)
    lone_idx = np.where(fold_first, second_idx, first_idx)

    fg = np.where(pair_branch[..., None], foreground, (a + b + folded) // 3)
    bg = np.where(pair_branch[..., None], (first + second) // 2, lone)
    glyphs = np.where(pair_branch, _PAIR_GLYPH_ARRAY[best], _CORNER_GLYPH_ARRAY[lone_idx])

    return glyphs, fg.astype(np.uint8), bg.astype(np.uint8)
