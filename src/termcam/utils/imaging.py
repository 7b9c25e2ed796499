"""Image processing utilities for termcam.

OpenCV primitives the capture pipeline applies between reading a raw
frame and quantizing it: resize to the cell grid, color conversion and
thresholding.
"""

from __future__ import annotations

import logging

import cv2
import numpy as np

from termcam.capture.base import CaptureError, ResizeError
from termcam.domain.models import RenderMode
from termcam.render.quantize import SourceKind, renderer_for

logger = logging.getLogger(__name__)


def resize_frame(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize a frame to exactly ``width`` x ``height`` pixels.

    Raises:
        ResizeError: If the target is empty or OpenCV rejects the resize.
            Some virtual camera drivers deliver frames that cannot be
            resized to certain targets.
    """
    if width <= 0 or height <= 0:
        raise ResizeError(f"Invalid resize target {width}x{height}")
    if image is None or image.size == 0:
        raise ResizeError("Cannot resize an empty frame")
    try:
        return cv2.resize(image, (width, height), interpolation=cv2.INTER_LINEAR)
    except cv2.error as e:
        raise ResizeError(f"Resize to {width}x{height} failed: {e}") from e


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert a BGR frame to single-channel intensity."""
    if image.ndim == 2:
        return image
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def apply_threshold(gray: np.ndarray, cutoff: int) -> np.ndarray:
    """Binarize an intensity frame: 255 above ``cutoff``, 0 otherwise."""
    _, binary = cv2.threshold(gray, cutoff, 255, cv2.THRESH_BINARY)
    return binary


def bgr_to_rgb(image: np.ndarray) -> np.ndarray:
    """Convert an OpenCV BGR frame to RGB channel order."""
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def prepare_source(
    image: np.ndarray,
    mode: RenderMode,
    target: tuple[int, int],
    threshold_cutoff: int = 150,
) -> np.ndarray:
    """Resize and convert a raw BGR frame into the source a render mode expects.

    Args:
        image: Raw BGR frame from the camera.
        mode: Active render mode.
        target: Resize target (width, height) in pixels.
        threshold_cutoff: Cutoff used by the Threshold mode.

    Returns:
        RGB (h, w, 3) for color modes, (h, w) intensity otherwise.

    Raises:
        ResizeError: If the resize is rejected.
        CaptureError: If the frame cannot be converted for ``mode``.
    """
    resized = resize_frame(image, *target)
    renderer = renderer_for(mode)
    source = renderer.source
    try:
        if source is SourceKind.COLOR:
            return bgr_to_rgb(resized)
        gray = to_grayscale(resized)
        if source is SourceKind.THRESHOLD:
            return apply_threshold(gray, threshold_cutoff)
        return gray
    except cv2.error as e:
        # Frames with an unexpected channel layout are a fault of the device
        raise CaptureError(f"Cannot convert {resized.shape} frame for {renderer.mode.value}: {e}") from e
