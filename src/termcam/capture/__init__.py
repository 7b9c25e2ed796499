"""Camera capture module for termcam.

Provides camera frame capture, camera probing, and the capture error
types. The abstract base class allows alternative capture
implementations (e.g., scripted sources in tests).

Public API:
    CaptureSource -- Abstract base class
    CaptureError -- Open/read failure
    ResizeError -- Backend rejected a resize
    WebcamCapture -- OpenCV webcam implementation
    CameraProbe -- Enumerates openable camera indices
"""

from termcam.capture.base import CaptureError, CaptureSource, ResizeError

__all__ = ["CaptureSource", "CaptureError", "ResizeError", "WebcamCapture", "CameraProbe", "probe_cameras"]


def __getattr__(name: str) -> object:
    """Lazy import for concrete implementations that require external deps."""
    if name == "WebcamCapture":
        from termcam.capture.webcam import WebcamCapture
        return WebcamCapture
    if name in ("CameraProbe", "probe_cameras"):
        from termcam.capture import probe
        return getattr(probe, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
