"""Tests for the OpenCV webcam capture source."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from termcam.capture.base import CaptureError
from termcam.capture.webcam import WebcamCapture


def _mock_cap(opened: bool = True, read_ok: bool = True) -> MagicMock:
    cap = MagicMock()
    cap.isOpened.return_value = opened
    cap.read.return_value = (read_ok, np.zeros((48, 64, 3), dtype=np.uint8) if read_ok else None)
    cap.get.return_value = 640
    return cap


class TestWebcamCapture:
    @pytest.mark.asyncio
    async def test_open_and_capture(self) -> None:
        cap = _mock_cap()
        with patch("termcam.capture.webcam.cv2.VideoCapture", return_value=cap) as video_capture:
            webcam = WebcamCapture(device_index=2)
            await webcam.open()
            frame = await webcam.capture_frame()

        video_capture.assert_called_once_with(2)
        assert webcam.is_open
        assert frame.source_device == 2
        assert frame.frame_number == 1
        assert frame.image.shape == (48, 64, 3)

    @pytest.mark.asyncio
    async def test_open_failure_releases_handle(self) -> None:
        cap = _mock_cap(opened=False)
        with patch("termcam.capture.webcam.cv2.VideoCapture", return_value=cap):
            webcam = WebcamCapture(device_index=1)
            with pytest.raises(CaptureError) as excinfo:
                await webcam.open()

        assert excinfo.value.device_index == 1
        cap.release.assert_called_once()
        assert not webcam.is_open

    @pytest.mark.asyncio
    async def test_read_failure(self) -> None:
        cap = _mock_cap(read_ok=False)
        with patch("termcam.capture.webcam.cv2.VideoCapture", return_value=cap):
            webcam = WebcamCapture()
            await webcam.open()
            with pytest.raises(CaptureError):
                await webcam.capture_frame()

    @pytest.mark.asyncio
    async def test_empty_frame_is_a_fault(self) -> None:
        cap = _mock_cap()
        cap.read.return_value = (True, np.zeros((0, 0, 3), dtype=np.uint8))
        with patch("termcam.capture.webcam.cv2.VideoCapture", return_value=cap):
            webcam = WebcamCapture(device_index=3)
            await webcam.open()
            with pytest.raises(CaptureError) as excinfo:
                await webcam.capture_frame()
        assert excinfo.value.device_index == 3

    @pytest.mark.asyncio
    async def test_capture_before_open(self) -> None:
        with pytest.raises(CaptureError, match="not open"):
            await WebcamCapture().capture_frame()

    @pytest.mark.asyncio
    async def test_resolution_is_requested(self) -> None:
        cap = _mock_cap()
        with patch("termcam.capture.webcam.cv2.VideoCapture", return_value=cap):
            webcam = WebcamCapture(resolution=(1280, 720))
            await webcam.open()
        assert cap.set.call_count == 2

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        cap = _mock_cap()
        with patch("termcam.capture.webcam.cv2.VideoCapture", return_value=cap):
            async with WebcamCapture() as webcam:
                pass
            await webcam.close()
        cap.release.assert_called_once()
        assert not webcam.is_open
