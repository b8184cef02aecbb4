"""Unit tests for frame encoding and the OpenCV capture device."""

import asyncio
import base64
import io
from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest
from PIL import Image

from services.frame_encoder import FrameEncoder
from services.monitor.capture_device import (
    CaptureConstraints,
    CaptureDeviceError,
    CaptureErrorReason,
    OpenCVCamera,
)


def _fake_capture(opened=True, frame=None, width=320, height=240):
    cap = MagicMock()
    cap.isOpened.return_value = opened
    cap.read.return_value = (frame is not None, frame)
    cap.get.side_effect = lambda prop: {
        cv2.CAP_PROP_FRAME_WIDTH: width,
        cv2.CAP_PROP_FRAME_HEIGHT: height,
    }.get(prop, 0)
    return cap


@pytest.mark.unit
class TestFrameEncoder:

    def test_bgr_channels_are_swapped(self):
        frame = np.zeros((10, 10, 3), dtype=np.uint8)
        frame[:, :, 0] = 255  # blue in OpenCV order
        jpeg = FrameEncoder(quality=95).to_jpeg(frame)
        with Image.open(io.BytesIO(jpeg)) as img:
            r, g, b = img.convert("RGB").getpixel((5, 5))
        assert b > 200 and r < 50

    def test_large_frames_are_downscaled(self):
        frame = np.zeros((480, 1280, 3), dtype=np.uint8)
        jpeg = FrameEncoder(max_size=(640, 640)).to_jpeg(frame)
        with Image.open(io.BytesIO(jpeg)) as img:
            assert img.size == (640, 240)

    def test_grayscale_and_bgra_supported(self):
        encoder = FrameEncoder()
        assert encoder.to_jpeg(np.zeros((8, 8), dtype=np.uint8))[:2] == b"\xff\xd8"
        assert encoder.to_jpeg(np.zeros((8, 8, 4), dtype=np.uint8))[:2] == b"\xff\xd8"

    def test_data_uri(self):
        data_uri = FrameEncoder().to_data_uri(np.zeros((8, 8, 3), dtype=np.uint8))
        prefix, payload = data_uri.split(",", 1)
        assert prefix == "data:image/jpeg;base64"
        assert base64.b64decode(payload)[:2] == b"\xff\xd8"

    def test_empty_frame_rejected(self):
        with pytest.raises(ValueError):
            FrameEncoder().to_jpeg(np.zeros((0, 0, 3), dtype=np.uint8))

    def test_unsupported_shape_rejected(self):
        with pytest.raises(ValueError):
            FrameEncoder().to_jpeg(np.zeros((8, 8, 2), dtype=np.uint8))


@pytest.mark.unit
class TestOpenCVCamera:

    def test_open_read_release(self):
        frame = np.full((240, 320, 3), 50, dtype=np.uint8)
        cap = _fake_capture(frame=frame)
        with patch("cv2.VideoCapture", return_value=cap):
            camera = OpenCVCamera(CaptureConstraints(320, 240), index=2)
            asyncio.run(camera.open())
        assert camera.is_live
        assert camera.track_count == 1
        assert asyncio.run(camera.frame_size()) == (320, 240)
        assert asyncio.run(camera.read_frame()) is frame

        camera.release()
        camera.release()
        cap.release.assert_called_once()
        assert camera.is_live is False
        assert camera.track_count == 0
        assert asyncio.run(camera.read_frame()) is None

    def test_no_device_is_not_found(self):
        cap = _fake_capture(opened=False)
        with patch("cv2.VideoCapture", return_value=cap):
            with pytest.raises(CaptureDeviceError) as exc_info:
                asyncio.run(OpenCVCamera(CaptureConstraints()).open())
        assert exc_info.value.reason is CaptureErrorReason.NOT_FOUND
        cap.release.assert_called_once()

    def test_permission_error_is_classified(self):
        with patch("cv2.VideoCapture", side_effect=PermissionError("denied")):
            with pytest.raises(CaptureDeviceError) as exc_info:
                asyncio.run(OpenCVCamera(CaptureConstraints()).open())
        assert exc_info.value.reason is CaptureErrorReason.PERMISSION_DENIED

    def test_strict_constraints_mismatch_is_overconstrained(self):
        cap = _fake_capture(width=640, height=480)
        with patch("cv2.VideoCapture", return_value=cap):
            with pytest.raises(CaptureDeviceError) as exc_info:
                asyncio.run(OpenCVCamera(CaptureConstraints(320, 240, strict=True)).open())
        assert exc_info.value.reason is CaptureErrorReason.OVERCONSTRAINED

    def test_frame_size_zero_without_frames(self):
        cap = _fake_capture(frame=None)
        with patch("cv2.VideoCapture", return_value=cap):
            camera = OpenCVCamera(CaptureConstraints())
            asyncio.run(camera.open())
        assert asyncio.run(camera.frame_size()) == (0, 0)
        camera.release()

    def test_factory_binds_index(self):
        camera = OpenCVCamera.factory(3)(CaptureConstraints())
        assert isinstance(camera, OpenCVCamera)
        assert camera.index == 3
        assert camera.is_live is False
