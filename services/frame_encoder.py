"""Frame encoder service.

Provides a small OOP wrapper around Pillow that turns a captured camera
frame (a BGR numpy array as returned by OpenCV) into JPEG bytes or a
base64 data URI ready for the engagement estimator. Frames larger than
`max_size` are downscaled, preserving aspect ratio.

Public class: `FrameEncoder`

Example:
    encoder = FrameEncoder(quality=80)
    data_uri = encoder.to_data_uri(frame)
"""
from __future__ import annotations

import base64
import io
from typing import Tuple

import numpy as np
from PIL import Image


class FrameEncoder:
    """Encode camera frames as JPEG.

    Args:
        quality: JPEG quality (1-95). Defaults to 80.
        max_size: Maximum width and height of the encoded frame. Defaults to (640, 640).
    """

    def __init__(self, quality: int = 80, max_size: Tuple[int, int] = (640, 640)):
        self.quality = quality
        self.max_size = max_size

    def to_jpeg(self, frame: np.ndarray) -> bytes:
        """Return JPEG bytes for a BGR, BGRA, or grayscale frame.

        Raises:
            ValueError: If the frame is empty or has an unsupported shape.
        """
        if frame is None or frame.size == 0:
            raise ValueError("Frame is empty")

        if frame.ndim == 2:
            img = Image.fromarray(frame)
        elif frame.ndim == 3 and frame.shape[2] in (3, 4):
            # OpenCV frames are BGR(A); Pillow expects RGB
            rgb = np.ascontiguousarray(frame[:, :, 2::-1])
            img = Image.fromarray(rgb)
        else:
            raise ValueError(f"Unsupported frame shape {frame.shape}")

        img.thumbnail(self.max_size, Image.LANCZOS)

        out_io = io.BytesIO()
        img.convert("RGB").save(out_io, format="JPEG", quality=self.quality)
        return out_io.getvalue()

    def to_data_uri(self, frame: np.ndarray) -> str:
        """Return the frame as a `data:image/jpeg;base64,` URI."""
        encoded = base64.b64encode(self.to_jpeg(frame)).decode("utf-8")
        return f"data:image/jpeg;base64,{encoded}"
