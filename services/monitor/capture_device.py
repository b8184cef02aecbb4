"""Camera capture devices for engagement monitoring."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

import numpy as np

LOGGER = logging.getLogger(__name__)


class CaptureErrorReason(str, Enum):
	"""User-facing categories of capture device failures."""

	PERMISSION_DENIED = "permission_denied"
	NOT_FOUND = "not_found"
	HARDWARE_BUSY = "hardware_busy"
	OVERCONSTRAINED = "overconstrained"
	INSECURE_CONTEXT = "insecure_context"
	ABORTED = "aborted"
	UNSUPPORTED = "unsupported"
	UNKNOWN = "unknown"


CAPTURE_ERROR_MESSAGES = {
	CaptureErrorReason.PERMISSION_DENIED: "Camera access denied. Please enable camera permissions for this application.",
	CaptureErrorReason.NOT_FOUND: "No camera found. Please ensure a camera is connected and enabled.",
	CaptureErrorReason.HARDWARE_BUSY: "Camera is already in use or a hardware error occurred.",
	CaptureErrorReason.OVERCONSTRAINED: "The camera does not support the requested resolution or constraints.",
	CaptureErrorReason.INSECURE_CONTEXT: "Camera access is not allowed on insecure origins (HTTP). Try HTTPS or localhost.",
	CaptureErrorReason.ABORTED: "Camera access request was aborted.",
	CaptureErrorReason.UNSUPPORTED: "Camera capture is not supported on this server.",
	CaptureErrorReason.UNKNOWN: "Could not access camera. Please ensure permissions are granted.",
}


class CaptureDeviceError(Exception):
	"""Raised when a capture device cannot be acquired."""

	def __init__(self, reason: CaptureErrorReason, message: Optional[str] = None) -> None:
		self.reason = reason
		self.message = message or CAPTURE_ERROR_MESSAGES[reason]
		super().__init__(self.message)


@dataclass(frozen=True)
class CaptureConstraints:
	"""Resolution hints for acquisition; `strict` turns hints into requirements."""

	width: int = 320
	height: int = 240
	strict: bool = False


class CaptureDevice:
	"""Interface for a live camera handle owned by a monitoring session."""

	def __init__(self, constraints: CaptureConstraints) -> None:
		self.constraints = constraints

	async def open(self) -> None:
		"""Acquire the device, raising `CaptureDeviceError` on failure."""
		raise NotImplementedError

	async def frame_size(self) -> Tuple[int, int]:
		"""Return the current `(width, height)`; `(0, 0)` until frames flow."""
		raise NotImplementedError

	async def read_frame(self) -> Optional[np.ndarray]:
		"""Return the latest frame, or None when none is available."""
		raise NotImplementedError

	def release(self) -> None:
		"""Stop every underlying track. Safe to call more than once."""
		raise NotImplementedError

	@property
	def is_live(self) -> bool:
		raise NotImplementedError

	@property
	def track_count(self) -> int:
		return 1 if self.is_live else 0


class OpenCVCamera(CaptureDevice):
	"""Local webcam read through `cv2.VideoCapture`.

	Blocking OpenCV calls run in worker threads; a lock serializes access to
	the capture handle so reads and release never overlap.
	"""

	def __init__(self, constraints: CaptureConstraints, index: int = 0) -> None:
		super().__init__(constraints)
		self.index = index
		self._cap = None
		self._cap_lock = threading.Lock()

	@classmethod
	def factory(cls, index: int = 0) -> Callable[[CaptureConstraints], "OpenCVCamera"]:
		"""Return a device factory bound to a camera index."""
		def _create(constraints: CaptureConstraints) -> "OpenCVCamera":
			return cls(constraints, index=index)
		return _create

	async def open(self) -> None:
		await asyncio.to_thread(self._open_blocking)

	def _open_blocking(self) -> None:
		import cv2

		try:
			cap = cv2.VideoCapture(self.index)
		except PermissionError as exc:
			raise CaptureDeviceError(CaptureErrorReason.PERMISSION_DENIED) from exc
		except cv2.error as exc:
			raise CaptureDeviceError(CaptureErrorReason.HARDWARE_BUSY) from exc

		if not cap.isOpened():
			cap.release()
			raise CaptureDeviceError(CaptureErrorReason.NOT_FOUND)

		cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.constraints.width)
		cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.constraints.height)
		cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

		if self.constraints.strict:
			width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
			height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
			if (width, height) != (self.constraints.width, self.constraints.height):
				cap.release()
				raise CaptureDeviceError(CaptureErrorReason.OVERCONSTRAINED)

		with self._cap_lock:
			self._cap = cap
		LOGGER.info("Opened camera %s", self.index)

	async def frame_size(self) -> Tuple[int, int]:
		frame = await self.read_frame()
		if frame is None:
			return 0, 0
		height, width = frame.shape[:2]
		return int(width), int(height)

	async def read_frame(self) -> Optional[np.ndarray]:
		return await asyncio.to_thread(self._read_blocking)

	def _read_blocking(self) -> Optional[np.ndarray]:
		with self._cap_lock:
			if self._cap is None:
				return None
			ok, frame = self._cap.read()
		if not ok or frame is None:
			return None
		return frame

	def release(self) -> None:
		with self._cap_lock:
			cap, self._cap = self._cap, None
		if cap is not None:
			cap.release()
			LOGGER.info("Released camera %s", self.index)

	@property
	def is_live(self) -> bool:
		cap = self._cap
		return cap is not None and cap.isOpened()
