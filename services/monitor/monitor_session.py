"""Engagement monitoring session: camera acquisition and the periodic analysis loop.

A session moves through `idle -> acquiring -> waiting_for_ready -> active`
and back to `idle` on `stop()`. Acquisition failures land in `error`;
readiness polling that runs out of attempts lands in `stalled`, where the
device stays open but no analysis runs. Both are left by another `start()`.

Every start bumps a generation counter. Work that resumes after an `await`
checks the generation it was started under and becomes a no-op once the
session has been stopped or restarted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional, Set

from models.engagement_models import EngagementScores
from models.monitor_models import DeviceErrorInfo, MonitorSnapshot, MonitorState, PermissionState
from services.capabilities import probe_camera_support
from services.frame_encoder import FrameEncoder
from services.monitor.capture_device import (
	CaptureConstraints,
	CaptureDevice,
	CaptureDeviceError,
	CaptureErrorReason,
)
from utils import settings

LOGGER = logging.getLogger(__name__)

IDLE_RECOMMENDATION = "Enable monitoring to receive recommendations."
ACTIVE_RECOMMENDATION = "Monitoring active. Analyzing expressions..."
STOPPED_RECOMMENDATION = "Monitoring stopped. Enable to resume."
ANALYSIS_ERROR_MESSAGE = "Failed to analyze expression. Retrying..."
READY_TIMEOUT_WARNING = (
	"Could not start analysis. Video dimensions were not available. "
	"Feed might be visible but analysis is off."
)
DEVICE_LOST_WARNING = "The camera stopped delivering video. Monitoring stopped."

Listener = Callable[[MonitorSnapshot], None]


class MonitorSession:
	"""Own one capture device and drive the sample-and-analyze loop."""

	def __init__(
		self,
		estimator: Any,
		device_factory: Callable[[CaptureConstraints], CaptureDevice],
		*,
		encoder: Optional[FrameEncoder] = None,
		constraints: Optional[CaptureConstraints] = None,
		interval: float = settings.ANALYSIS_INTERVAL_SECONDS,
		max_dimension_checks: int = settings.MAX_DIMENSION_CHECK_ATTEMPTS,
		dimension_check_delay: float = settings.DIMENSION_CHECK_DELAY_SECONDS,
		camera_supported: Callable[[], bool] = probe_camera_support,
	) -> None:
		if max_dimension_checks < 1:
			raise ValueError("max_dimension_checks must be at least 1.")
		if interval <= 0:
			raise ValueError("interval must be positive.")
		self.estimator = estimator
		self.device_factory = device_factory
		self.encoder = encoder or FrameEncoder()
		self.constraints = constraints or CaptureConstraints(settings.CAMERA_WIDTH, settings.CAMERA_HEIGHT)
		self.interval = interval
		self.max_dimension_checks = max_dimension_checks
		self.dimension_check_delay = dimension_check_delay
		self.camera_supported = camera_supported

		self.state = MonitorState.IDLE
		self.permission = PermissionState.UNKNOWN
		self.scores = EngagementScores.zero()
		self.recommendation = IDLE_RECOMMENDATION
		self.analyzing = False
		self.error_message: Optional[str] = None
		self.warning: Optional[str] = None
		self.device_error: Optional[DeviceErrorInfo] = None

		self._device: Optional[CaptureDevice] = None
		self._timer_task: Optional[asyncio.Task] = None
		self._cycle_task: Optional[asyncio.Task] = None
		self._background: Set[asyncio.Task] = set()
		self._acquire_in_progress = False
		self._open_pending: Optional[asyncio.Event] = None
		self._generation = 0
		self._cycle_seq = 0
		self._listeners: List[Listener] = []

	# ------------------------------------------------------------------ state

	@property
	def is_active(self) -> bool:
		return self.state is MonitorState.ACTIVE

	@property
	def timer_pending(self) -> bool:
		return self._timer_task is not None and not self._timer_task.done()

	@property
	def track_count(self) -> int:
		return self._device.track_count if self._device is not None else 0

	def snapshot(self) -> MonitorSnapshot:
		return MonitorSnapshot(
			state=self.state,
			permission=self.permission,
			scores=self.scores,
			recommendation=self.recommendation,
			analyzing=self.analyzing,
			error_message=self.error_message,
			warning=self.warning,
			device_error=self.device_error,
			track_count=self.track_count,
			timer_pending=self.timer_pending,
		)

	def add_listener(self, listener: Listener) -> Callable[[], None]:
		"""Register a snapshot listener and return a function that removes it."""
		self._listeners.append(listener)

		def _remove() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)

		return _remove

	def _notify(self) -> None:
		snapshot = self.snapshot()
		for listener in list(self._listeners):
			try:
				listener(snapshot)
			except Exception:
				LOGGER.exception("Monitor listener failed")

	# ------------------------------------------------------------- lifecycle

	async def start(self, *, secure_context: bool = True) -> bool:
		"""Acquire the camera and begin monitoring.

		Returns False without touching the device when an acquisition is
		already in flight or monitoring is already running.
		"""
		if self._acquire_in_progress or self.state in (
			MonitorState.ACQUIRING,
			MonitorState.WAITING_FOR_READY,
			MonitorState.ACTIVE,
		):
			LOGGER.info("Start requested while monitor is %s; ignoring.", self.state.value)
			return False

		if self._device is not None:
			self._release_device()

		self._generation += 1
		generation = self._generation
		self._acquire_in_progress = True
		self.state = MonitorState.ACQUIRING
		self.permission = PermissionState.UNKNOWN
		self.error_message = None
		self.warning = None
		self.device_error = None
		self._notify()

		try:
			device = await self._acquire(secure_context, generation)
		except CaptureDeviceError as exc:
			if generation == self._generation:
				self._fail(exc)
			return True
		finally:
			if generation == self._generation:
				self._acquire_in_progress = False

		if generation != self._generation:
			if device is not None:
				LOGGER.info("Monitor stopped during acquisition; releasing new device.")
				device.release()
			return True

		self._device = device
		self.permission = PermissionState.GRANTED
		self.state = MonitorState.WAITING_FOR_READY
		self._notify()

		await self._wait_until_ready(generation)
		return True

	async def _acquire(self, secure_context: bool, generation: int) -> Optional[CaptureDevice]:
		if not secure_context:
			raise CaptureDeviceError(CaptureErrorReason.INSECURE_CONTEXT)
		if not self.camera_supported():
			raise CaptureDeviceError(CaptureErrorReason.UNSUPPORTED)

		pending = self._open_pending
		if pending is not None and not pending.is_set():
			# A stopped start may still be opening the camera; never open it twice
			LOGGER.info("Waiting for an abandoned camera open to finish.")
			await pending.wait()
			if generation != self._generation:
				return None

		LOGGER.info("Requesting camera access (%dx%d).", self.constraints.width, self.constraints.height)
		device = self.device_factory(self.constraints)
		opened = asyncio.Event()
		self._open_pending = opened
		try:
			await device.open()
		except CaptureDeviceError:
			device.release()
			raise
		except asyncio.CancelledError:
			device.release()
			if generation == self._generation:
				self._fail(CaptureDeviceError(CaptureErrorReason.ABORTED))
			raise
		except Exception as exc:
			device.release()
			LOGGER.error("Unexpected error opening camera: %s", exc)
			raise CaptureDeviceError(CaptureErrorReason.UNKNOWN) from exc
		finally:
			opened.set()
		return device

	def _fail(self, exc: CaptureDeviceError) -> None:
		LOGGER.warning("Camera acquisition failed (%s): %s", exc.reason.value, exc.message)
		self.state = MonitorState.ERROR
		self.permission = PermissionState.DENIED
		self.device_error = DeviceErrorInfo(reason=exc.reason.value, message=exc.message)
		self._acquire_in_progress = False
		self._notify()

	async def _wait_until_ready(self, generation: int) -> None:
		"""Poll frame dimensions a bounded number of times before activating."""
		device = self._device
		for attempt in range(1, self.max_dimension_checks + 1):
			try:
				width, height = await device.frame_size()
			except Exception as exc:
				if generation == self._generation:
					LOGGER.error("Dimension check failed: %s", exc)
					self._abort(CaptureErrorReason.UNKNOWN)
				return
			if generation != self._generation:
				return
			LOGGER.debug("Dimension check %d/%d: %dx%d", attempt, self.max_dimension_checks, width, height)
			if width > 0 and height > 0:
				self._activate(generation)
				return
			if attempt < self.max_dimension_checks:
				await asyncio.sleep(self.dimension_check_delay)
				if generation != self._generation:
					return
				if not device.is_live:
					LOGGER.info("Camera stopped during dimension checks.")
					self.stop()
					return

		LOGGER.warning(
			"Camera open but dimensions not ready after %d attempts; analysis not started.",
			self.max_dimension_checks,
		)
		self.state = MonitorState.STALLED
		self.warning = READY_TIMEOUT_WARNING
		self._notify()

	def _activate(self, generation: int) -> None:
		self.state = MonitorState.ACTIVE
		self.recommendation = ACTIVE_RECOMMENDATION
		self.error_message = None
		self._timer_task = self._spawn(self._run_timer(generation))
		LOGGER.info("Monitoring started.")
		self._notify()

	def stop(self, warning: Optional[str] = None) -> None:
		"""Cancel the timer, release the camera, and reset to idle.

		Synchronous and idempotent. Analysis calls still in flight finish in
		the background and their results are discarded.
		"""
		self._teardown()
		self.state = MonitorState.IDLE
		self.scores = EngagementScores.zero()
		self.recommendation = STOPPED_RECOMMENDATION
		self.error_message = None
		self.device_error = None
		self.warning = warning
		self._acquire_in_progress = False
		self._notify()

	def _teardown(self) -> None:
		self._generation += 1
		timer, self._timer_task = self._timer_task, None
		if timer is not None and not timer.done():
			timer.cancel()
		self._cycle_task = None
		self._release_device()
		self.analyzing = False

	def _abort(self, reason: CaptureErrorReason) -> None:
		"""Drop a device that failed after acquisition and land in `error`."""
		self._teardown()
		self._fail(CaptureDeviceError(reason))

	async def aclose(self) -> None:
		"""Stop monitoring and cancel any background work still running."""
		self.stop()
		pending = [task for task in self._background if not task.done()]
		for task in pending:
			task.cancel()
		if pending:
			await asyncio.gather(*pending, return_exceptions=True)

	def _release_device(self) -> None:
		device, self._device = self._device, None
		if device is not None:
			device.release()

	def _spawn(self, coro) -> asyncio.Task:
		task = asyncio.get_running_loop().create_task(coro)
		self._background.add(task)
		task.add_done_callback(self._background.discard)
		return task

	# ------------------------------------------------------------------ loop

	async def _run_timer(self, generation: int) -> None:
		"""Issue a cycle now and then once per interval measured from loop start."""
		loop = asyncio.get_running_loop()
		started = loop.time()
		tick = 0
		while generation == self._generation:
			self._issue_cycle(generation)
			tick += 1
			delay = started + tick * self.interval - loop.time()
			if delay < 0:
				# Fell behind; realign with the next scheduled tick instead of bursting
				tick = int((loop.time() - started) // self.interval) + 1
				delay = started + tick * self.interval - loop.time()
			await asyncio.sleep(delay)

	def _issue_cycle(self, generation: int) -> None:
		if self._cycle_task is not None and not self._cycle_task.done():
			LOGGER.debug("Previous analysis still in flight; skipping this tick.")
			return
		self._cycle_seq += 1
		self._cycle_task = self._spawn(self._run_cycle(generation, self._cycle_seq))

	def _is_stale(self, generation: int, seq: int) -> bool:
		return generation != self._generation or seq != self._cycle_seq

	async def _run_cycle(self, generation: int, seq: int) -> None:
		"""Capture one frame, analyze it, and publish the result."""
		device = self._device
		if device is None or not device.is_live:
			if generation == self._generation:
				LOGGER.warning("Camera is no longer live; stopping monitor.")
				self.stop(warning=DEVICE_LOST_WARNING)
			return

		try:
			frame = await device.read_frame()
		except Exception as exc:
			if not self._is_stale(generation, seq):
				LOGGER.error("Camera read failed: %s", exc)
				self._abort(CaptureErrorReason.UNKNOWN)
			return
		if self._is_stale(generation, seq):
			return
		if frame is None or frame.size == 0 or 0 in frame.shape[:2]:
			LOGGER.warning("Frame capture skipped: no frame available for this interval.")
			return

		self.analyzing = True
		self.error_message = None
		self._notify()

		try:
			data_uri = self.encoder.to_data_uri(frame)
			result = await self.estimator.analyze(data_uri)
		except Exception as exc:
			LOGGER.error("Error analyzing facial expression: %s", exc)
			result = EngagementScores.unavailable()

		if self._is_stale(generation, seq):
			LOGGER.debug("Discarding analysis result from a superseded cycle.")
			return

		self.analyzing = False
		if result.available:
			self.scores = result
			self.recommendation = result.teaching_recommendation
		else:
			self.recommendation = result.teaching_recommendation
			self.error_message = ANALYSIS_ERROR_MESSAGE
		self._notify()

	# --------------------------------------------------------------- preview

	async def preview_jpeg(self) -> Optional[bytes]:
		"""Return a JPEG of the current camera frame, or None without a live device."""
		device = self._device
		if device is None or not device.is_live:
			return None
		frame = await device.read_frame()
		if frame is None or frame.size == 0:
			return None
		return self.encoder.to_jpeg(frame)
