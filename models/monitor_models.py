"""Monitor domain models for the engagement monitoring loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from models.engagement_models import EngagementScores


class MonitorState(str, Enum):
	"""Lifecycle states of a monitoring session."""

	IDLE = "idle"
	ACQUIRING = "acquiring"
	WAITING_FOR_READY = "waiting_for_ready"
	ACTIVE = "active"
	STALLED = "stalled"
	ERROR = "error"


class PermissionState(str, Enum):
	"""Whether the capture device was granted on the last acquisition."""

	UNKNOWN = "unknown"
	GRANTED = "granted"
	DENIED = "denied"


@dataclass(frozen=True)
class DeviceErrorInfo:
	"""Classified device failure surfaced to the user."""

	reason: str
	message: str


@dataclass(frozen=True)
class MonitorSnapshot:
	"""Point-in-time view of a monitoring session pushed to listeners."""

	state: MonitorState
	permission: PermissionState
	scores: EngagementScores = field(default_factory=EngagementScores.zero)
	recommendation: str = ""
	analyzing: bool = False
	error_message: Optional[str] = None
	warning: Optional[str] = None
	device_error: Optional[DeviceErrorInfo] = None
	track_count: int = 0
	timer_pending: bool = False

	@property
	def monitoring(self) -> bool:
		return self.state is MonitorState.ACTIVE

	@property
	def initializing(self) -> bool:
		return self.state in (MonitorState.ACQUIRING, MonitorState.WAITING_FOR_READY)

	def to_dict(self) -> Dict[str, Any]:
		"""Return a JSON-serializable representation for the browser."""
		return {
			"state": self.state.value,
			"permission": self.permission.value,
			"monitoring": self.monitoring,
			"initializing": self.initializing,
			"analyzing": self.analyzing,
			"scores": self.scores.score_dict(),
			"recommendation": self.recommendation,
			"errorMessage": self.error_message,
			"warning": self.warning,
			"deviceError": (
				{"reason": self.device_error.reason, "message": self.device_error.message}
				if self.device_error
				else None
			),
			"trackCount": self.track_count,
			"timerPending": self.timer_pending,
		}
