"""Engagement monitor helpers shared by the HTTP and websocket routes."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request
from fastapi.responses import Response
from starlette.datastructures import URL

from services.monitor.monitor_session import MonitorSession
from utils import settings

LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "::1", "[::1]"}


def is_secure_context(url: URL) -> bool:
	"""Return True for HTTPS/WSS origins and loopback hosts."""
	if settings.MONITOR_ALLOW_INSECURE:
		return True
	if url.scheme in ("https", "wss"):
		return True
	return (url.hostname or "").lower() in LOOPBACK_HOSTS


def get_monitor(app) -> MonitorSession:
	monitor = getattr(app.state, "monitor", None)
	if monitor is None:
		raise HTTPException(status_code=500, detail="Engagement monitor not initialized.")
	return monitor


async def start_monitor(request: Request) -> Dict[str, Any]:
	"""Start monitoring and return the resulting state."""
	monitor = get_monitor(request.app)
	started = await monitor.start(secure_context=is_secure_context(request.url))
	return {"started": started, **monitor.snapshot().to_dict()}


async def stop_monitor(request: Request) -> Dict[str, Any]:
	"""Stop monitoring and return the idle state."""
	monitor = get_monitor(request.app)
	monitor.stop()
	return monitor.snapshot().to_dict()


async def monitor_state(request: Request) -> Dict[str, Any]:
	return get_monitor(request.app).snapshot().to_dict()


async def monitor_frame(request: Request) -> Response:
	"""Return a JPEG of the current camera frame.

	Raises:
		HTTPException(404) if no camera is open or no frame is available.
	"""
	jpeg = await get_monitor(request.app).preview_jpeg()
	if jpeg is None:
		raise HTTPException(status_code=404, detail="No camera frame available")
	return Response(content=jpeg, media_type="image/jpeg", headers={"Cache-Control": "no-store"})
