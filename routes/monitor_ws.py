"""WebSocket endpoint for the engagement monitor panel."""

from __future__ import annotations

import json

from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect

from controllers.monitor_controller import is_secure_context
from services.monitor.ws_monitor import MonitorSocketHandler

router = APIRouter()


@router.websocket("/ws/monitor")
async def monitor_socket(websocket: WebSocket):
	"""Stream monitor state to one panel; closing the panel stops monitoring."""
	await websocket.accept()
	monitor = getattr(websocket.app.state, "monitor", None)
	if monitor is None:
		await websocket.send_text(json.dumps({"type": "error", "detail": "Engagement monitor unavailable"}))
		await websocket.close()
		return

	handler = MonitorSocketHandler(monitor, websocket, secure_context=is_secure_context(websocket.url))
	await handler.open()
	try:
		while True:
			try:
				raw = await websocket.receive_text()
			except WebSocketDisconnect:
				break
			try:
				payload = json.loads(raw)
			except json.JSONDecodeError:
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be JSON"}))
				continue
			if not isinstance(payload, dict):
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be a JSON object"}))
				continue
			await handler.handle(payload)
	finally:
		await handler.close()
