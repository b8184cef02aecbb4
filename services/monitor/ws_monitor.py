"""Dispatch engagement monitor websocket events and push state updates."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket

from models.monitor_models import MonitorSnapshot
from services.monitor.monitor_session import MonitorSession

LOGGER = logging.getLogger(__name__)

START_FAILED_DETAIL = "Could not start monitoring. Please try again."


class MonitorSocketHandler:
	"""Bridge one browser monitor panel to the shared monitoring session.

	Inbound messages control the session; every session change is queued and
	forwarded to the socket as a `monitor.state` message.
	"""

	def __init__(self, monitor: MonitorSession, websocket: WebSocket, *, secure_context: bool) -> None:
		self.monitor = monitor
		self.websocket = websocket
		self.secure_context = secure_context
		self._updates: asyncio.Queue = asyncio.Queue()
		self._remove_listener = None
		self._sender: Optional[asyncio.Task] = None
		self._start_tasks: Set[asyncio.Task] = set()

	async def open(self) -> None:
		"""Subscribe to session updates and send the current state."""
		self._remove_listener = self.monitor.add_listener(self._updates.put_nowait)
		self._sender = asyncio.create_task(self._forward_updates())
		await self._send_state(self.monitor.snapshot())

	async def close(self) -> None:
		"""Tear down the view: stop monitoring and the update forwarder."""
		if self._remove_listener is not None:
			self._remove_listener()
			self._remove_listener = None
		self.monitor.stop()
		for task in (self._sender, *self._start_tasks):
			if task is not None and not task.done():
				task.cancel()
		self._sender = None

	async def handle(self, payload: Dict[str, Any]) -> None:
		"""Process a single inbound websocket payload."""
		request_id = payload.get("request_id")
		message_type = payload.get("type")
		try:
			if message_type == "monitor.start":
				# Run acquisition in the background so a stop can arrive meanwhile
				task = asyncio.create_task(self._start(request_id))
				self._start_tasks.add(task)
				task.add_done_callback(self._start_tasks.discard)
			elif message_type == "monitor.stop":
				self.monitor.stop()
			elif message_type == "monitor.state":
				await self._send_state(self.monitor.snapshot(), request_id)
			else:
				raise ValueError("Unsupported message type.")
		except Exception as exc:
			await self._send_error(request_id, str(exc))

	async def _start(self, request_id: Any) -> None:
		try:
			await self.monitor.start(secure_context=self.secure_context)
		except Exception as exc:
			LOGGER.error("Monitor start failed: %s", exc)
			try:
				await self._send_error(request_id, START_FAILED_DETAIL)
			except Exception as send_exc:
				LOGGER.info("Monitor socket closed before start error was sent: %s", send_exc)

	async def _forward_updates(self) -> None:
		while True:
			snapshot = await self._updates.get()
			try:
				await self._send_state(snapshot)
			except Exception as exc:
				LOGGER.info("Monitor socket closed while sending update: %s", exc)
				return

	async def _send_state(self, snapshot: MonitorSnapshot, request_id: Any = None) -> None:
		payload = {"type": "monitor.state", **snapshot.to_dict()}
		if request_id is not None:
			payload["request_id"] = request_id
		await self._send(payload)

	async def _send_error(self, request_id: Any, detail: str) -> None:
		await self._send({"type": "error", "request_id": request_id, "detail": detail})

	async def _send(self, payload: Dict[str, Any]) -> None:
		await self.websocket.send_text(json.dumps(payload))
