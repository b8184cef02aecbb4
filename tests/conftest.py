"""Shared fakes for the learning assistant test suite."""

from __future__ import annotations

import asyncio
import base64
import io
import json
import time
from types import SimpleNamespace
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest
from PIL import Image

from services.monitor.capture_device import CaptureConstraints, CaptureDevice


class FakeCamera(CaptureDevice):
    """In-memory capture device with controllable readiness and failures."""

    def __init__(
        self,
        constraints: CaptureConstraints,
        *,
        ready_after: int = 0,
        open_error: Optional[BaseException] = None,
        open_gate: Optional[asyncio.Event] = None,
        size_error: Optional[BaseException] = None,
        read_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(constraints)
        self.frame = np.full((constraints.height, constraints.width, 3), 128, dtype=np.uint8)
        self.ready_after = ready_after
        self.open_error = open_error
        self.open_gate = open_gate
        self.size_error = size_error
        self.read_error = read_error
        self.opened = False
        self.release_calls = 0
        self.size_checks = 0

    async def open(self) -> None:
        if self.open_gate is not None:
            await self.open_gate.wait()
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    async def frame_size(self):
        self.size_checks += 1
        if self.size_error is not None:
            raise self.size_error
        if self.size_checks <= self.ready_after:
            return 0, 0
        height, width = self.frame.shape[:2]
        return width, height

    async def read_frame(self):
        if self.read_error is not None:
            raise self.read_error
        return self.frame if self.opened else None

    def release(self) -> None:
        self.release_calls += 1
        self.opened = False

    @property
    def is_live(self) -> bool:
        return self.opened


class CameraFactory:
    """Device factory recording every camera it hands out."""

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.devices = []

    def __call__(self, constraints: CaptureConstraints) -> FakeCamera:
        camera = FakeCamera(constraints, **self.kwargs)
        self.devices.append(camera)
        return camera


def function_call_response(name: str, arguments: Dict[str, Any]) -> SimpleNamespace:
    """Build a Responses API result holding one function call."""
    return SimpleNamespace(
        output=[SimpleNamespace(type="function_call", name=name, arguments=json.dumps(arguments))],
        usage=SimpleNamespace(input_tokens=12, output_tokens=34),
    )


def make_openai_client(response: Any = None, *, error: Optional[Exception] = None) -> MagicMock:
    """Return a MagicMock shaped like AsyncOpenAI with async endpoints."""
    client = MagicMock()
    client.responses.create = AsyncMock(return_value=response, side_effect=error)
    client.images.generate = AsyncMock(
        return_value=SimpleNamespace(data=[SimpleNamespace(b64_json="aGVsbG8=")])
    )
    client.audio.transcriptions.create = AsyncMock(return_value=SimpleNamespace(text=" What is the water cycle? "))
    return client


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Poll `predicate` on the running loop until it holds or time runs out."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.005)


def wait_for_sync(predicate, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("Condition not met before timeout")
        time.sleep(0.01)


@pytest.fixture
def png_data_uri() -> str:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), (10, 200, 30)).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
