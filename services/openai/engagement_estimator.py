"""Engagement estimation from webcam frames using OpenAI's Responses API."""

import logging
import time
from typing import Any

from openai import AsyncOpenAI
from pydantic import ValidationError

from models.engagement_models import (
    INVALID_IMAGE_RECOMMENDATION,
    UNREADABLE_RECOMMENDATION,
    EngagementScores,
)
from services.openai.engagement_prompts import build_system_prompt, build_user_prompt
from services.openai.engagement_schema import FUNCTION_DEFINITION, FUNCTION_NAME
from services.openai.media_inputs import build_inputs
from services.openai.response_parser import parse_function_call
from utils import settings

LOGGER = logging.getLogger(__name__)


class EngagementEstimator:
    """Score a single student frame for engagement, attention, and confusion.

    `analyze` never raises: any provider or parsing failure yields a
    zero-score fallback record with an advisory recommendation so the
    monitoring loop can keep running.
    """

    def __init__(self, client: AsyncOpenAI, model: str = settings.ENGAGEMENT_MODEL) -> None:
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model
        self.system_prompt = build_system_prompt()
        self.user_prompt = build_user_prompt()

    async def analyze(self, photo_data_uri: str) -> EngagementScores:
        """Return engagement scores for a `data:image/...;base64,` frame."""
        if not photo_data_uri or not photo_data_uri.startswith("data:image/"):
            return EngagementScores.fallback(INVALID_IMAGE_RECOMMENDATION)

        start_time = time.time()
        try:
            response = await self._create_response(photo_data_uri)
        except Exception as exc:
            LOGGER.error("Error during facial expression analysis: %s", exc)
            return EngagementScores.unavailable()

        result = self._parse_response(response)
        LOGGER.debug("Engagement analysis latency: %.3fs", time.time() - start_time)
        return result

    async def _create_response(self, photo_data_uri: str) -> Any:
        inputs = build_inputs(self.system_prompt, self.user_prompt, image_url=photo_data_uri)
        return await self.client.responses.create(
            model=self.model,
            input=inputs,
            tools=[FUNCTION_DEFINITION],
            tool_choice={"type": "function", "name": FUNCTION_NAME},
        )

    def _parse_response(self, response: Any) -> EngagementScores:
        """Validate the tool output, failing closed to a fallback record."""
        try:
            args = parse_function_call(response, tool_name=FUNCTION_NAME)
            return EngagementScores.model_validate({**args, "available": True})
        except (RuntimeError, ValueError, ValidationError) as exc:
            LOGGER.warning("Engagement output rejected: %s", exc)
            return EngagementScores.fallback(UNREADABLE_RECOMMENDATION)
