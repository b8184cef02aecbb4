"""Answer learner queries with a text explanation and an optional chart."""

import logging
import time
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from services.openai.chart_generator import ChartGenerator
from services.openai.media_inputs import build_inputs
from services.openai.query_prompts import build_system_prompt, build_user_prompt
from services.openai.query_schema import FUNCTION_DEFINITION, FUNCTION_NAME
from services.openai.response_parser import extract_usage, parse_function_call
from utils import settings

LOGGER = logging.getLogger(__name__)


class MultimodalResponder:
    """Send a text and/or image query to OpenAI and collect the answer."""

    def __init__(
        self,
        client: AsyncOpenAI,
        chart_generator: Optional[ChartGenerator] = None,
        model: str = settings.OPENAI_MODEL,
    ) -> None:
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.chart_generator = chart_generator or ChartGenerator(client)
        self.model = model
        self.system_prompt = build_system_prompt()

    async def respond(
        self,
        *,
        query_text: Optional[str] = None,
        query_image_data_uri: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Return `textResponse` and `chartDataUri` for the query.

        The chart is best-effort: when rendering fails the answer is returned
        without one. Failures of the explanation call propagate.
        """
        if not query_text and not query_image_data_uri:
            raise ValueError("A text query or an image is required.")

        start_time = time.time()
        user_prompt = build_user_prompt(bool(query_text), bool(query_image_data_uri))
        inputs = build_inputs(
            self.system_prompt,
            user_prompt,
            text_input=query_text,
            image_url=query_image_data_uri,
        )
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=inputs,
                tools=[FUNCTION_DEFINITION],
                tool_choice={"type": "function", "name": FUNCTION_NAME},
            )
        except Exception as exc:
            LOGGER.error("Error during OpenAI Responses API call: %s", exc)
            raise

        args = parse_function_call(response, tool_name=FUNCTION_NAME)
        text_response = (args.get("text_response") or "").strip()
        if not text_response:
            raise RuntimeError("Model returned an empty explanation.")

        chart_data_uri = await self._render_chart((args.get("chart_prompt") or "").strip())

        usage = extract_usage(response)
        LOGGER.info(
            "Query answered in %.3fs (input_tokens=%s, output_tokens=%s, chart=%s)",
            time.time() - start_time,
            usage["input_tokens"],
            usage["output_tokens"],
            chart_data_uri is not None,
        )
        return {"textResponse": text_response, "chartDataUri": chart_data_uri}

    async def _render_chart(self, chart_prompt: str) -> Optional[str]:
        if not chart_prompt:
            return None
        try:
            return await self.chart_generator.generate(chart_prompt)
        except Exception as exc:
            LOGGER.warning("Chart generation skipped: %s", exc)
            return None
