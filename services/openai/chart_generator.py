"""Chart image generation via the OpenAI Images API."""

import logging

from openai import AsyncOpenAI

from services.openai.query_prompts import build_chart_prompt
from utils import settings

LOGGER = logging.getLogger(__name__)


class ChartGenerator:
    """Render a chart description into a PNG data URI."""

    def __init__(self, client: AsyncOpenAI, model: str = settings.CHART_MODEL, size: str = "1024x1024") -> None:
        if client is None:
            raise ValueError("OpenAI client is required for chart generation.")
        self.client = client
        self.model = model
        self.size = size

    async def generate(self, chart_request: str) -> str:
        """Return the generated chart as `data:image/png;base64,...`.

        Raises:
            ValueError: If the chart request is empty.
            RuntimeError: If the API returned no image data.
        """
        if not chart_request or not chart_request.strip():
            raise ValueError("chart_request must describe the chart to draw.")

        try:
            response = await self.client.images.generate(
                model=self.model,
                prompt=build_chart_prompt(chart_request.strip()),
                size=self.size,
            )
        except Exception as exc:
            LOGGER.error("OpenAI image generation failed: %s", exc)
            raise

        data = getattr(response, "data", None) or []
        b64_image = getattr(data[0], "b64_json", None) if data else None
        if not b64_image:
            raise RuntimeError("Image generation response did not include image data.")
        return f"data:image/png;base64,{b64_image}"
