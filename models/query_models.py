"""Request and response shapes for one-shot learning queries."""

from __future__ import annotations

import time
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

SUCCESS_MESSAGE = "Query processed successfully."
VALIDATION_FAILED_MESSAGE = "Validation failed."
MISSING_INPUT_MESSAGE = "Missing input."
MISSING_INPUT_ERROR = "Please provide a text query or an image."
PROCESSING_FAILED_MESSAGE = "AI processing failed."
PROCESSING_FAILED_ERROR = "An error occurred while processing your query. Please try again."


def _now_ms() -> int:
    return int(time.time() * 1000)


class QueryRequest(BaseModel):
    """A validated learning query; at least one field is set."""

    query_text: Optional[str] = None
    query_image_data_uri: Optional[str] = None


class QueryResponse(BaseModel):
    """Display state returned for every submission.

    `timestamp` changes on every submission so the browser can tell a new
    result arrived even when the content is identical.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    errors: Optional[Dict[str, List[str]]] = None
    text_response: Optional[str] = Field(default=None, alias="textResponse")
    chart_data_uri: Optional[str] = Field(default=None, alias="chartDataUri")
    timestamp: int = Field(default_factory=_now_ms)

    @classmethod
    def failure(cls, message: str, errors: Dict[str, List[str]]) -> "QueryResponse":
        return cls(message=message, errors=errors)
