import logging
from typing import Optional

from fastapi import Request

from models.query_models import (
    MISSING_INPUT_ERROR,
    MISSING_INPUT_MESSAGE,
    PROCESSING_FAILED_ERROR,
    PROCESSING_FAILED_MESSAGE,
    SUCCESS_MESSAGE,
    VALIDATION_FAILED_MESSAGE,
    QueryRequest,
    QueryResponse,
)
from services.openai.multimodal_responder import MultimodalResponder
from utils.media_validation import validate_query_fields

LOGGER = logging.getLogger(__name__)


async def submit_query(
    request: Request,
    query_text: Optional[str],
    query_image_data_uri: Optional[str],
) -> QueryResponse:
    """Validate a learner query and answer it with the multimodal responder.

    Validation problems are reported as field errors without calling the
    model. Provider failures are mapped to a generic message so internal
    details never reach the browser.

    Args:
        request: FastAPI Request (used to access app.state.openai_client).
        query_text: Optional question typed or dictated by the learner.
        query_image_data_uri: Optional image as a base64 data URI.

    Returns:
        A fresh `QueryResponse` stamped with the submission time.
    """
    text, image, errors = validate_query_fields(query_text, query_image_data_uri)
    if errors:
        return QueryResponse.failure(VALIDATION_FAILED_MESSAGE, errors)

    if not text and not image:
        return QueryResponse.failure(MISSING_INPUT_MESSAGE, {"server": [MISSING_INPUT_ERROR]})

    query = QueryRequest(query_text=text, query_image_data_uri=image)
    try:
        responder = MultimodalResponder(request.app.state.openai_client)
        result = await responder.respond(
            query_text=query.query_text,
            query_image_data_uri=query.query_image_data_uri,
        )
    except Exception as exc:
        LOGGER.error("Error calling AI model: %s", exc)
        return QueryResponse.failure(PROCESSING_FAILED_MESSAGE, {"server": [PROCESSING_FAILED_ERROR]})

    return QueryResponse(
        message=SUCCESS_MESSAGE,
        errors=None,
        text_response=result.get("textResponse"),
        chart_data_uri=result.get("chartDataUri"),
    )
