"""FastAPI routes for learner queries, voice input, and capability checks."""

from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from controllers.dictation_controller import transcribe_query
from controllers.query_controller import submit_query
from models.query_models import QueryResponse
from services.capabilities import probe_capabilities
from utils.media_validation import read_image_upload

router = APIRouter(prefix="/api", tags=["query"])


@router.post("/query", response_model=QueryResponse, response_model_by_alias=True)
async def post_query(
    request: Request,
    queryText: Optional[str] = Form(None),
    queryImageDataUri: Optional[str] = Form(None),
    queryImage: Optional[UploadFile] = File(None),
):
    """Answer a text and/or image query with an explanation and optional chart.

    Args:
        request: The FastAPI request containing application state.
        queryText: Optional typed or dictated question.
        queryImageDataUri: Optional image prepared by the browser as a data URI.
        queryImage: Optional image file upload, used when no data URI is sent.

    Returns:
        The display state for this submission. Validation and provider
        failures are reported inside the body rather than as HTTP errors.
    """
    image_data_uri = queryImageDataUri
    try:
        if not image_data_uri and queryImage is not None and queryImage.filename:
            image_data_uri = await read_image_upload(queryImage)
        return await submit_query(request, queryText, image_data_uri)
    except HTTPException:
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=500, detail="Failed to process query.") from exc


@router.post("/transcribe", summary="Transcribe a recorded voice query")
async def post_transcription(request: Request, audio: UploadFile = File(...)):
    """Return the transcript of an uploaded voice recording."""
    try:
        return await transcribe_query(request, audio)
    except HTTPException:
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=500, detail="Failed to process audio.") from exc


@router.get("/capabilities")
async def get_capabilities(request: Request):
    """Report whether camera monitoring and voice input are available."""
    return probe_capabilities(getattr(request.app.state, "openai_client", None))
