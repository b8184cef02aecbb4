"""Controller for transcribing recorded voice queries."""

from typing import Any, Dict

from fastapi import HTTPException, Request, UploadFile

from services.openai.dictation_service import DictationService
from utils.media_validation import read_audio_bytes


async def transcribe_query(request: Request, audio_file: UploadFile) -> Dict[str, Any]:
    """Validate an uploaded recording and return its transcript.

    Args:
        request: FastAPI Request (used to access app.state.openai_client).
        audio_file: Uploaded recording from the browser microphone.

    Returns:
        A dict with the transcript under `text`.

    Raises:
        HTTPException: 400/415 for invalid audio, 502 when transcription fails.
    """
    audio_bytes = await read_audio_bytes(audio_file)
    service = DictationService(request.app.state.openai_client)
    try:
        transcript = await service.transcribe(
            audio_bytes,
            filename=audio_file.filename or "audio.webm",
            content_type=audio_file.content_type,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=502, detail="Could not transcribe audio. Please try again.") from exc
    return {"text": transcript}
