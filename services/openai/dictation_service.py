"""Voice query transcription built on OpenAI's transcription models."""

import logging
from typing import Optional

from openai import AsyncOpenAI

from utils import settings

LOGGER = logging.getLogger(__name__)

# Keeps subject vocabulary (photosynthesis, mitochondria...) spelled correctly
DICTATION_PROMPT = "A student is asking a question about a school subject."


class DictationService:
    """Turn a recorded voice query into the text of the question."""

    def __init__(self, client: AsyncOpenAI, model: str = settings.TRANSCRIBE_MODEL) -> None:
        if client is None:
            raise ValueError("OpenAI client is required for dictation.")
        self.client = client
        self.model = model

    async def transcribe(
        self,
        audio_bytes: bytes,
        *,
        filename: str = "audio.webm",
        content_type: Optional[str] = None,
    ) -> str:
        """Return the whitespace-trimmed transcript of `audio_bytes`.

        Raises:
            ValueError: If no audio was provided.
            RuntimeError: If the provider returned no text.
        """
        if not audio_bytes:
            raise ValueError("audio_bytes must contain data for transcription.")

        upload = (filename, audio_bytes, content_type) if content_type else (filename, audio_bytes)
        try:
            response = await self.client.audio.transcriptions.create(
                model=self.model,
                file=upload,
                prompt=DICTATION_PROMPT,
            )
        except Exception as exc:
            LOGGER.error("Voice query transcription failed: %s", exc)
            raise

        transcript = (getattr(response, "text", None) or "").strip()
        if not transcript:
            raise RuntimeError("Transcription response did not include text.")
        LOGGER.info("Transcribed voice query (%d bytes audio, %d chars)", len(audio_bytes), len(transcript))
        return transcript
