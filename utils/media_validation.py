"""Validation helpers for uploaded multimedia content."""

import base64
import binascii
import io
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, UploadFile
from PIL import Image

from utils import settings

ALLOWED_AUDIO_TYPES = {
    "audio/wav",
    "audio/x-wav",
    "audio/webm",
    "audio/mpeg",
    "audio/mp3",
    "audio/mp4",
    "audio/aac",
    "audio/ogg",
    "audio/opus",
    "audio/flac",
}

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/bmp",
}

IMAGE_PREFIX_ERROR = "Image data must be a valid data URI starting with 'data:image/'."
IMAGE_SIZE_ERROR = "Image data is too large (max 10MB data URI)."
IMAGE_ENCODING_ERROR = "Image data is not a recognized base64-encoded image."


def split_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """Return the MIME type and decoded payload of a base64 data URI.

    Raises:
        ValueError: If the URI is not a base64 data URI or the payload does not decode.
    """
    if not data_uri.startswith("data:"):
        raise ValueError("Not a data URI.")
    header, sep, payload = data_uri.partition(",")
    if not sep:
        raise ValueError("Data URI has no payload.")
    params = header[len("data:"):].split(";")
    if "base64" not in params[1:]:
        raise ValueError("Data URI must be base64-encoded.")
    mime_type = params[0].strip().lower()
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Invalid base64 payload.") from exc
    return mime_type, raw


def to_data_uri(raw: bytes, mime_type: str) -> str:
    """Encode raw bytes as a base64 data URI."""
    encoded = base64.b64encode(raw).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def image_data_uri_errors(data_uri: str, max_length: Optional[int] = None) -> List[str]:
    """Return field errors for an image data URI; empty when the image is acceptable."""
    limit = settings.MAX_IMAGE_DATA_URI_LENGTH if max_length is None else max_length
    errors: List[str] = []
    if not data_uri.startswith("data:image/"):
        errors.append(IMAGE_PREFIX_ERROR)
    if len(data_uri) >= limit:
        errors.append(IMAGE_SIZE_ERROR)
    if errors:
        return errors

    try:
        mime_type, raw = split_data_uri(data_uri)
    except ValueError:
        return [IMAGE_ENCODING_ERROR]
    if mime_type not in ALLOWED_IMAGE_TYPES or not raw:
        return [IMAGE_ENCODING_ERROR]
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.verify()
    except Exception:
        return [IMAGE_ENCODING_ERROR]
    return []


def validate_query_fields(
    query_text: Optional[str], query_image_data_uri: Optional[str]
) -> Tuple[Optional[str], Optional[str], Dict[str, List[str]]]:
    """Normalize query form fields and collect field-level errors.

    Empty or whitespace-only values are treated as absent.

    Returns:
        A tuple of `(text, image_data_uri, errors)`.
    """
    text = query_text.strip() if query_text and query_text.strip() else None
    image = query_image_data_uri.strip() if query_image_data_uri and query_image_data_uri.strip() else None

    errors: Dict[str, List[str]] = {}
    if image is not None:
        image_errors = image_data_uri_errors(image)
        if image_errors:
            errors["queryImageDataUri"] = image_errors
    return text, image, errors


async def read_image_upload(image_file: UploadFile) -> str:
    """Read an uploaded image file and return it as a data URI."""
    raw = await image_file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Uploaded image is empty.")
    mime_type = (image_file.content_type or "image/jpeg").lower().split(";", 1)[0].strip()
    if mime_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=415, detail=f"Unsupported image content type: {image_file.content_type}")
    return to_data_uri(raw, mime_type)


def validate_audio_file(audio_file: UploadFile) -> None:
    """Validate that the uploaded audio file is a supported audio format.

    Browsers record voice queries in several containers (webm, wav, mp3, mp4,
    ogg, flac). The content type is checked against the allowed set and the
    filename extension is only consulted when the content type is missing.
    """
    if not audio_file.filename:
        raise HTTPException(status_code=400, detail="Audio file must have a filename.")
    if audio_file.content_type:
        content_type = audio_file.content_type.lower().split(";", 1)[0].strip()
        if content_type not in ALLOWED_AUDIO_TYPES:
            raise HTTPException(status_code=415, detail=f"Unsupported audio content type: {audio_file.content_type}")
    else:
        if not any(audio_file.filename.lower().endswith(ext) for ext in (
            ".wav",
            ".webm",
            ".mp3",
            ".mp4",
            ".m4a",
            ".ogg",
            ".flac",
        )):
            raise HTTPException(status_code=415, detail="Unsupported or missing audio content type.")


async def read_audio_bytes(audio_file: UploadFile) -> bytes:
    """Read validated audio bytes, ensuring the upload is not empty."""
    validate_audio_file(audio_file)
    audio_bytes = await audio_file.read()
    if not audio_bytes:
        raise HTTPException(status_code=400, detail="Uploaded audio file is empty.")
    return audio_bytes
