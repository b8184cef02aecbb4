"""Runtime capability checks for camera monitoring and voice input."""

import logging
from typing import Any, Dict

LOGGER = logging.getLogger(__name__)


def probe_camera_support() -> bool:
    """Return True when OpenCV is importable and exposes a camera backend."""
    try:
        import cv2
    except ImportError:
        LOGGER.warning("OpenCV is not installed; camera monitoring is unavailable.")
        return False

    registry = getattr(cv2, "videoio_registry", None)
    if registry is None:
        return hasattr(cv2, "VideoCapture")
    try:
        return len(registry.getCameraBackends()) > 0
    except cv2.error as exc:
        LOGGER.warning("Unable to list OpenCV camera backends: %s", exc)
        return False


def probe_speech_support(openai_client: Any) -> bool:
    """Return True when a client able to transcribe voice queries is configured."""
    audio = getattr(openai_client, "audio", None) if openai_client is not None else None
    return getattr(audio, "transcriptions", None) is not None


def probe_capabilities(openai_client: Any) -> Dict[str, bool]:
    """Return the capability gates shown to the browser."""
    return {
        "camera": probe_camera_support(),
        "speech": probe_speech_support(openai_client),
    }
