"""Environment-driven settings for the learning assistant.

Values are read once at import time. A `.env` file in the working directory
is honoured so local runs do not need exported variables.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Models
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-5")
ENGAGEMENT_MODEL = os.getenv("ENGAGEMENT_MODEL", "gpt-5-mini")
CHART_MODEL = os.getenv("CHART_MODEL", "gpt-image-1")
TRANSCRIBE_MODEL = os.getenv("TRANSCRIBE_MODEL", "gpt-4o-transcribe")

# Camera
CAMERA_INDEX = int(os.getenv("CAMERA_INDEX", "0"))
CAMERA_WIDTH = int(os.getenv("CAMERA_WIDTH", "320"))
CAMERA_HEIGHT = int(os.getenv("CAMERA_HEIGHT", "240"))

# Monitor loop
ANALYSIS_INTERVAL_SECONDS = float(os.getenv("ANALYSIS_INTERVAL_SECONDS", "10"))
MAX_DIMENSION_CHECK_ATTEMPTS = int(os.getenv("MAX_DIMENSION_CHECK_ATTEMPTS", "5"))
DIMENSION_CHECK_DELAY_SECONDS = float(os.getenv("DIMENSION_CHECK_DELAY_SECONDS", "0.3"))
MONITOR_ALLOW_INSECURE = _env_bool("MONITOR_ALLOW_INSECURE")

# Query input
MAX_IMAGE_DATA_URI_LENGTH = int(os.getenv("MAX_IMAGE_DATA_URI_LENGTH", str(10 * 1024 * 1024)))
