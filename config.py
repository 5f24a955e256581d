"""
Central configuration — reads from .env file.

Values are loaded once at import time and never changed afterwards.
Core components (providers, search backends, the camera) take their keys and
settings as constructor arguments; only main.py / bot.py read them from here.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── Telegram ──────────────────────────────────────────────────────────────────
TELEGRAM_BOT_TOKEN: str | None = os.getenv("TELEGRAM_BOT_TOKEN")

# ── Vision (Google Gemini) ────────────────────────────────────────────────────
# Free key at https://aistudio.google.com
GOOGLE_API_KEY: str | None = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL: str          = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

# ── Video search (YouTube Data API v3) ────────────────────────────────────────
# Create a key in Google Cloud Console → APIs & Services → YouTube Data API v3
YOUTUBE_API_KEY: str | None = os.getenv("YOUTUBE_API_KEY")
MAX_VIDEOS: int             = int(os.getenv("MAX_VIDEOS", "5"))

# ── Camera (host webcam, used by /camera and /snap) ───────────────────────────
# OpenCV device index of the rear-facing / item-facing camera
CAMERA_DEVICE: int       = int(os.getenv("CAMERA_DEVICE", "0"))
CAMERA_JPEG_QUALITY: int = int(os.getenv("CAMERA_JPEG_QUALITY", "95"))

# ── Logging ───────────────────────────────────────────────────────────────────
DATA_DIR: str  = os.getenv("DATA_DIR", "data")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


def require(name: str) -> str:
    """Return the named setting or fail with a readable start-up error."""
    value = globals().get(name)
    if not value:
        raise RuntimeError(
            f"{name} is not set.\n"
            f"Add it to your .env file or export it before starting the bot."
        )
    return value
