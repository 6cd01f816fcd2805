"""Centralized configuration for the Daily Brief backend.

Typed constants for the extraction service, feed acquisition, sports data,
image generation and storage. Environment variable overrides use safe
defaults so the service starts without extra env configuration; every
external collaborator is optional and absent credentials mean "disabled".
"""

from __future__ import annotations

import os
from pathlib import Path

# --- App ---
APP_VERSION: str = "1.0.0"
ENV: str = os.getenv("DAILYBRIEF_ENV", "development")
PACKAGE_ROOT = Path(__file__).parent

# --- Extraction service (Vertex AI Gemini) ---
USE_LLM: bool = os.getenv("DAILYBRIEF_USE_LLM", "true").lower() == "true"
GOOGLE_CLOUD_PROJECT: str | None = os.getenv("GOOGLE_CLOUD_PROJECT")
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-001")
GEMINI_LOCATION: str = os.getenv("GEMINI_LOCATION", "us-central1")
GEMINI_TEMPERATURE: float = float(os.getenv("GEMINI_TEMPERATURE", "0.2"))
GEMINI_MAX_TOKENS: int = int(os.getenv("GEMINI_MAX_TOKENS", "8192"))
LLM_TIMEOUT_SECONDS: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

# --- Feed acquisition ---
AUTOMATION_FEED_URL: str | None = os.getenv("AUTOMATION_FEED_URL")
AUTOMATION_FEED_TOKEN: str | None = os.getenv("AUTOMATION_FEED_TOKEN")
AUTOMATION_FEED_DIR: Path = Path(os.getenv("AUTOMATION_FEED_DIR", "automation"))
FEED_TIMEOUT_SECONDS: float = float(os.getenv("FEED_TIMEOUT_SECONDS", "15"))
FEED_MAX_CHARS: int = int(os.getenv("FEED_MAX_CHARS", "20000"))

# --- Sports data ---
SPORTS_API_KEY: str = os.getenv("SPORTS_API_KEY", "").strip()
RAPIDAPI_KEY: str = os.getenv("RAPIDAPI_KEY", "").strip()
SPORTS_FOOTBALL_ENDPOINT: str = os.getenv(
    "SPORTS_FOOTBALL_ENDPOINT", "https://v3.football.api-sports.io/fixtures"
)
SPORTS_BASKETBALL_ENDPOINT: str = os.getenv(
    "SPORTS_BASKETBALL_ENDPOINT", "https://v1.basketball.api-sports.io/games"
)
SPORTS_TIMEZONE: str = os.getenv("SPORTS_TIMEZONE", "Europe/Athens")
SPORTS_API_TIMEOUT_SECONDS: float = max(1.0, float(os.getenv("SPORTS_API_TIMEOUT_SECONDS", "12")))

# --- Image generation ---
IMAGE_GEN_ENDPOINT: str | None = os.getenv("IMAGE_GEN_ENDPOINT")
IMAGE_GEN_API_KEY: str | None = os.getenv("IMAGE_GEN_API_KEY")
IMAGE_GEN_TIMEOUT_SECONDS: float = float(os.getenv("IMAGE_GEN_TIMEOUT_SECONDS", "30"))
COVER_SECTIONS: tuple[str, ...] = tuple(
    key.strip() for key in os.getenv("COVER_SECTIONS", "").split(",") if key.strip()
)

# --- Storage ---
DATABASE_URL: str | None = os.getenv("DATABASE_URL")
DB_PATH: Path = Path(os.getenv("DAILYBRIEF_DB_PATH", str(PACKAGE_ROOT / "data" / "daily_brief.db")))
DB_POOL_SIZE: int = int(os.getenv("DAILYBRIEF_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("DAILYBRIEF_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("DAILYBRIEF_DB_CONNECT_TIMEOUT", "10.0"))
DB_RETRY_MAX: int = int(os.getenv("DAILYBRIEF_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("DAILYBRIEF_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("DAILYBRIEF_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("DAILYBRIEF_DB_RETRY_JITTER", "0.1"))

# --- Archive ---
ARCHIVE_RETENTION_DAYS: int = 6

# --- API ---
API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))
API_RECENT_WINDOW_DEFAULT: int = 7
API_ARCHIVE_LIMIT_DEFAULT: int = 90
API_LIST_LIMIT_MAX: int = 365


def sports_api_configured() -> bool:
    """True when at least one sports credential is present."""
    return bool(SPORTS_API_KEY or RAPIDAPI_KEY)
