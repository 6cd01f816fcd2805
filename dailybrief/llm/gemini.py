"""
Gemini model manager - one shared Vertex AI model per process.

The structuring pass, the narrative pass and the cover-prompt builder all go
through GeminiClient, which asks this module for the model lazily so that a
process with the extraction service disabled never touches the SDK.
"""

from __future__ import annotations

from functools import lru_cache

from dailybrief.config import GEMINI_LOCATION, GEMINI_MODEL, GOOGLE_CLOUD_PROJECT
from dailybrief.observability.logging import get_logger

logger = get_logger(__name__)


class GeminiInitializationError(RuntimeError):
    """Raised when the Gemini model cannot be initialized."""


@lru_cache(maxsize=1)
def get_gemini_model():
    """
    Get or create the shared Gemini model instance.

    Uses @lru_cache for a thread-safe singleton.

    Returns:
        GenerativeModel: Shared Gemini model

    Raises:
        GeminiInitializationError: If the project is not configured or the SDK
            rejects the configuration
    """
    if not GOOGLE_CLOUD_PROJECT:
        raise GeminiInitializationError("GOOGLE_CLOUD_PROJECT not set")

    try:
        import vertexai
        from vertexai.generative_models import GenerativeModel

        vertexai.init(project=GOOGLE_CLOUD_PROJECT, location=GEMINI_LOCATION)
        model = GenerativeModel(GEMINI_MODEL)
    except Exception as e:
        logger.error("Failed to initialize Gemini model: %s", e)
        raise GeminiInitializationError(f"Failed to initialize Gemini: {e}") from e

    logger.info(
        "Initialized Gemini model (Vertex AI): project=%s, location=%s, model=%s",
        GOOGLE_CLOUD_PROJECT,
        GEMINI_LOCATION,
        GEMINI_MODEL,
    )
    return model


def clear_model_cache() -> None:
    """
    Clear the cached model instance.

    Useful for testing or when reconfiguration is needed.
    """
    get_gemini_model.cache_clear()
    logger.info("Cleared Gemini model cache")
