"""Generative-model collaborator: Gemini client, errors and prompts."""

from __future__ import annotations

from dailybrief.llm.client import (
    GeminiClient,
    LLMError,
    LLMResponseError,
    LLMTimeoutError,
    LLMUnavailableError,
    TextGenerator,
)

__all__ = [
    "GeminiClient",
    "LLMError",
    "LLMResponseError",
    "LLMTimeoutError",
    "LLMUnavailableError",
    "TextGenerator",
]
