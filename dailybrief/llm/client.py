"""
Generative text/JSON client on top of Vertex AI Gemini.

Contract used by the extraction orchestrator and the cover cache:
    generate_json(prompt) -> dict   (JSON object required)
    generate_text(prompt) -> str    (non-empty plain text)

Any failure (feature disabled, SDK error, timeout, empty body, bad JSON)
raises an LLMError subclass. There is exactly one attempt per call; the
caller owns the fallback.
"""

from __future__ import annotations

import concurrent.futures
import json
from collections.abc import Callable
from typing import Any, Protocol

from dailybrief import config
from dailybrief.llm.gemini import GeminiInitializationError, get_gemini_model
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import counter, time_block

logger = get_logger(__name__)


class LLMError(RuntimeError):
    """Base class for extraction-service failures."""


class LLMUnavailableError(LLMError):
    """The service is disabled or the model could not be initialized."""


class LLMTimeoutError(LLMError):
    """The call did not complete within the configured timeout."""


class LLMResponseError(LLMError):
    """The service answered, but with an empty or unparseable payload."""


class TextGenerator(Protocol):
    def generate_json(self, prompt: str) -> dict[str, Any]: ...

    def generate_text(self, prompt: str) -> str: ...


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence if the model added one."""
    text = text.strip()
    if "```json" in text:
        return text.split("```json")[1].split("```")[0].strip()
    if "```" in text:
        return text.split("```")[1].split("```")[0].strip()
    return text


class GeminiClient:
    """Single-attempt Gemini caller with a hard timeout."""

    def __init__(
        self,
        model_factory: Callable[[], Any] = get_gemini_model,
        *,
        enabled: bool | None = None,
        timeout_seconds: float | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self._model_factory = model_factory
        self.enabled = config.USE_LLM if enabled is None else enabled
        self.timeout_seconds = config.LLM_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self.temperature = config.GEMINI_TEMPERATURE if temperature is None else temperature
        self.max_tokens = config.GEMINI_MAX_TOKENS if max_tokens is None else max_tokens

    def _model(self) -> Any:
        if not self.enabled:
            raise LLMUnavailableError("Extraction service disabled (DAILYBRIEF_USE_LLM=false)")
        try:
            return self._model_factory()
        except GeminiInitializationError as e:
            raise LLMUnavailableError(str(e)) from e

    def _call(self, prompt: str, *, json_mode: bool) -> str:
        """
        Run one generate_content call in a worker thread.

        Side Effects:
            Makes HTTP request to Vertex AI API.
            Increments llm.calls / llm.errors counters.
        """
        model = self._model()
        generation_config: dict[str, Any] = {
            "temperature": self.temperature,
            "max_output_tokens": self.max_tokens,
        }
        if json_mode:
            generation_config["response_mime_type"] = "application/json"

        counter("llm.calls")
        # Not a context manager: leaving the block would wait for a hung call
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        try:
            with time_block("llm.generate"):
                future = executor.submit(model.generate_content, prompt, generation_config=generation_config)
                try:
                    response = future.result(timeout=self.timeout_seconds)
                except concurrent.futures.TimeoutError:
                    counter("llm.errors")
                    logger.error("Vertex AI call timed out after %ss", self.timeout_seconds)
                    raise LLMTimeoutError(f"Vertex AI call timed out after {self.timeout_seconds}s") from None
                except Exception as e:
                    counter("llm.errors")
                    logger.warning("Vertex AI call failed: %s", e)
                    raise LLMError(f"Vertex AI call failed: {e}") from e
        finally:
            executor.shutdown(wait=False)

        try:
            text = response.text or ""
        except (AttributeError, ValueError) as e:
            # .text raises ValueError when the candidate was blocked
            raise LLMResponseError(f"Vertex AI returned no text: {e}") from e

        text = text.strip()
        if not text:
            raise LLMResponseError("Vertex AI returned empty response")
        return text

    def generate_json(self, prompt: str) -> dict[str, Any]:
        text = strip_code_fences(self._call(prompt, json_mode=True))
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("LLM JSON parse error: %s", e)
            raise LLMResponseError(f"Invalid JSON from model: {e}") from e

        if not isinstance(payload, dict):
            raise LLMResponseError(f"Expected a JSON object, got {type(payload).__name__}")
        return payload

    def generate_text(self, prompt: str) -> str:
        return self._call(prompt, json_mode=False)
