"""Extraction pipeline: generative structuring with deterministic fallback."""

from __future__ import annotations

from dailybrief.extraction.orchestrator import ExtractionOrchestrator, clean_texts
from dailybrief.extraction.result import Err, Ok, Result, attempt, fall_through

__all__ = [
    "Err",
    "ExtractionOrchestrator",
    "Ok",
    "Result",
    "attempt",
    "clean_texts",
    "fall_through",
]
