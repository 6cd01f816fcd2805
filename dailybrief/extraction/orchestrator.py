"""
Extraction orchestrator - raw bucket texts to a complete DailyIssue.

Pipeline (each arrow is a fall-through, never an exception):

    structuring pass (LLM) ──ok──> narrative pass (LLM) ──err──> templated narratives
            │err
            └──> heuristic classifier (items + templated narratives)

build_issue() never raises for extraction-service failures. The only
degenerate input is "every text empty", which yields a MISSING issue.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dailybrief.classification.heuristic import HeuristicClassifier
from dailybrief.contracts.issue import SOURCE_BUCKETS, DailyIssue, IssueStatus, create_empty_issue
from dailybrief.contracts.issue_shape import attach_read_times, compute_status, normalize_issue
from dailybrief.extraction.result import Err, Ok, Result, attempt, fall_through
from dailybrief.llm.client import LLMResponseError, LLMUnavailableError, TextGenerator
from dailybrief.llm.prompts import get_narrative_prompt, get_structure_prompt
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import counter, log_event, time_block
from dailybrief.taxonomy import REGISTRY, TaxonomyRegistry

logger = get_logger(__name__)


def clean_texts(texts_by_bucket: Mapping[str, str | None]) -> dict[str, str]:
    """Known buckets only; whitespace-only text counts as absent."""
    cleaned: dict[str, str] = {}
    for bucket in SOURCE_BUCKETS:
        text = texts_by_bucket.get(bucket) or ""
        cleaned[bucket] = text if text.strip() else ""
    return cleaned


def provenance(texts: Mapping[str, str]) -> str:
    return "\n\n".join(text for text in texts.values() if text)


class ExtractionOrchestrator:
    """
    Turns raw text into a full issue document.

    ``llm`` may be None (extraction service not configured); the structuring
    pass then fails immediately and the heuristic path runs.
    """

    def __init__(
        self,
        llm: TextGenerator | None = None,
        classifier: HeuristicClassifier | None = None,
        registry: TaxonomyRegistry = REGISTRY,
    ) -> None:
        self.llm = llm
        self.registry = registry
        self.classifier = classifier or HeuristicClassifier(registry)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _require_llm(self) -> TextGenerator:
        if self.llm is None:
            raise LLMUnavailableError("No extraction service configured")
        return self.llm

    def _structure(self, issue_date: str, texts: Mapping[str, str]) -> DailyIssue:
        raw = self._require_llm().generate_json(
            get_structure_prompt(
                date=issue_date,
                news_text=texts["news"],
                tech_text=texts["tech"],
                sports_text=texts["sports"],
                registry=self.registry,
            )
        )
        issue = normalize_issue(raw, issue_date, self.registry)
        # The requested date is authoritative, whatever the model echoed back
        issue.date = issue_date
        if issue.item_count() == 0:
            raise LLMResponseError("Structured response contained no items")
        return issue

    def _merge_narratives(self, issue: DailyIssue, raw: Any) -> int:
        merged = 0
        if not isinstance(raw, dict):
            return merged
        for section_key, section_raw in raw.items():
            section = issue.sections.get(section_key)
            if section is None or not isinstance(section_raw, dict):
                continue
            for subsection_key, value in section_raw.items():
                subsection = section.get(subsection_key)
                narrative = value.get("narrative") if isinstance(value, dict) else None
                if subsection is not None and isinstance(narrative, str) and narrative.strip():
                    subsection.narrative = narrative.strip()
                    merged += 1
        return merged

    def _narrate(self, issue: DailyIssue) -> DailyIssue:
        raw = self._require_llm().generate_json(get_narrative_prompt(issue))
        merged = self._merge_narratives(issue, raw)
        logger.debug("Merged %d generated narratives", merged)
        return self.classifier.fill_narratives(issue, only_missing=True)

    def _templated_narratives(self, issue: DailyIssue) -> Result[DailyIssue]:
        return Ok(self.classifier.fill_narratives(issue, only_missing=True))

    def _heuristic(self, issue_date: str, texts: Mapping[str, str]) -> Result[DailyIssue]:
        issue = create_empty_issue(issue_date, self.registry)
        return Ok(self.classifier.apply(issue, texts))

    def _enrich(self, issue: DailyIssue) -> DailyIssue:
        return fall_through(
            lambda: attempt(self._narrate, issue, stage="narrative"),
            lambda: self._templated_narratives(issue),
            on_error=self._on_narrative_error,
        ).unwrap()

    def _on_structure_error(self, err: Err) -> None:
        counter("extraction.structure.fallback")
        logger.warning("Structuring pass failed, using heuristic classifier: %s", err.error)

    def _on_narrative_error(self, err: Err) -> None:
        counter("extraction.narrative.fallback")
        logger.warning("Narrative pass failed, using templated narratives: %s", err.error)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_issue(self, issue_date: str, texts_by_bucket: Mapping[str, str | None]) -> DailyIssue:
        """
        Build the issue for ``issue_date`` from raw bucket texts.

        Side Effects:
            - Calls the extraction service (at most twice)
            - Increments extraction.* counters on fallback paths
        """
        texts = clean_texts(texts_by_bucket)
        if not any(texts.values()):
            logger.info("No source text for %s, returning empty issue", issue_date)
            return create_empty_issue(issue_date, self.registry)

        with time_block("extraction.build_issue"):
            structured = fall_through(
                lambda: attempt(self._structure, issue_date, texts, stage="structure").map(self._enrich),
                lambda: self._heuristic(issue_date, texts),
                on_error=self._on_structure_error,
            )
            issue = structured.unwrap()

        issue.status = compute_status(issue)
        issue.raw_automation_input = provenance(texts)
        attach_read_times(issue)

        log_event(
            "extraction.issue_built",
            date=issue_date,
            status=IssueStatus(issue.status).value,
            items=issue.item_count(),
        )
        return issue
