"""
Heuristic classifier - deterministic sentence-to-subsection routing.

Used when the generative structuring pass is unavailable. Every step is
local and pure, so this path cannot fail: each non-citation sentence of a
source text becomes exactly one item in exactly one subsection.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from urllib.parse import quote

from dailybrief.classification.rules import RULES, Route, Rule, match_rule
from dailybrief.contracts.issue import BriefItem, DailyIssue, SourceLink, Subsection
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import counter
from dailybrief.taxonomy import REGISTRY, TaxonomyRegistry

logger = get_logger(__name__)

HEADLINE_MAX_CHARS = 110
DEFAULT_HEADLINE = "Daily update"
MAX_SOURCES = 6
SEARCH_URL = "https://www.google.com/search?q="

NO_UPDATES_NARRATIVE = "No major updates were captured for this subsection in the latest automation feed."

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_CITATION = re.compile(r"^sources?:\s*(.*)$", re.IGNORECASE)
_SOURCE_SPLIT = re.compile(r",|\band\b", re.IGNORECASE)
_LABEL_PREFIX = re.compile(r"^\w+:\s*")
_HEDGING = re.compile(r"mixed|conflict|unclear|disagree", re.IGNORECASE)


def split_sentences(text: str) -> list[str]:
    """Whitespace-normalize, then split after '.', '!' or '?'."""
    normalized = re.sub(r"\s+", " ", text or "").strip()
    if not normalized:
        return []
    return [chunk.strip() for chunk in _SENTENCE_BOUNDARY.split(normalized) if chunk.strip()]


def is_citation(sentence: str) -> bool:
    return _CITATION.match(sentence) is not None


def extract_source_names(sentences: list[str]) -> list[str]:
    """Collect cited names from every "Sources: a, b and c" sentence."""
    names: list[str] = []
    for sentence in sentences:
        match = _CITATION.match(sentence)
        if not match:
            continue
        for part in _SOURCE_SPLIT.split(match.group(1)):
            name = re.sub(r"[.;]$", "", part.strip()).strip()
            if name and name not in names:
                names.append(name)
    return names[:MAX_SOURCES]


def to_source_links(names: list[str]) -> list[SourceLink]:
    return [SourceLink(title=name, publisher=name, url=f"{SEARCH_URL}{quote(name, safe='')}") for name in names]


def sentence_to_headline(sentence: str) -> str:
    clean = _LABEL_PREFIX.sub("", sentence, count=1).strip()
    if len(clean) > HEADLINE_MAX_CHARS:
        clean = clean[: HEADLINE_MAX_CHARS - 3].rstrip() + "..."
    return clean or DEFAULT_HEADLINE


def build_item(sentence: str, subsection_label: str, sources: list[SourceLink]) -> BriefItem:
    """Turn one sentence into a templated item."""
    return BriefItem(
        headline=sentence_to_headline(sentence),
        key_facts=[sentence],
        analysis=(
            f"{subsection_label} developments suggest ongoing momentum with short-term operational impact to monitor."
        ),
        implications=[
            f"Teams exposed to {subsection_label.lower()} developments should review near-term dependencies.",
            "Decision windows are tightening as updates become more frequent.",
        ],
        watch_next=[
            "Official follow-up statements or implementation timelines.",
            "Any contradictory reporting from major sources.",
        ],
        credibility_notes=(
            "Signals appear mixed across sources; treat early details as provisional."
            if _HEDGING.search(sentence)
            else None
        ),
        sources=[source.model_copy() for source in sources],
    )


def narrative_for(subsection: Subsection) -> str:
    if not subsection.items:
        return NO_UPDATES_NARRATIVE

    top = "; ".join(item.headline for item in subsection.items[:2])
    return (
        f"What happened: {top}. Why it matters: this can change near-term priorities and execution timing. "
        "Watch: confirmation from primary sources and concrete next steps."
    )


class HeuristicClassifier:
    """
    Rule-based router from raw bucket text to taxonomy subsections.

    Sentences that match no rule go to the bucket's default route: the
    default subsection of the first registry section fed by that bucket.
    """

    def __init__(self, registry: TaxonomyRegistry = REGISTRY, rules: tuple[Rule, ...] = RULES) -> None:
        self.registry = registry
        self.rules = rules

    def default_route(self, bucket: str) -> Route:
        sections = self.registry.sections_for_bucket(bucket)
        if not sections:
            raise ValueError(f"No section is fed by bucket {bucket!r}")
        return Route(sections[0].key, sections[0].default_subsection)

    def route(self, sentence: str, bucket: str) -> Route:
        rule = match_rule(sentence, bucket, self.rules)
        if rule is None or rule.route.section not in self.registry:
            return self.default_route(bucket)
        return rule.route

    def classify(self, text: str, bucket: str) -> list[tuple[Route, BriefItem]]:
        """
        Classify every non-citation sentence of ``text``.

        Returns (route, item) pairs in sentence order. Citation sentences
        feed the shared source list attached to every item.
        """
        sentences = split_sentences(text)
        sources = to_source_links(extract_source_names(sentences))

        results: list[tuple[Route, BriefItem]] = []
        for sentence in sentences:
            if is_citation(sentence):
                continue
            route = self.route(sentence, bucket)
            label = self.registry.subsection_label(route.section, route.subsection)
            results.append((route, build_item(sentence, label, sources)))
        return results

    def text_fed_sections(self) -> list[str]:
        return [section.key for section in self.registry if section.source_bucket is not None]

    def fill_narratives(self, issue: DailyIssue, only_missing: bool = False) -> DailyIssue:
        """
        Write the templated narrative for every text-fed subsection.

        With ``only_missing`` set, subsections that already carry a narrative
        are left alone.
        """
        for section_key in self.text_fed_sections():
            for subsection in issue.sections.get(section_key, {}).values():
                if only_missing and subsection.narrative:
                    continue
                subsection.narrative = narrative_for(subsection)
        return issue

    def apply(self, issue: DailyIssue, texts_by_bucket: Mapping[str, str]) -> DailyIssue:
        """
        Populate ``issue`` from raw bucket texts and synthesize narratives.

        Side Effects:
            - Appends items to issue subsections in place
            - Increments classification.heuristic.items counter
        """
        total = 0
        for bucket, text in texts_by_bucket.items():
            if not text or not text.strip() or not self.registry.sections_for_bucket(bucket):
                continue
            for route, item in self.classify(text, bucket):
                label = self.registry.subsection_label(route.section, route.subsection)
                issue.ensure_subsection(route.section, route.subsection, label).items.append(item)
                total += 1

        counter("classification.heuristic.items", total)
        logger.info("Heuristic classifier produced %d items", total)
        return self.fill_narratives(issue)
