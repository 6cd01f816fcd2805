"""Per-(date, section) cover cache on top of the issue repository."""

from __future__ import annotations

import re
from collections import Counter
from typing import Protocol

from dailybrief.contracts.issue import CoverImage, DailyIssue
from dailybrief.covers.image import CoverGenerator
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import counter
from dailybrief.taxonomy import REGISTRY, TaxonomyRegistry

logger = get_logger(__name__)

KEYWORD_ITEM_LIMIT = 6
KEYWORD_COUNT = 3
STOP_WORDS = frozenset({"about", "after", "their", "there", "which", "while", "under", "would", "could"})


class CoverStore(Protocol):
    def get_cover(self, issue_date: str, section: str) -> CoverImage | None: ...

    def upsert_cover(self, issue_date: str, cover: CoverImage) -> None: ...


def extract_top_keywords(issue: DailyIssue, section: str) -> list[str]:
    """Most frequent long tokens across the first few items of a section."""
    items = issue.items_for_section(section)[:KEYWORD_ITEM_LIMIT]
    text = " ".join(part for item in items for part in (item.headline, *item.key_facts)).lower()
    tokens = re.sub(r"[^a-z0-9\s]", " ", text).split()
    counts = Counter(token for token in tokens if len(token) > 4 and token not in STOP_WORDS)
    return [word for word, _ in counts.most_common(KEYWORD_COUNT)]


class CoverCache:
    """
    Check-then-write cover cache.

    A stored cover is returned untouched; generation happens only on a miss
    and the result is upserted before being returned.
    """

    def __init__(
        self,
        store: CoverStore,
        generator: CoverGenerator | None = None,
        registry: TaxonomyRegistry = REGISTRY,
    ) -> None:
        self.store = store
        self.generator = generator or CoverGenerator()
        self.registry = registry

    def get_or_create(self, issue: DailyIssue, section: str) -> CoverImage:
        self.registry.get(section)

        existing = self.store.get_cover(issue.date, section)
        if existing is not None:
            counter("covers.cache.hit")
            return existing

        counter("covers.cache.miss")
        keywords = extract_top_keywords(issue, section)
        generated = self.generator.create(issue.date, section, keywords)
        cover = CoverImage(section=section, image_url=generated.image_url, prompt=generated.prompt, keywords=keywords)
        self.store.upsert_cover(issue.date, cover)
        logger.info("Generated cover for %s/%s (keywords=%s)", issue.date, section, keywords)
        return cover

    def attach(self, issue: DailyIssue, sections: tuple[str, ...] | None = None) -> DailyIssue:
        """Fill ``issue.covers`` for the given sections (default: every registry section)."""
        for section in sections or self.registry.section_keys():
            issue.covers[section] = self.get_or_create(issue, section)
        return issue
