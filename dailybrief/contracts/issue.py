"""
Daily issue domain models.

The DailyIssue is the aggregate root: subsections, items and sources are
owned by it and serialize with it as one JSON document. Cover images and
ingest runs are separate records keyed by date (and section).

JSON uses camelCase keys (``keyFacts``, ``watchNext``) so stored documents
stay readable by the presentation layer; Python code uses snake_case.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, date, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from dailybrief.taxonomy import REGISTRY, TaxonomyRegistry, label_from_key

DEFAULT_HEADLINE = "Untitled update"

SOURCE_BUCKETS: tuple[str, ...] = ("news", "tech", "sports")


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def today_iso() -> str:
    return utc_now().date().isoformat()


class IssueStatus(str, Enum):
    """Completeness of a daily issue."""

    READY = "ready"  # At least one item somewhere
    PARTIAL = "partial"  # Text supplied but nothing extracted
    MISSING = "missing"  # No input at all


class _DocumentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class SourceLink(_DocumentModel):
    title: str
    url: str
    publisher: str | None = None


class BriefItem(_DocumentModel):
    """One structured unit of reporting."""

    headline: str = DEFAULT_HEADLINE
    key_facts: list[str] = Field(default_factory=list)
    analysis: str = ""
    implications: list[str] = Field(default_factory=list)
    watch_next: list[str] = Field(default_factory=list)
    credibility_notes: str | None = None
    sources: list[SourceLink] = Field(default_factory=list)

    @field_validator("headline", mode="before")
    @classmethod
    def headline_not_empty(cls, v: object) -> str:
        if not isinstance(v, str) or not v.strip():
            return DEFAULT_HEADLINE
        return v.strip()

    def text_fields(self) -> list[str]:
        fields = [self.headline, *self.key_facts, self.analysis, *self.implications, *self.watch_next]
        if self.credibility_notes:
            fields.append(self.credibility_notes)
        return fields


class Subsection(_DocumentModel):
    label: str
    items: list[BriefItem] = Field(default_factory=list)
    narrative: str | None = None
    read_time_minutes: int | None = None


class CoverImage(_DocumentModel):
    section: str
    image_url: str = ""
    prompt: str = ""
    keywords: list[str] = Field(default_factory=list)


class DailyIssue(_DocumentModel):
    """
    The complete structured output for one calendar date.

    ``sections`` maps section key -> subsection key -> Subsection. Every
    registry section is present; subsections beyond the registry may be
    added through ensure_subsection() and are kept once created.
    """

    date: str
    status: IssueStatus = IssueStatus.MISSING
    sections: dict[str, dict[str, Subsection]] = Field(default_factory=dict)
    covers: dict[str, CoverImage] = Field(default_factory=dict)
    raw_automation_input: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("date")
    @classmethod
    def date_is_iso(cls, v: str) -> str:
        return date.fromisoformat(v).isoformat()

    def ensure_subsection(self, section_key: str, subsection_key: str, label: str | None = None) -> Subsection:
        """Return the subsection, creating it (and its section map) if absent."""
        section = self.sections.setdefault(section_key, {})
        subsection = section.get(subsection_key)
        if subsection is None:
            subsection = Subsection(label=label or label_from_key(subsection_key))
            section[subsection_key] = subsection
        return subsection

    def iter_subsections(self) -> Iterator[tuple[str, str, Subsection]]:
        for section_key, section in self.sections.items():
            for subsection_key, subsection in section.items():
                yield section_key, subsection_key, subsection

    def items_for_section(self, section_key: str) -> list[BriefItem]:
        return [item for sub in self.sections.get(section_key, {}).values() for item in sub.items]

    def item_count(self) -> int:
        return sum(len(sub.items) for _, _, sub in self.iter_subsections())

    def first_headline(self) -> str | None:
        for _, _, subsection in self.iter_subsections():
            if subsection.items:
                return subsection.items[0].headline
        return None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class IngestPayload(_DocumentModel):
    """Raw input for one ingestion: one text blob per source bucket."""

    date: str | None = None
    news_text: str = ""
    tech_text: str = ""
    sports_text: str = ""

    @field_validator("news_text", "tech_text", "sports_text", mode="before")
    @classmethod
    def none_as_empty(cls, v: object) -> object:
        return "" if v is None else v

    def texts_by_bucket(self) -> dict[str, str]:
        return {"news": self.news_text, "tech": self.tech_text, "sports": self.sports_text}

    def is_empty(self) -> bool:
        return not any(text.strip() for text in self.texts_by_bucket().values())


class IngestRun(_DocumentModel):
    """Append-only audit entry for one ingestion attempt."""

    issue_date: str
    status: Literal["success", "error"]
    error_message: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


def create_empty_issue(issue_date: str, registry: TaxonomyRegistry = REGISTRY) -> DailyIssue:
    """Build an issue with every registry section and subsection present and empty."""
    issue = DailyIssue(date=issue_date, status=IssueStatus.MISSING)
    for section in registry:
        for sub in section.subsections:
            issue.ensure_subsection(section.key, sub.key, sub.label)
        issue.covers[section.key] = CoverImage(section=section.key)
    return issue
