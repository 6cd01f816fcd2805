"""
Shaping of untrusted issue documents into valid DailyIssue objects.

Structured output from the extraction service, and documents read back from
storage, go through normalize_issue(): every field is checked on its own,
malformed values are dropped instead of failing the whole document, and the
result always carries every registry section.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any

from dailybrief.contracts.issue import (
    DEFAULT_HEADLINE,
    BriefItem,
    CoverImage,
    DailyIssue,
    IssueStatus,
    SourceLink,
    Subsection,
    create_empty_issue,
)
from dailybrief.taxonomy import REGISTRY, TaxonomyRegistry, label_from_key

WORDS_PER_MINUTE = 180


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def _pick(row: dict[str, Any], *keys: str) -> Any:
    """Return the first present key; accepts camelCase and snake_case spellings."""
    for key in keys:
        if key in row:
            return row[key]
    return None


def sanitize_sources(value: Any) -> list[SourceLink]:
    if not isinstance(value, list):
        return []

    sources: list[SourceLink] = []
    for row in value:
        if not isinstance(row, dict) or not isinstance(row.get("url"), str):
            continue
        title = row.get("title")
        publisher = row.get("publisher")
        sources.append(
            SourceLink(
                title=title if isinstance(title, str) else row["url"],
                url=row["url"],
                publisher=publisher if isinstance(publisher, str) else None,
            )
        )
    return sources


def sanitize_items(value: Any) -> list[BriefItem]:
    if not isinstance(value, list):
        return []

    items: list[BriefItem] = []
    for row in value:
        if not isinstance(row, dict):
            continue
        headline = row.get("headline")
        analysis = row.get("analysis")
        notes = _pick(row, "credibilityNotes", "credibility_notes")
        items.append(
            BriefItem(
                headline=headline if isinstance(headline, str) else DEFAULT_HEADLINE,
                key_facts=_string_list(_pick(row, "keyFacts", "key_facts")),
                analysis=analysis if isinstance(analysis, str) else "",
                implications=_string_list(row.get("implications")),
                watch_next=_string_list(_pick(row, "watchNext", "watch_next")),
                credibility_notes=notes if isinstance(notes, str) and notes.strip() else None,
                sources=sanitize_sources(row.get("sources")),
            )
        )
    return items


def _inject_subsection(target: Subsection, raw: Any) -> None:
    if not isinstance(raw, dict):
        return

    label = raw.get("label")
    if isinstance(label, str) and label.strip():
        target.label = label
    target.items = sanitize_items(raw.get("items"))

    narrative = raw.get("narrative")
    if isinstance(narrative, str):
        target.narrative = narrative

    read_time = _pick(raw, "readTimeMinutes", "read_time_minutes")
    if isinstance(read_time, int) and not isinstance(read_time, bool):
        target.read_time_minutes = read_time


def normalize_status(value: Any) -> IssueStatus:
    try:
        return IssueStatus(value)
    except ValueError:
        return IssueStatus.PARTIAL


def _normalize_cover(section_key: str, raw: Any) -> CoverImage:
    cover = CoverImage(section=section_key)
    if not isinstance(raw, dict):
        return cover

    image_url = _pick(raw, "imageUrl", "image_url")
    if isinstance(image_url, str):
        cover.image_url = image_url
    if isinstance(raw.get("prompt"), str):
        cover.prompt = raw["prompt"]
    cover.keywords = _string_list(raw.get("keywords"))
    return cover


def normalize_issue(
    raw: Any,
    date_fallback: str,
    registry: TaxonomyRegistry = REGISTRY,
) -> DailyIssue:
    """
    Coerce an arbitrary JSON value into a DailyIssue.

    Unknown section keys are dropped. Unknown subsection keys under a known
    section are kept, labelled from their key. Missing arrays become empty.
    """
    issue = create_empty_issue(date_fallback, registry)
    if not isinstance(raw, dict):
        return issue

    raw_date = raw.get("date")
    if isinstance(raw_date, str):
        try:
            issue.date = date.fromisoformat(raw_date).isoformat()
        except ValueError:
            pass

    issue.status = normalize_status(raw.get("status"))

    for attr, keys in (
        ("raw_automation_input", ("rawAutomationInput", "raw_automation_input")),
        ("created_at", ("createdAt", "created_at")),
        ("updated_at", ("updatedAt", "updated_at")),
    ):
        value = _pick(raw, *keys)
        if isinstance(value, str):
            setattr(issue, attr, value)

    sections_raw = raw.get("sections") if isinstance(raw.get("sections"), dict) else {}
    for section in registry:
        section_raw = sections_raw.get(section.key)
        if not isinstance(section_raw, dict):
            continue

        for subsection_key, subsection_raw in section_raw.items():
            if not isinstance(subsection_key, str) or not subsection_key:
                continue
            target = issue.ensure_subsection(section.key, subsection_key, label_from_key(subsection_key))
            _inject_subsection(target, subsection_raw)

    covers_raw = raw.get("covers") if isinstance(raw.get("covers"), dict) else {}
    for section in registry:
        issue.covers[section.key] = _normalize_cover(section.key, covers_raw.get(section.key))

    return issue


def estimate_read_time_minutes(subsection: Subsection) -> int:
    words = sum(len(text.split()) for item in subsection.items for text in item.text_fields())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def attach_read_times(issue: DailyIssue) -> DailyIssue:
    for _, _, subsection in issue.iter_subsections():
        subsection.read_time_minutes = estimate_read_time_minutes(subsection)
    return issue


def compute_status(issue: DailyIssue) -> IssueStatus:
    """READY once any item exists, PARTIAL otherwise."""
    return IssueStatus.READY if issue.item_count() > 0 else IssueStatus.PARTIAL
