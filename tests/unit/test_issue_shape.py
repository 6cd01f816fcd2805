"""
Tests for issue document models and field-by-field normalization.

normalize_issue() sees model output and stored JSON, so malformed fields
must be dropped one by one rather than failing the whole document.
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from dailybrief.contracts.issue import (
    BriefItem,
    DailyIssue,
    IngestPayload,
    IssueStatus,
    create_empty_issue,
)
from dailybrief.contracts.issue_shape import (
    attach_read_times,
    compute_status,
    estimate_read_time_minutes,
    normalize_issue,
    sanitize_sources,
)
from dailybrief.taxonomy import REGISTRY


def test_empty_issue_has_every_section_and_subsection():
    issue = create_empty_issue("2026-10-19")

    assert issue.status == IssueStatus.MISSING
    assert list(issue.sections) == list(REGISTRY.section_keys())
    for section in REGISTRY:
        assert set(issue.sections[section.key]) == set(section.subsection_keys())
        assert issue.covers[section.key].section == section.key
    assert issue.item_count() == 0


def test_issue_date_must_be_iso():
    with pytest.raises(ValidationError):
        DailyIssue(date="19/10/2026")


def test_ensure_subsection_creates_once():
    issue = create_empty_issue("2026-10-19")
    created = issue.ensure_subsection("tech", "ai_policy")
    again = issue.ensure_subsection("tech", "ai_policy", "Other label")

    assert created is again
    assert created.label == "Ai Policy"


def test_json_uses_camel_case_keys():
    issue = create_empty_issue("2026-10-19")
    issue.sections["news"]["world"].items.append(BriefItem(headline="H", key_facts=["fact"], watch_next=["w"]))

    doc = json.loads(issue.to_json())
    item = doc["sections"]["news"]["world"]["items"][0]
    assert item["keyFacts"] == ["fact"]
    assert item["watchNext"] == ["w"]
    assert "credibilityNotes" not in item


def test_blank_headline_replaced_with_default():
    assert BriefItem(headline="   ").headline == "Untitled update"


def test_normalize_non_dict_returns_empty_issue():
    issue = normalize_issue("not json", "2026-10-19")
    assert issue.date == "2026-10-19"
    assert issue.item_count() == 0


def test_normalize_drops_unknown_sections_and_keeps_unknown_subsections():
    raw = {
        "date": "2026-10-19",
        "status": "ready",
        "sections": {
            "weather": {"athens": {"items": [{"headline": "Sunny"}]}},
            "tech": {"ai_policy": {"items": [{"headline": "EU AI Act update"}]}},
        },
    }
    issue = normalize_issue(raw, "2026-10-19")

    assert "weather" not in issue.sections
    assert issue.sections["tech"]["ai_policy"].label == "Ai Policy"
    assert issue.sections["tech"]["ai_policy"].items[0].headline == "EU AI Act update"
    # Registry subsections are still present
    assert "programming" in issue.sections["tech"]


def test_normalize_item_fields_field_by_field():
    raw = {
        "sections": {
            "news": {
                "cyprus": {
                    "label": "Cyprus",
                    "narrative": "n",
                    "readTimeMinutes": 3,
                    "items": [
                        {
                            "headline": 42,
                            "keyFacts": ["ok", 7, None],
                            "analysis": ["not", "a", "string"],
                            "implications": "not a list",
                            "watch_next": ["snake case accepted"],
                            "credibilityNotes": "  ",
                            "sources": [
                                {"url": "https://example.com/a"},
                                {"title": "No URL"},
                                {"title": "Full", "url": "https://example.com/b", "publisher": "Ex"},
                            ],
                        },
                        "not an item",
                    ],
                }
            }
        }
    }
    issue = normalize_issue(raw, "2026-10-19")
    subsection = issue.sections["news"]["cyprus"]
    [item] = subsection.items

    assert subsection.narrative == "n"
    assert subsection.read_time_minutes == 3
    assert item.headline == "Untitled update"
    assert item.key_facts == ["ok"]
    assert item.analysis == ""
    assert item.implications == []
    assert item.watch_next == ["snake case accepted"]
    assert item.credibility_notes is None
    assert [s.title for s in item.sources] == ["https://example.com/a", "Full"]
    assert item.sources[1].publisher == "Ex"


def test_normalize_unknown_status_becomes_partial():
    issue = normalize_issue({"status": "published"}, "2026-10-19")
    assert issue.status == IssueStatus.PARTIAL


def test_normalize_invalid_date_keeps_fallback():
    issue = normalize_issue({"date": "yesterday"}, "2026-10-19")
    assert issue.date == "2026-10-19"


def test_normalize_round_trips_serialized_issue():
    issue = create_empty_issue("2026-10-19")
    issue.status = IssueStatus.READY
    issue.sections["news"]["greece"].items.append(BriefItem(headline="Athens metro extension opens"))
    issue.covers["news"].image_url = "https://img.example/news.png"
    issue.covers["news"].keywords = ["metro"]

    restored = normalize_issue(json.loads(issue.to_json()), "2000-01-01")

    assert restored.model_dump() == issue.model_dump()


def test_sanitize_sources_non_list():
    assert sanitize_sources({"url": "x"}) == []


def test_read_time_minimum_one_minute():
    issue = create_empty_issue("2026-10-19")
    attach_read_times(issue)
    assert all(sub.read_time_minutes == 1 for _, _, sub in issue.iter_subsections())


def test_read_time_rounds_up_words_per_minute():
    issue = create_empty_issue("2026-10-19")
    subsection = issue.sections["news"]["world"]
    # 181 words in one key fact plus the 1-word headline
    subsection.items.append(BriefItem(headline="Headline", key_facts=[" ".join(["word"] * 181)]))

    assert estimate_read_time_minutes(subsection) == 2


def test_compute_status():
    issue = create_empty_issue("2026-10-19")
    assert compute_status(issue) == IssueStatus.PARTIAL

    issue.sections["tech"]["cs"].items.append(BriefItem(headline="Paper"))
    assert compute_status(issue) == IssueStatus.READY


def test_ingest_payload_accepts_camel_and_snake_case():
    camel = IngestPayload.model_validate({"date": "2026-10-19", "newsText": "n", "techText": None})
    snake = IngestPayload(news_text="n")

    assert camel.texts_by_bucket() == {"news": "n", "tech": "", "sports": ""}
    assert snake.news_text == "n"
    assert IngestPayload(news_text="  ").is_empty()
    assert not camel.is_empty()
