"""Tests for prompt template loading and rendering."""

from __future__ import annotations

import json

import pytest

from dailybrief.contracts.issue import BriefItem, create_empty_issue
from dailybrief.llm.prompts import (
    PromptLoader,
    cover_style,
    get_cover_prompt,
    get_narrative_prompt,
    get_structure_prompt,
    narrative_shape,
    render_taxonomy_schema,
)


def test_loader_caches_and_reloads():
    loader = PromptLoader()
    first = loader.load_prompt("narrative")

    assert loader.load_prompt("narrative") is first
    loader.reload()
    assert loader.load_prompt("narrative") == first


def test_loader_missing_prompt():
    with pytest.raises(FileNotFoundError):
        PromptLoader().load_prompt("does_not_exist")


def test_schema_lists_text_fed_sections_only():
    schema = json.loads(render_taxonomy_schema())

    assert "match_center" not in schema
    assert schema["cyprus_football"]["apollon_limassol"]["label"] == "Apollon Limassol"
    assert set(schema) == {
        "news",
        "tech",
        "cyprus_football",
        "greek_super_league",
        "euroleague",
        "european_football",
        "national_football",
    }


def test_structure_prompt_renders_literal_braces():
    prompt = get_structure_prompt(
        date="2026-10-19",
        news_text="News {with braces}",
        tech_text="Tech",
        sports_text="Sports",
    )

    assert '"date": "YYYY-MM-DD"' in prompt
    assert "News {with braces}" in prompt
    assert "2026-10-19" in prompt


def test_narrative_shape_only_subsections_with_items():
    issue = create_empty_issue("2026-10-19")
    issue.sections["news"]["greece"].items.append(BriefItem(headline="Athens"))

    assert narrative_shape(issue) == {"news": {"greece": {"narrative": "..."}}}


def test_narrative_prompt_excludes_covers():
    issue = create_empty_issue("2026-10-19")
    issue.raw_automation_input = "RAW INPUT MARKER"
    prompt = get_narrative_prompt(issue)

    assert "RAW INPUT MARKER" not in prompt
    assert '"covers"' not in prompt


@pytest.mark.parametrize(
    ("section", "fragment"),
    [
        ("news", "editorial"),
        ("tech", "tech illustration"),
        ("euroleague", "stadium-light"),
        ("match_center", "stadium-light"),
    ],
)
def test_cover_style_follows_section_bucket(section, fragment):
    assert fragment in cover_style(section)


def test_cover_prompt_keywords_default():
    prompt = get_cover_prompt(date="2026-10-19", section="tech", keywords=[])
    assert "daily brief" in prompt

    prompt = get_cover_prompt(date="2026-10-19", section="tech", keywords=["compiler", "python"])
    assert "compiler, python" in prompt
