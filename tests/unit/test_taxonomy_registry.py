"""Tests for the fixed section/subsection taxonomy."""

from __future__ import annotations

import pytest

from dailybrief.taxonomy import REGISTRY, UnknownSection, label_from_key
from dailybrief.taxonomy.registry import SectionDefinition, TaxonomyRegistry, _sub


def test_registry_has_eight_sections_in_order():
    assert REGISTRY.section_keys() == (
        "news",
        "tech",
        "cyprus_football",
        "greek_super_league",
        "euroleague",
        "european_football",
        "national_football",
        "match_center",
    )


def test_every_default_subsection_is_defined():
    for section in REGISTRY:
        assert section.default_subsection in section.subsection_keys()


def test_lookup_returns_section_metadata():
    news = REGISTRY.get("news")

    assert news.title_key == "news"
    assert news.fallback_cover == "/news.png"
    assert news.default_subsection == "world"
    assert news.subsection_keys() == ("cyprus", "greece", "world")


def test_unknown_section_raises():
    with pytest.raises(UnknownSection) as exc_info:
        REGISTRY.get("weather")

    assert exc_info.value.key == "weather"
    assert "weather" in str(exc_info.value)


def test_subsection_labels_in_both_languages():
    assert REGISTRY.subsection_label("cyprus_football", "apollon_limassol") == "Apollon Limassol"
    assert REGISTRY.subsection_label("cyprus_football", "apollon_limassol", "el") == "Απόλλων Λεμεσού"


def test_unknown_subsection_label_is_derived_from_key():
    assert REGISTRY.subsection_label("tech", "ai_policy") == "Ai Policy"
    assert label_from_key("ai_policy") == "Ai Policy"


def test_sections_for_bucket():
    assert [s.key for s in REGISTRY.sections_for_bucket("news")] == ["news"]
    assert [s.key for s in REGISTRY.sections_for_bucket("sports")][0] == "cyprus_football"
    assert REGISTRY.get("match_center").source_bucket is None


def test_label_translations_cover_every_subsection():
    translations = REGISTRY.label_translations("el")
    assert translations["Worldwide"] == "Κόσμος"
    assert len(translations) <= sum(len(s.subsections) for s in REGISTRY)


def test_duplicate_section_keys_rejected():
    section = SectionDefinition(
        key="news",
        title_key="news",
        fallback_cover="/news.png",
        default_subsection="world",
        subsections=(_sub("world", "Worldwide", "Κόσμος"),),
    )
    with pytest.raises(ValueError, match="Duplicate"):
        TaxonomyRegistry((section, section))


def test_missing_default_subsection_rejected():
    section = SectionDefinition(
        key="news",
        title_key="news",
        fallback_cover="/news.png",
        default_subsection="nowhere",
        subsections=(_sub("world", "Worldwide", "Κόσμος"),),
    )
    with pytest.raises(ValueError, match="default subsection"):
        TaxonomyRegistry((section,))
