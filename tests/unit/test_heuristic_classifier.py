"""
Tests for the rule-based fallback classifier.

Covers sentence splitting, citation handling, rule precedence for the
sports bucket, and the guarantee that every non-citation sentence lands in
exactly one subsection.
"""

from __future__ import annotations

import pytest

from dailybrief.classification.heuristic import (
    DEFAULT_HEADLINE,
    MAX_SOURCES,
    NO_UPDATES_NARRATIVE,
    HeuristicClassifier,
    build_item,
    extract_source_names,
    is_citation,
    narrative_for,
    sentence_to_headline,
    split_sentences,
)
from dailybrief.classification.rules import Route, match_rule
from dailybrief.contracts.issue import Subsection, create_empty_issue
from dailybrief.observability.telemetry import get_counter


@pytest.fixture
def classifier():
    return HeuristicClassifier()


# ============================================================================
# Sentence handling
# ============================================================================


def test_split_sentences_normalizes_whitespace():
    text = "First  one.\n\nSecond one!   Third one?  "
    assert split_sentences(text) == ["First one.", "Second one!", "Third one?"]


def test_split_sentences_empty():
    assert split_sentences("") == []
    assert split_sentences("   \n ") == []


def test_citation_detection():
    assert is_citation("Sources: Reuters, AP.")
    assert is_citation("source: BBC")
    assert not is_citation("The sources say otherwise.")


def test_extract_source_names_splits_commas_and_and():
    names = extract_source_names(["Sources: Reuters, AP and Kathimerini."])
    assert names == ["Reuters", "AP", "Kathimerini"]


def test_extract_source_names_dedupes_and_caps():
    sentences = ["Sources: A, B, C, D.", "Sources: C, E, F, G, H."]
    names = extract_source_names(sentences)
    assert names == ["A", "B", "C", "D", "E", "F"]
    assert len(names) == MAX_SOURCES


def test_headline_strips_label_prefix():
    assert sentence_to_headline("Cyprus: new ferry route announced.") == "new ferry route announced."


def test_headline_truncated_with_ellipsis():
    headline = sentence_to_headline("word " * 60)
    assert len(headline) <= 110
    assert headline.endswith("...")


def test_headline_default_when_empty():
    assert sentence_to_headline("Label: ") == DEFAULT_HEADLINE


def test_credibility_note_only_for_hedging_language():
    hedged = build_item("Reports are mixed on the timeline.", "Cyprus", [])
    plain = build_item("The port reopened.", "Cyprus", [])

    assert hedged.credibility_notes is not None
    assert plain.credibility_notes is None


def test_item_template_uses_subsection_label():
    item = build_item("The port reopened.", "Worldwide", [])
    assert item.key_facts == ["The port reopened."]
    assert "Worldwide" in item.analysis
    assert "worldwide" in item.implications[0]


# ============================================================================
# Routing
# ============================================================================


def test_specific_team_beats_generic_league(classifier):
    sentence = "Apollon won 2-1 against AEL in the Cyprus league."
    assert classifier.route(sentence, "sports") == Route("cyprus_football", "apollon_limassol")


def test_generic_rule_used_when_no_entity_matches(classifier):
    sentence = "The Cypriot first division resumes after the break."
    assert classifier.route(sentence, "sports") == Route("cyprus_football", "cyprus_league_general")


def test_shared_club_name_needs_basketball_context(classifier):
    football = "Olympiacos beat PAOK at the Karaiskakis."
    basketball = "Olympiacos won by 12 points in the EuroLeague."

    assert classifier.route(football, "sports") == Route("greek_super_league", "olympiacos_piraeus")
    assert classifier.route(basketball, "sports") == Route("euroleague", "olympiacos")


def test_rules_only_apply_to_their_bucket():
    # "cyprus" is a news rule and a sports catch-all; bucket decides
    assert match_rule("Cyprus budget approved.", "news").route == Route("news", "cyprus")
    assert match_rule("Cyprus budget approved.", "sports").route == Route(
        "cyprus_football", "cyprus_league_general"
    )
    assert match_rule("Cyprus budget approved.", "tech") is None


@pytest.mark.parametrize(
    ("bucket", "expected"),
    [
        ("news", Route("news", "world")),
        ("tech", Route("tech", "other")),
        ("sports", Route("cyprus_football", "cyprus_league_general")),
    ],
)
def test_unmatched_sentence_goes_to_bucket_default(classifier, bucket, expected):
    assert classifier.route("Nothing recognisable here.", bucket) == expected


def test_default_route_rejects_unfed_bucket(classifier):
    with pytest.raises(ValueError):
        classifier.default_route("weather")


# ============================================================================
# Classification and issue population
# ============================================================================


def test_every_non_citation_sentence_classified_once(classifier):
    text = (
        "Greece: wildfire contained near Athens. "
        "Global markets rallied. "
        "A local bakery won an award. "
        "Sources: Reuters and ERT."
    )
    results = classifier.classify(text, "news")

    assert len(results) == 3
    assert [route for route, _ in results] == [
        Route("news", "greece"),
        Route("news", "world"),
        Route("news", "world"),
    ]
    for _, item in results:
        assert [s.title for s in item.sources] == ["Reuters", "ERT"]


def test_source_links_point_at_search(classifier):
    [(_, item)] = classifier.classify("Cyprus: port reopened. Sources: Example Times.", "news")
    assert item.sources[0].url == "https://www.google.com/search?q=Example%20Times"
    assert item.sources[0].publisher == "Example Times"


def test_apply_populates_issue_and_narratives(classifier):
    issue = create_empty_issue("2026-10-19")
    classifier.apply(
        issue,
        {
            "news": "Cyprus: new ferry route announced.",
            "tech": "Python 3.14 ships a new compiler.",
            "sports": "",
        },
    )

    assert len(issue.sections["news"]["cyprus"].items) == 1
    assert len(issue.sections["tech"]["programming"].items) == 1
    assert issue.item_count() == 2
    assert get_counter("classification.heuristic.items") == 2

    assert issue.sections["news"]["cyprus"].narrative.startswith("What happened:")
    assert issue.sections["news"]["greece"].narrative == NO_UPDATES_NARRATIVE
    # Match center is not text-fed, so no templated narrative
    assert issue.sections["match_center"]["football_cyprus_league"].narrative is None


def test_fill_narratives_only_missing_keeps_existing(classifier):
    issue = create_empty_issue("2026-10-19")
    issue.sections["news"]["world"].narrative = "Generated narrative."

    classifier.fill_narratives(issue, only_missing=True)

    assert issue.sections["news"]["world"].narrative == "Generated narrative."
    assert issue.sections["news"]["cyprus"].narrative == NO_UPDATES_NARRATIVE


def test_narrative_cites_top_two_headlines():
    subsection = Subsection(label="Cyprus")
    for sentence in ("One happened.", "Two happened.", "Three happened."):
        subsection.items.append(build_item(sentence, "Cyprus", []))

    narrative = narrative_for(subsection)
    assert "One happened.; Two happened." in narrative
    assert "Three" not in narrative
