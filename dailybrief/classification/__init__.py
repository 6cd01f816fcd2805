"""Deterministic fallback classification of raw feed text."""

from __future__ import annotations

from dailybrief.classification.heuristic import (
    HeuristicClassifier,
    build_item,
    extract_source_names,
    split_sentences,
)
from dailybrief.classification.rules import RULES, Route, Rule, match_rule

__all__ = [
    "RULES",
    "HeuristicClassifier",
    "Route",
    "Rule",
    "build_item",
    "extract_source_names",
    "match_rule",
    "split_sentences",
]
