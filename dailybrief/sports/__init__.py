"""Sports data unification (API-SPORTS football + basketball)."""

from __future__ import annotations

from dailybrief.sports.normalize import (
    BUCKET_RULES,
    UnifiedGame,
    bucket_games,
    classify_status,
    parse_basketball_games,
    parse_football_games,
)
from dailybrief.sports.unifier import SportsApiError, SportsUnifier

__all__ = [
    "BUCKET_RULES",
    "SportsApiError",
    "SportsUnifier",
    "UnifiedGame",
    "bucket_games",
    "classify_status",
    "parse_basketball_games",
    "parse_football_games",
]
