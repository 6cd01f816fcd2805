"""
Normalization of the two API-SPORTS payload shapes into UnifiedGame.

Football fixtures and basketball games arrive with different field layouts
(``fixture.status`` vs ``status``, ``goals`` vs ``scores.*.total``). Both are
flattened into one transient record; missing fields get safe defaults
instead of failing the whole payload.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

SportKind = Literal["football", "basketball"]
GameState = Literal["finished", "live", "upcoming"]

FINISHED_CODES = frozenset({"FT", "AET", "PEN", "AOT", "AWD", "WO", "ABD", "CANC"})
LIVE_CODES = frozenset({"1H", "HT", "2H", "ET", "BT", "P", "LIVE", "Q1", "Q2", "Q3", "Q4", "OT"})

FOOTBALL_DOC_URL = "https://api-sports.io/sports/football"
BASKETBALL_DOC_URL = "https://api-sports.io/sports/basketball"
FOOTBALL_FIXTURE_URL = "https://www.api-football.com/documentation-v3#tag/Fixtures/operation/get-fixtures?id="


@dataclass(frozen=True)
class UnifiedGame:
    sport: SportKind
    date_iso: str
    competition: str
    status_short: str
    status_long: str
    home_team: str
    away_team: str
    source_url: str
    country: str | None = None
    home_score: int | None = None
    away_score: int | None = None

    @property
    def kickoff(self) -> datetime | None:
        try:
            parsed = datetime.fromisoformat(self.date_iso)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)

    @property
    def state(self) -> GameState:
        return classify_status(self.status_short)

    def score_text(self) -> str:
        if self.home_score is None or self.away_score is None:
            return ""
        return f"{self.home_team} {self.home_score}-{self.away_score} {self.away_team}"


def classify_status(status_short: str) -> GameState:
    code = (status_short or "").upper()
    if code in FINISHED_CODES:
        return "finished"
    if code in LIVE_CODES:
        return "live"
    return "upcoming"


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value else default


def _as_score(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _rows(payload: Any) -> list[dict[str, Any]]:
    response = _as_dict(payload).get("response")
    if not isinstance(response, list):
        return []
    return [row for row in response if isinstance(row, dict)]


def _date_with_time(date_value: str, time_value: Any) -> str:
    time_part = time_value if isinstance(time_value, str) and time_value else "00:00"
    return f"{date_value}T{time_part}:00+00:00"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _football_date(row: dict[str, Any]) -> str:
    fixture_date = _as_dict(row.get("fixture")).get("date")
    if isinstance(fixture_date, str) and fixture_date:
        return fixture_date
    row_date = row.get("date")
    if isinstance(row_date, str) and row_date:
        return _date_with_time(row_date, row.get("time"))
    return _now_iso()


def _basketball_date(row: dict[str, Any]) -> str:
    row_date = row.get("date")
    if not isinstance(row_date, str) or not row_date:
        return _now_iso()
    if "T" in row_date:
        return row_date
    return _date_with_time(row_date, row.get("time"))


def parse_football_games(payload: Any) -> list[UnifiedGame]:
    games: list[UnifiedGame] = []
    for row in _rows(payload):
        fixture = _as_dict(row.get("fixture"))
        league = _as_dict(row.get("league"))
        teams = _as_dict(row.get("teams"))
        goals = _as_dict(row.get("goals"))
        status = _as_dict(fixture.get("status"))
        fixture_id = fixture.get("id")
        country = league.get("country")

        games.append(
            UnifiedGame(
                sport="football",
                date_iso=_football_date(row),
                competition=_as_str(league.get("name"), "Football"),
                country=country if isinstance(country, str) else None,
                status_short=_as_str(status.get("short"), "NS"),
                status_long=_as_str(status.get("long"), "Not Started"),
                home_team=_as_str(_as_dict(teams.get("home")).get("name"), "Home"),
                away_team=_as_str(_as_dict(teams.get("away")).get("name"), "Away"),
                home_score=_as_score(goals.get("home")),
                away_score=_as_score(goals.get("away")),
                source_url=(
                    f"{FOOTBALL_FIXTURE_URL}{fixture_id}"
                    if isinstance(fixture_id, int) and not isinstance(fixture_id, bool)
                    else FOOTBALL_DOC_URL
                ),
            )
        )
    return games


def parse_basketball_games(payload: Any) -> list[UnifiedGame]:
    games: list[UnifiedGame] = []
    for row in _rows(payload):
        league = _as_dict(row.get("league"))
        teams = _as_dict(row.get("teams"))
        status = _as_dict(row.get("status"))
        scores = _as_dict(row.get("scores"))
        game_id = _as_score(row.get("id"))
        country = league.get("country")
        # Country is an object ({"name": ...}) in some basketball payloads
        if isinstance(country, dict):
            country = country.get("name")

        games.append(
            UnifiedGame(
                sport="basketball",
                date_iso=_basketball_date(row),
                competition=_as_str(league.get("name"), "Basketball"),
                country=country if isinstance(country, str) else None,
                status_short=_as_str(status.get("short"), "NS"),
                status_long=_as_str(status.get("long"), "Not Started"),
                home_team=_as_str(_as_dict(teams.get("home")).get("name"), "Home"),
                away_team=_as_str(_as_dict(teams.get("away")).get("name"), "Away"),
                home_score=_as_score(_as_dict(scores.get("home")).get("total")),
                away_score=_as_score(_as_dict(scores.get("away")).get("total")),
                source_url=f"{BASKETBALL_DOC_URL}#game-{game_id}" if game_id else BASKETBALL_DOC_URL,
            )
        )
    return games


@dataclass(frozen=True)
class BucketRule:
    """Routes a game into one match-center subsection."""

    bucket: str
    sport: SportKind
    competition: re.Pattern[str]
    country: re.Pattern[str] | None = None
    exclude: re.Pattern[str] | None = None

    def matches(self, game: UnifiedGame) -> bool:
        if game.sport != self.sport or not self.competition.search(game.competition):
            return False
        if self.country is not None and not self.country.search(game.country or ""):
            return False
        if self.exclude is not None and self.exclude.search(game.competition):
            return False
        return True


def _bucket(
    bucket: str,
    sport: SportKind,
    competition: str,
    country: str | None = None,
    exclude: str | None = None,
) -> BucketRule:
    flags = re.IGNORECASE
    return BucketRule(
        bucket=bucket,
        sport=sport,
        competition=re.compile(competition, flags),
        country=re.compile(country, flags) if country else None,
        exclude=re.compile(exclude, flags) if exclude else None,
    )


BUCKET_RULES: tuple[BucketRule, ...] = (
    _bucket("football_cyprus_league", "football", r"(division|1st|1\.)", country=r"cyprus"),
    _bucket("football_greek_super_league", "football", r"super\s*league", country=r"greece"),
    _bucket("football_champions_league", "football", r"champions\s*league"),
    _bucket("football_europa_league", "football", r"europa\s*league", exclude=r"conference"),
    _bucket("football_conference_league", "football", r"conference\s*league"),
    _bucket("football_premier_league", "football", r"premier\s*league", country=r"england"),
    _bucket("football_bundesliga", "football", r"bundesliga", country=r"germany"),
    _bucket("football_serie_a", "football", r"serie\s*a", country=r"italy"),
    _bucket("football_ligue_1", "football", r"ligue\s*1", country=r"france"),
    _bucket("football_la_liga", "football", r"(la\s*liga|primera\s*division)", country=r"spain"),
    _bucket("basketball_euroleague", "basketball", r"euroleague"),
    _bucket("basketball_greek_league", "basketball", r"(basket\s*league|a1|heba|esake|gbl)", country=r"greece"),
    _bucket("national_euro", "football", r"(uefa\s*euro|european\s*championship)"),
    _bucket("national_world_cup", "football", r"world\s*cup"),
    _bucket("national_nations_league", "football", r"nations\s*league"),
)


def _sort_key(game: UnifiedGame) -> tuple[int, datetime]:
    kickoff = game.kickoff
    if kickoff is None:
        return (1, datetime.max.replace(tzinfo=UTC))
    return (0, kickoff)


def bucket_games(
    games: list[UnifiedGame],
    rules: tuple[BucketRule, ...] = BUCKET_RULES,
    on_unmatched: Callable[[UnifiedGame], None] | None = None,
) -> dict[str, list[UnifiedGame]]:
    """
    Route every game into the first matching bucket; unmatched games are dropped.

    Every bucket key is present in the result. Buckets are sorted by kickoff,
    games with an unparseable date last.
    """
    buckets: dict[str, list[UnifiedGame]] = {rule.bucket: [] for rule in rules}
    for game in games:
        for rule in rules:
            if rule.matches(game):
                buckets[rule.bucket].append(game)
                break
        else:
            if on_unmatched is not None:
                on_unmatched(game)

    for bucket in buckets.values():
        bucket.sort(key=_sort_key)
    return buckets
