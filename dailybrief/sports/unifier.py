"""
Sports unifier - live match data merged into the match-center section.

Two independent GETs (football, basketball) run in parallel under one
deadline counted from submission. A sport that misses it or fails
contributes no games; the other sport is unaffected. Without credentials
the feature is disabled and the issue is returned untouched.
"""

from __future__ import annotations

import concurrent.futures
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import urlparse
from zoneinfo import ZoneInfo

import requests

from dailybrief import config
from dailybrief.contracts.issue import BriefItem, DailyIssue, SourceLink
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import counter, log_event
from dailybrief.sports.normalize import (
    BUCKET_RULES,
    SportKind,
    UnifiedGame,
    bucket_games,
    parse_basketball_games,
    parse_football_games,
)
from dailybrief.taxonomy import REGISTRY, TaxonomyRegistry

logger = get_logger(__name__)

MATCH_CENTER_SECTION = "match_center"


class SportsApiError(RuntimeError):
    """One sport's request failed: bad status, malformed payload or timeout."""

    def __init__(self, sport: str, message: str) -> None:
        super().__init__(f"{sport}: {message}")
        self.sport = sport


def city_from_timezone(tz_name: str) -> str:
    """'Europe/Athens' -> 'Athens'."""
    return tz_name.rsplit("/", 1)[-1].replace("_", " ")


class SportsUnifier:
    """
    Fetches and normalizes games, then folds them into an issue.

    Credentials, endpoints, timezone and timeout default to the values in
    dailybrief.config; tests pass their own, plus a fake ``session``.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        rapidapi_key: str | None = None,
        football_endpoint: str | None = None,
        basketball_endpoint: str | None = None,
        timezone: str | None = None,
        timeout_seconds: float | None = None,
        session: requests.Session | None = None,
        registry: TaxonomyRegistry = REGISTRY,
    ) -> None:
        self.api_key = (config.SPORTS_API_KEY if api_key is None else api_key).strip()
        self.rapidapi_key = (config.RAPIDAPI_KEY if rapidapi_key is None else rapidapi_key).strip()
        self.football_endpoint = football_endpoint or config.SPORTS_FOOTBALL_ENDPOINT
        self.basketball_endpoint = basketball_endpoint or config.SPORTS_BASKETBALL_ENDPOINT
        self.timezone = timezone or config.SPORTS_TIMEZONE
        self.timeout_seconds = max(
            1.0, config.SPORTS_API_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        self.session = session
        self.registry = registry
        self._zone = ZoneInfo(self.timezone)

    @property
    def configured(self) -> bool:
        return bool(self.api_key or self.rapidapi_key)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def request_headers(self, url: str) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-apisports-key"] = self.api_key
        if self.rapidapi_key:
            headers["x-rapidapi-key"] = self.rapidapi_key
            host = urlparse(url).netloc
            if host:
                headers["x-rapidapi-host"] = host
        return headers

    def _get_json(self, sport: SportKind, url: str, date: str) -> Any:
        # requests.Session is not thread-safe; each worker opens its own unless one was injected
        owned = self.session is None
        session = requests.Session() if owned else self.session
        try:
            response = session.get(
                url,
                params={"date": date, "timezone": self.timezone},
                headers=self.request_headers(url),
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise SportsApiError(sport, f"request failed: {e}") from e
        except ValueError as e:
            raise SportsApiError(sport, f"malformed payload: {e}") from e
        finally:
            if owned:
                session.close()

    def _fetch_sport(
        self,
        executor: concurrent.futures.Executor,
        sport: SportKind,
        url: str,
        date: str,
        parser: Callable[[Any], list[UnifiedGame]],
    ) -> concurrent.futures.Future[list[UnifiedGame]]:
        return executor.submit(lambda: parser(self._get_json(sport, url, date)))

    def _collect(
        self,
        sport: str,
        future: concurrent.futures.Future[list[UnifiedGame]],
        deadline: float,
    ) -> list[UnifiedGame]:
        """Wait for one sport until the shared ``deadline`` (monotonic clock)."""
        try:
            games = future.result(timeout=max(0.0, deadline - time.monotonic()))
        except concurrent.futures.TimeoutError:
            future.cancel()
            counter(f"sports.{sport}.timeout")
            logger.warning("Sports API %s timed out after %ss; dropping its games", sport, self.timeout_seconds)
            return []
        except SportsApiError as e:
            counter(f"sports.{sport}.error")
            logger.warning("Sports API %s failed; dropping its games: %s", sport, e)
            return []
        except Exception as e:
            counter(f"sports.{sport}.error")
            logger.warning("Sports API %s payload could not be normalized; dropping its games: %s", sport, e)
            return []
        counter(f"sports.{sport}.games", len(games))
        return games

    def fetch_games(self, date: str) -> dict[str, list[UnifiedGame]]:
        """
        Return games for ``date`` grouped by match-center bucket.

        Both requests share one deadline measured from submission. Every
        bucket key is present; all are empty when credentials are missing
        or both sports fail.

        Side Effects:
            - Two HTTP GETs against the sports endpoints (when configured)
        """
        if not self.configured:
            logger.info("Sports API not configured; skipping match data")
            return bucket_games([])

        executor = concurrent.futures.ThreadPoolExecutor(max_workers=2)
        try:
            football = self._fetch_sport(executor, "football", self.football_endpoint, date, parse_football_games)
            basketball = self._fetch_sport(
                executor, "basketball", self.basketball_endpoint, date, parse_basketball_games
            )
            deadline = time.monotonic() + self.timeout_seconds
            games = self._collect("football", football, deadline) + self._collect("basketball", basketball, deadline)
        finally:
            executor.shutdown(wait=False)

        def unmatched(game: UnifiedGame) -> None:
            logger.debug("No bucket for %s game in %s (%s)", game.sport, game.competition, game.country)

        return bucket_games(games, BUCKET_RULES, on_unmatched=unmatched)

    # ------------------------------------------------------------------
    # Mapping into the issue
    # ------------------------------------------------------------------

    def local_time(self, game: UnifiedGame) -> str:
        kickoff = game.kickoff
        if kickoff is None:
            return "--:--"
        return kickoff.astimezone(self._zone).strftime("%H:%M")

    def map_game_to_item(self, game: UnifiedGame) -> BriefItem:
        state = game.state
        score = game.score_text()
        local = self.local_time(game)
        competition = f"{game.competition} ({game.country})" if game.country else game.competition

        if state == "upcoming":
            headline = f"{game.home_team} vs {game.away_team} · {local} {city_from_timezone(self.timezone)}"
            status_fact = f"Kickoff: {local} ({self.timezone})"
            analysis = (
                "The upcoming fixture can influence near-term standings and preparation windows once lineups "
                "and final team news are confirmed."
            )
            first_watch = "Official starting lineups and late availability updates."
        else:
            headline = score or f"{game.home_team} vs {game.away_team} ({game.status_long})"
            if state == "finished":
                status_fact = f"Final score: {score}" if score else f"Status: {game.status_long}"
                analysis = (
                    "The result is now confirmed and can immediately affect standings, qualification paths, "
                    "and short-term team momentum."
                )
            else:
                status_fact = f"Live status: {game.status_long}"
                analysis = (
                    "The game is currently in progress, so tactical swings and game-state volatility can "
                    "still change the outcome."
                )
            first_watch = "Post-game reports and updated standings."

        return BriefItem(
            headline=headline,
            key_facts=[f"Competition: {competition}", status_fact],
            analysis=analysis,
            implications=[
                "Monitor official competition updates for standings and tie-break impacts.",
                "Track lineup and injury changes close to kickoff or tip-off for decision-making.",
            ],
            watch_next=[first_watch, "Any disciplinary or injury announcements after the match window."],
            sources=[
                SourceLink(
                    title="API-SPORTS Football" if game.sport == "football" else "API-SPORTS Basketball",
                    url=game.source_url,
                    publisher="API-SPORTS",
                )
            ],
        )

    def build_narrative(self, label: str, date: str, games: list[UnifiedGame]) -> str:
        if not games:
            return f"No scheduled or completed matches were detected for {label} on {date} in {self.timezone}."

        states = [game.state for game in games]
        return (
            f"{len(games)} match updates for {label} on {date}: {states.count('upcoming')} upcoming, "
            f"{states.count('live')} live/in-progress, {states.count('finished')} completed. "
            f"All times are shown in {self.timezone}."
        )

    def apply_to_issue(self, issue: DailyIssue) -> DailyIssue:
        """
        Replace match-center subsections with fetched games.

        Side Effects:
            - Mutates ``issue`` in place (match-center items and narratives)
            - HTTP calls via fetch_games()
        """
        if not self.configured:
            return issue

        buckets = self.fetch_games(issue.date)
        total = 0
        for bucket_key, games in buckets.items():
            label = self.registry.subsection_label(MATCH_CENTER_SECTION, bucket_key)
            subsection = issue.ensure_subsection(MATCH_CENTER_SECTION, bucket_key, label)
            subsection.items = [self.map_game_to_item(game) for game in games]
            subsection.narrative = self.build_narrative(subsection.label, issue.date, games)
            total += len(games)

        log_event("sports.merged", date=issue.date, games=total)
        return issue
