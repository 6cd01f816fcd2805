"""
Pytest configuration for Daily Brief tests

Provides fixtures shared across unit and integration tests: a temporary
SQLite database, and fakes for the generative model and HTTP sessions.
No test touches the network.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
import requests

from dailybrief.classification.heuristic import HeuristicClassifier
from dailybrief.covers.cache import CoverCache
from dailybrief.covers.image import CoverGenerator
from dailybrief.extraction.orchestrator import ExtractionOrchestrator
from dailybrief.infrastructure.database import SqliteDatabase
from dailybrief.infrastructure.database_schema import init_database
from dailybrief.llm.client import LLMResponseError
from dailybrief.observability.telemetry import reset_counters
from dailybrief.service import BriefingService
from dailybrief.sports.unifier import SportsUnifier
from dailybrief.storage.repository import IssueRepository


class FakeLLM:
    """
    Scripted TextGenerator.

    ``json_responses`` / ``text_responses`` are consumed in order; an
    Exception instance in the queue is raised instead of returned. An empty
    queue raises LLMResponseError, like a model returning nothing usable.
    """

    def __init__(self, json_responses: list[Any] | None = None, text_responses: list[Any] | None = None):
        self.json_responses = list(json_responses or [])
        self.text_responses = list(text_responses or [])
        self.json_prompts: list[str] = []
        self.text_prompts: list[str] = []

    @staticmethod
    def _next(queue: list[Any]) -> Any:
        if not queue:
            raise LLMResponseError("no scripted response")
        value = queue.pop(0)
        if isinstance(value, Exception):
            raise value
        return value

    def generate_json(self, prompt: str) -> dict[str, Any]:
        self.json_prompts.append(prompt)
        return self._next(self.json_responses)

    def generate_text(self, prompt: str) -> str:
        self.text_prompts.append(prompt)
        return self._next(self.text_responses)


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """
    Minimal requests.Session stand-in routed by URL.

    A route value may be a FakeResponse, an Exception to raise, or a
    callable taking the request kwargs and returning either.
    """

    def __init__(self, routes: dict[str, Any] | None = None):
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    def _dispatch(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        if url not in self.routes:
            raise requests.exceptions.ConnectionError(f"no route for {url}")
        route = self.routes[url]
        if callable(route) and not isinstance(route, FakeResponse):
            route = route(**kwargs)
        if isinstance(route, Exception):
            raise route
        return route

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("POST", url, **kwargs)

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _reset_telemetry():
    """Each test starts with zeroed counters."""
    reset_counters()
    yield
    reset_counters()


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database with the current schema."""
    database = SqliteDatabase(tmp_path / "daily_brief_test.db", pool_size=2)
    init_database(database)
    yield database
    database.close()


@pytest.fixture
def repository(db):
    return IssueRepository(db)


@pytest.fixture
def offline_sports():
    """Sports unifier with no credentials (feature disabled)."""
    return SportsUnifier(api_key="", rapidapi_key="", session=FakeSession())


@pytest.fixture
def offline_covers(repository):
    """Cover cache that always lands on the local SVG fallback."""
    return CoverCache(repository, CoverGenerator(None, endpoint="", session=FakeSession()))


@pytest.fixture
def make_service(repository, offline_sports, offline_covers):
    """Build a BriefingService over the temporary database; override any part."""

    def _make(
        *,
        llm: Any = None,
        sports: SportsUnifier | None = None,
        covers: CoverCache | None = None,
        feed_loader: Callable[[str], Any] | None = None,
        repo: IssueRepository | None = None,
    ) -> BriefingService:
        return BriefingService(
            repository=repo or repository,
            orchestrator=ExtractionOrchestrator(llm, HeuristicClassifier()),
            sports=sports or offline_sports,
            covers=covers or offline_covers,
            cover_sections=("news", "tech"),
            feed_loader=feed_loader or (lambda issue_date: None),
        )

    return _make
