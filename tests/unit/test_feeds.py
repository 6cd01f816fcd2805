"""Tests for the automation feed loader (remote endpoint, then local file)."""

from __future__ import annotations

import json

import requests
from conftest import FakeResponse, FakeSession

from dailybrief.feeds import load_automation_feed
from dailybrief.observability.telemetry import get_counter

FEED_URL = "https://feed.test/daily"
DATE = "2026-10-19"


def _load(tmp_path, session=None, url="", **kwargs):
    return load_automation_feed(
        DATE,
        url=url,
        token=kwargs.pop("token", ""),
        feed_dir=tmp_path,
        max_chars=kwargs.pop("max_chars", 1000),
        timeout=1,
        session=session or FakeSession(),
    )


def test_remote_feed_with_bearer_token(tmp_path):
    session = FakeSession({FEED_URL: FakeResponse({"newsText": "Cyprus news.", "techText": "Tech news."})})
    payload = _load(tmp_path, session, url=FEED_URL, token="secret")

    assert payload.news_text == "Cyprus news."
    assert payload.tech_text == "Tech news."
    assert payload.sports_text == ""
    assert payload.date == DATE

    _, _, kwargs = session.calls[0]
    assert kwargs["params"] == {"date": DATE}
    assert kwargs["headers"] == {"Authorization": "Bearer secret"}


def test_remote_failure_falls_back_to_local_file(tmp_path):
    (tmp_path / f"{DATE}.json").write_text(json.dumps({"news_text": "Local news."}), encoding="utf-8")
    session = FakeSession({FEED_URL: requests.exceptions.ConnectTimeout("down")})

    payload = _load(tmp_path, session, url=FEED_URL)

    assert payload.news_text == "Local news."
    assert get_counter("feeds.remote.error") == 1


def test_missing_everywhere_returns_none(tmp_path):
    assert _load(tmp_path) is None


def test_unreadable_local_file_returns_none(tmp_path):
    (tmp_path / f"{DATE}.json").write_text("{not json", encoding="utf-8")
    assert _load(tmp_path) is None


def test_texts_truncated_to_max_chars(tmp_path):
    (tmp_path / f"{DATE}.json").write_text(json.dumps({"sportsText": "x" * 50}), encoding="utf-8")
    payload = _load(tmp_path, max_chars=10)

    assert payload.sports_text == "x" * 10


def test_non_string_fields_become_empty(tmp_path):
    (tmp_path / f"{DATE}.json").write_text(json.dumps({"newsText": ["a"], "techText": None}), encoding="utf-8")
    payload = _load(tmp_path)

    assert payload.is_empty()
