"""
Automation feed loader.

Used when an ingestion request arrives without text: try the remote feed
endpoint first, then a local ``<AUTOMATION_FEED_DIR>/<date>.json`` file.
Each source text is truncated to FEED_MAX_CHARS before it reaches the
extraction pipeline.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import requests

from dailybrief import config
from dailybrief.contracts.issue import IngestPayload
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import counter

logger = get_logger(__name__)

_TEXT_FIELDS = {"news_text": "newsText", "tech_text": "techText", "sports_text": "sportsText"}


def _payload_from(data: Any, issue_date: str, max_chars: int) -> IngestPayload | None:
    if not isinstance(data, dict):
        return None
    texts: dict[str, str] = {}
    for field, key in _TEXT_FIELDS.items():
        value = data.get(key, data.get(field))
        texts[field] = value[:max_chars] if isinstance(value, str) else ""
    return IngestPayload(date=issue_date, **texts)


def _fetch_remote(
    issue_date: str,
    url: str,
    token: str | None,
    timeout: float,
    session: requests.Session | None,
) -> Any:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    getter = session.get if session is not None else requests.get
    response = getter(url, params={"date": issue_date}, headers=headers, timeout=timeout)
    response.raise_for_status()
    return response.json()


def load_automation_feed(
    issue_date: str,
    *,
    url: str | None = None,
    token: str | None = None,
    feed_dir: Path | None = None,
    max_chars: int | None = None,
    timeout: float | None = None,
    session: requests.Session | None = None,
) -> IngestPayload | None:
    """
    Load raw texts for ``issue_date``, or None when no source has them.

    Side Effects:
        - HTTP GET to AUTOMATION_FEED_URL when configured
        - Reads the local feed file
    """
    url = config.AUTOMATION_FEED_URL if url is None else url
    token = config.AUTOMATION_FEED_TOKEN if token is None else token
    feed_dir = config.AUTOMATION_FEED_DIR if feed_dir is None else feed_dir
    max_chars = config.FEED_MAX_CHARS if max_chars is None else max_chars
    timeout = config.FEED_TIMEOUT_SECONDS if timeout is None else timeout

    if url:
        try:
            payload = _payload_from(_fetch_remote(issue_date, url, token, timeout, session), issue_date, max_chars)
        except (requests.exceptions.RequestException, ValueError) as e:
            counter("feeds.remote.error")
            logger.warning("Automation feed request failed for %s: %s", issue_date, e)
        else:
            if payload is not None:
                return payload

    local_path = Path(feed_dir) / f"{issue_date}.json"
    try:
        data = json.loads(local_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.info("No automation feed for %s", issue_date)
        return None
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Unreadable automation feed file %s: %s", local_path, e)
        return None
    return _payload_from(data, issue_date, max_chars)
