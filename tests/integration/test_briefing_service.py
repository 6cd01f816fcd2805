"""
Integration tests for BriefingService over a real SQLite database.

Validates:
1. Ingestion end-to-end (heuristic extraction, read times, covers, audit log)
2. Failure path: error IngestRun recorded, exception re-raised
3. Feed resolution for empty requests
4. Read paths rotate before reading
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from conftest import FakeSession

from dailybrief.contracts.issue import BriefItem, IngestPayload, IssueStatus, create_empty_issue, today_iso
from dailybrief.infrastructure.database import RepositoryError
from dailybrief.observability.telemetry import get_counter
from dailybrief.sports.unifier import SportsUnifier

DATE = "2026-10-19"
FERRY = "Cyprus: new ferry route announced. Sources: Example Times."


def _days_before(issue_date: str, n: int) -> str:
    return (date.fromisoformat(issue_date) - timedelta(days=n)).isoformat()


def _stored_issue(issue_date: str):
    issue = create_empty_issue(issue_date)
    issue.status = IssueStatus.READY
    issue.sections["tech"]["programming"].items.append(BriefItem(headline="Compiler release"))
    return issue


def test_ingest_builds_and_stores_issue(make_service, repository):
    service = make_service()

    issue = service.ingest(IngestPayload(date=DATE, news_text=FERRY))

    assert issue.status == IssueStatus.READY
    cyprus = issue.sections["news"]["cyprus"]
    assert cyprus.items[0].headline == "new ferry route announced."
    assert cyprus.read_time_minutes >= 1
    assert issue.covers["news"].image_url.startswith("data:image/svg+xml;base64,")
    assert issue.covers["tech"].image_url.startswith("data:image/svg+xml;base64,")
    assert issue.covers["euroleague"].image_url == ""

    stored = repository.get_by_date(DATE)
    assert stored.sections["news"]["cyprus"].items[0].headline == "new ferry route announced."
    assert stored.covers["news"] == issue.covers["news"]
    assert repository.get_cover(DATE, "news") is not None
    assert [run.status for run in repository.list_ingest_runs(DATE)] == ["success"]


def test_reingest_reuses_cached_covers(make_service, repository):
    service = make_service()
    first = service.ingest(IngestPayload(date=DATE, news_text=FERRY))
    second = service.ingest(IngestPayload(date=DATE, news_text=FERRY))

    assert second.covers["news"] == first.covers["news"]
    assert get_counter("covers.cache.hit") == 2
    assert second.created_at == first.created_at


def test_ingest_rotates_relative_to_ingested_date(make_service, repository):
    repository.save(_stored_issue(_days_before(DATE, 7)))
    repository.save(_stored_issue(_days_before(DATE, 6)))

    make_service().ingest(IngestPayload(date=DATE, tech_text="A new Python compiler shipped."))

    assert [i.date for i in repository.list_recent()] == [DATE, _days_before(DATE, 6)]
    assert [i.date for i in repository.list_archived()] == [_days_before(DATE, 7)]


def test_repository_failure_is_logged_and_reraised(make_service, repository, monkeypatch):
    def broken_save(issue, raw_inputs=None):
        raise RepositoryError("save issue failed: disk full")

    monkeypatch.setattr(repository, "save", broken_save)
    service = make_service()

    with pytest.raises(RepositoryError, match="disk full"):
        service.ingest(IngestPayload(date=DATE, news_text=FERRY))

    [run] = repository.list_ingest_runs(DATE)
    assert run.status == "error"
    assert "disk full" in run.error_message
    assert get_counter("service.ingest.error") == 1


def test_original_error_survives_failed_audit_write(make_service, repository, monkeypatch):
    def broken(*args, **kwargs):
        raise RepositoryError("database unreachable")

    monkeypatch.setattr(repository, "save", broken)
    monkeypatch.setattr(repository, "log_ingest", broken)

    with pytest.raises(RepositoryError, match="database unreachable"):
        make_service().ingest(IngestPayload(date=DATE, news_text=FERRY))


# ============================================================================
# Payload resolution
# ============================================================================


def test_non_empty_payload_gets_todays_date(make_service):
    resolved = make_service().resolve_payload(IngestPayload(news_text=FERRY))

    assert resolved.date == today_iso()
    assert resolved.news_text == FERRY


def test_empty_payload_uses_feed(make_service):
    requested = []

    def feed(issue_date):
        requested.append(issue_date)
        return IngestPayload(tech_text="Feed tech story.")

    resolved = make_service(feed_loader=feed).resolve_payload(IngestPayload(date=DATE))

    assert requested == [DATE]
    assert resolved.tech_text == "Feed tech story."
    assert resolved.date == DATE


def test_nothing_available_resolves_to_none(make_service):
    service = make_service(feed_loader=lambda issue_date: IngestPayload(news_text="   "))
    assert service.resolve_payload(IngestPayload(date=DATE)) is None


def test_sports_only_ingest_when_sports_configured(make_service):
    sports = SportsUnifier(api_key="key", rapidapi_key="", session=FakeSession(), timeout_seconds=1)
    resolved = make_service(sports=sports).resolve_payload(IngestPayload(date=DATE))

    assert resolved == IngestPayload(date=DATE)


# ============================================================================
# Read paths
# ============================================================================


def test_get_issue_finds_rotated_issue(make_service, repository):
    old = _days_before(today_iso(), 30)
    repository.save(_stored_issue(old))
    service = make_service()

    assert service.get_issue(old).date == old
    assert service.recent_window() == []
    assert [i.date for i in service.archive_window()] == [old]


def test_get_issue_or_latest(make_service, repository):
    today = today_iso()
    repository.save(_stored_issue(_days_before(today, 1)))
    service = make_service()

    issue, found = service.get_issue_or_latest(_days_before(today, 1))
    assert (issue.date, found) == (_days_before(today, 1), True)

    issue, found = service.get_issue_or_latest(today)
    assert (issue.date, found) == (_days_before(today, 1), False)


def test_get_issue_or_latest_with_empty_store(make_service):
    assert make_service().get_issue_or_latest(DATE) == (None, False)
