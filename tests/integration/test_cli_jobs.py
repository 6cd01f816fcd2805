"""Tests for the scheduled-job CLI (ingest / rotate / init-db)."""

from __future__ import annotations

import json

import pytest

from dailybrief import cli
from dailybrief.contracts.issue import create_empty_issue
from dailybrief.infrastructure.database import RepositoryError, SqliteDatabase


@pytest.fixture
def service(make_service, monkeypatch):
    service = make_service()
    closed = []
    monkeypatch.setattr(service, "close", lambda: closed.append(True))
    monkeypatch.setattr(cli, "build_service", lambda: service)
    service.closed = closed
    return service


def test_ingest_from_input_file(service, repository, tmp_path, capsys):
    payload_file = tmp_path / "payload.json"
    payload_file.write_text(json.dumps({"newsText": "Cyprus: new ferry route announced."}), encoding="utf-8")

    code = cli.main(["ingest", "--date", "2026-10-19", "--input", str(payload_file)])

    assert code == 0
    assert "Ingested 2026-10-19: status=ready, items=1" in capsys.readouterr().out
    assert repository.get_by_date("2026-10-19") is not None
    assert service.closed == [True]


def test_ingest_with_nothing_available(service, capsys):
    assert cli.main(["ingest", "--date", "2026-10-19"]) == 2
    assert "No automation feed for 2026-10-19" in capsys.readouterr().out
    assert service.closed == [True]


def test_ingest_storage_failure_exits_1(service, repository, tmp_path, monkeypatch):
    payload_file = tmp_path / "payload.json"
    payload_file.write_text(json.dumps({"techText": "A new compiler release."}), encoding="utf-8")

    def broken_save(issue, raw_inputs=None):
        raise RepositoryError("save issue failed")

    monkeypatch.setattr(repository, "save", broken_save)

    assert cli.main(["ingest", "--input", str(payload_file)]) == 1


def test_rotate(service, repository, capsys):
    repository.save(create_empty_issue("2026-10-01"))

    assert cli.main(["rotate", "--today", "2026-10-19"]) == 0
    assert "Archived 1 issue(s)" in capsys.readouterr().out
    assert [i.date for i in repository.list_archived()] == ["2026-10-01"]


def test_invalid_date_is_a_usage_error(service):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["rotate", "--today", "19-10-2026"])
    assert excinfo.value.code == 2


def test_init_db(tmp_path, monkeypatch, capsys):
    path = tmp_path / "fresh.db"
    monkeypatch.setattr(cli, "create_database", lambda: SqliteDatabase(path, pool_size=1))

    assert cli.main(["init-db"]) == 0
    assert f"Schema ready on sqlite:{path}" in capsys.readouterr().out
    assert path.exists()
