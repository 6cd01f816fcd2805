"""
Integration tests for online schema migration on SQLite.

A database created by an older release (no raw_input_sports column and a
CHECK constraint limiting covers to news/tech) must be brought forward on
boot without losing rows.
"""

from __future__ import annotations

import sqlite3

import pytest

from dailybrief.contracts.issue import CoverImage
from dailybrief.infrastructure.database import SchemaMigrationError, SqliteDatabase
from dailybrief.infrastructure.database_schema import has_legacy_cover_constraint, init_database, validate_schema
from dailybrief.storage.repository import IssueRepository

LEGACY_DDL = """
CREATE TABLE daily_issues (
    issue_date TEXT PRIMARY KEY,
    issue_json TEXT NOT NULL,
    ingest_status TEXT NOT NULL DEFAULT 'ready',
    raw_input_news TEXT,
    raw_input_tech TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE TABLE issue_covers (
    issue_date TEXT NOT NULL,
    block_name TEXT NOT NULL CHECK (block_name IN ('news', 'tech')),
    image_url TEXT NOT NULL,
    prompt TEXT NOT NULL,
    keywords_json TEXT NOT NULL,
    created_at TEXT NOT NULL,
    PRIMARY KEY (issue_date, block_name)
);
INSERT INTO issue_covers VALUES ('2026-10-18', 'news', 'https://old.png', 'old prompt', '["ferry"]', 't');
"""


@pytest.fixture
def legacy_db(tmp_path):
    path = tmp_path / "legacy.db"
    conn = sqlite3.connect(path)
    conn.executescript(LEGACY_DDL)
    conn.commit()
    conn.close()

    database = SqliteDatabase(path, pool_size=1)
    yield database
    database.close()


def test_legacy_database_is_migrated(legacy_db):
    summary = init_database(legacy_db)

    assert "daily_issues.raw_input_sports" in summary["added_columns"]
    assert summary["rebuilt_covers"] is True
    assert validate_schema(legacy_db) is True


def test_migration_keeps_cover_rows_and_lifts_constraint(legacy_db):
    init_database(legacy_db)
    repository = IssueRepository(legacy_db)

    old = repository.get_cover("2026-10-18", "news")
    assert old.image_url == "https://old.png"
    assert old.keywords == ["ferry"]

    repository.upsert_cover("2026-10-18", CoverImage(section="euroleague", image_url="u", prompt="p"))
    assert repository.get_cover("2026-10-18", "euroleague").image_url == "u"

    with legacy_db.transaction() as session:
        assert has_legacy_cover_constraint(session) is False


def test_second_init_is_a_noop(legacy_db):
    init_database(legacy_db)
    summary = init_database(legacy_db)

    assert summary == {"added_columns": [], "rebuilt_covers": False}


def test_fresh_database_needs_no_migration(db):
    assert init_database(db) == {"added_columns": [], "rebuilt_covers": False}
    assert validate_schema(db) is True


def test_validate_schema_rejects_missing_table(legacy_db):
    with pytest.raises(SchemaMigrationError, match="missing tables"):
        validate_schema(legacy_db)
