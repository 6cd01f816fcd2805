"""
Issue repository - persistence for issues, covers and ingest runs.

Backend-agnostic: every method runs SQL through a Database (SQLite or
PostgreSQL) and is wrapped by db_operation, so callers only ever see
RepositoryError.

Tables:
    daily_issues     active window, one row per date
    archived_issues  rows rotated out after ARCHIVE_RETENTION_DAYS
    issue_covers     one cover per (date, section)
    ingest_runs      append-only audit log
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date
from typing import Any

from dailybrief import config
from dailybrief.contracts.issue import CoverImage, DailyIssue, IngestRun, utc_now
from dailybrief.contracts.issue_shape import normalize_issue
from dailybrief.infrastructure.database import Database, DatabaseSession, db_operation
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import counter, log_event
from dailybrief.taxonomy import REGISTRY, TaxonomyRegistry

logger = get_logger(__name__)

_UPSERT_ISSUE = """
    INSERT INTO daily_issues
        (issue_date, issue_json, ingest_status, raw_input_news, raw_input_tech, raw_input_sports,
         created_at, updated_at)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT (issue_date) DO UPDATE SET
        issue_json = excluded.issue_json,
        ingest_status = excluded.ingest_status,
        raw_input_news = excluded.raw_input_news,
        raw_input_tech = excluded.raw_input_tech,
        raw_input_sports = excluded.raw_input_sports,
        updated_at = excluded.updated_at
"""

_ARCHIVE_ROW = """
    INSERT INTO archived_issues
        (issue_date, issue_json, ingest_status, raw_input_news, raw_input_tech, raw_input_sports, archived_at)
    SELECT issue_date, issue_json, ingest_status, raw_input_news, raw_input_tech, raw_input_sports, ?
    FROM daily_issues WHERE issue_date = ?
    ON CONFLICT (issue_date) DO UPDATE SET
        issue_json = excluded.issue_json,
        ingest_status = excluded.ingest_status,
        raw_input_news = excluded.raw_input_news,
        raw_input_tech = excluded.raw_input_tech,
        raw_input_sports = excluded.raw_input_sports,
        archived_at = excluded.archived_at
"""

_UPSERT_COVER = """
    INSERT INTO issue_covers (issue_date, block_name, image_url, prompt, keywords_json, created_at)
    VALUES (?, ?, ?, ?, ?, ?)
    ON CONFLICT (issue_date, block_name) DO UPDATE SET
        image_url = excluded.image_url,
        prompt = excluded.prompt,
        keywords_json = excluded.keywords_json,
        created_at = excluded.created_at
"""


def day_diff(earlier: str, later: str | date) -> int:
    """Whole calendar days from ``earlier`` to ``later`` (ISO dates)."""
    later_date = later if isinstance(later, date) else date.fromisoformat(later)
    return (later_date - date.fromisoformat(earlier)).days


class IssueRepository:
    """Issue persistence over one injected Database."""

    def __init__(
        self,
        db: Database,
        registry: TaxonomyRegistry = REGISTRY,
        retention_days: int = config.ARCHIVE_RETENTION_DAYS,
    ) -> None:
        self.db = db
        self.registry = registry
        self.retention_days = retention_days

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def _row_to_issue(self, row: Mapping[str, Any]) -> DailyIssue:
        try:
            raw = json.loads(row["issue_json"])
        except (TypeError, json.JSONDecodeError) as e:
            counter("repository.corrupt_issue_json")
            logger.warning("Stored issue %s has unreadable JSON: %s", row["issue_date"], e)
            raw = None
        return normalize_issue(raw, row["issue_date"], self.registry)

    @staticmethod
    def _row_to_cover(section: str, row: Mapping[str, Any]) -> CoverImage:
        try:
            keywords = json.loads(row["keywords_json"])
        except (TypeError, json.JSONDecodeError):
            keywords = []
        if not isinstance(keywords, list):
            keywords = []
        return CoverImage(
            section=section,
            image_url=row["image_url"],
            prompt=row["prompt"],
            keywords=[k for k in keywords if isinstance(k, str)],
        )

    @staticmethod
    def _first_issue_row(session: DatabaseSession, sql_active: str, sql_archive: str, params: tuple) -> Any:
        row = session.fetchone(sql_active, params)
        if row is None:
            row = session.fetchone(sql_archive, params)
        return row

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    @db_operation("save issue")
    def save(self, issue: DailyIssue, raw_inputs: Mapping[str, str | None] | None = None) -> DailyIssue:
        """
        Upsert the issue keyed by date (last writer wins).

        created_at is kept from the first save; updated_at is always now.
        Returns the stored copy with both timestamps set.

        Side Effects:
            - Writes one daily_issues row
        """
        raw_inputs = raw_inputs or {}
        now = utc_now().isoformat()

        with self.db.transaction() as session:
            existing = session.fetchone("SELECT created_at FROM daily_issues WHERE issue_date = ?", (issue.date,))
            created_at = existing["created_at"] if existing else (issue.created_at or now)
            stored = issue.model_copy(deep=True, update={"created_at": created_at, "updated_at": now})
            session.execute(
                _UPSERT_ISSUE,
                (
                    stored.date,
                    stored.to_json(),
                    str(getattr(stored.status, "value", stored.status)),
                    raw_inputs.get("news"),
                    raw_inputs.get("tech"),
                    raw_inputs.get("sports"),
                    created_at,
                    now,
                ),
            )

        logger.info("Saved issue %s (status=%s, items=%d)", stored.date, stored.status, stored.item_count())
        return stored

    @db_operation("get issue by date")
    def get_by_date(self, issue_date: str) -> DailyIssue | None:
        """Active table first, then the archive."""
        with self.db.transaction() as session:
            row = self._first_issue_row(
                session,
                "SELECT issue_date, issue_json FROM daily_issues WHERE issue_date = ?",
                "SELECT issue_date, issue_json FROM archived_issues WHERE issue_date = ?",
                (issue_date,),
            )
        return self._row_to_issue(row) if row else None

    @db_operation("get latest issue")
    def get_latest(self) -> DailyIssue | None:
        """Most recent active issue; most recent archived one if the active table is empty."""
        with self.db.transaction() as session:
            row = self._first_issue_row(
                session,
                "SELECT issue_date, issue_json FROM daily_issues ORDER BY issue_date DESC LIMIT 1",
                "SELECT issue_date, issue_json FROM archived_issues ORDER BY issue_date DESC LIMIT 1",
                (),
            )
        return self._row_to_issue(row) if row else None

    @db_operation("list recent issues")
    def list_recent(self, limit: int = 7) -> list[DailyIssue]:
        with self.db.transaction() as session:
            rows = session.fetchall(
                "SELECT issue_date, issue_json FROM daily_issues ORDER BY issue_date DESC LIMIT ?", (limit,)
            )
        return [self._row_to_issue(row) for row in rows]

    @db_operation("list archived issues")
    def list_archived(self, limit: int = 60) -> list[DailyIssue]:
        with self.db.transaction() as session:
            rows = session.fetchall(
                "SELECT issue_date, issue_json FROM archived_issues ORDER BY issue_date DESC LIMIT ?", (limit,)
            )
        return [self._row_to_issue(row) for row in rows]

    @db_operation("rotate issues")
    def rotate(self, today: str | date | None = None) -> int:
        """
        Move active rows older than the retention window into the archive.

        Each row moves in its own transaction (copy, then delete). Rows
        already moved are no longer in the active table, so a second run
        is a no-op. Returns the number of rows moved.

        Side Effects:
            - Upserts archived_issues rows, deletes daily_issues rows
        """
        today = today or utc_now().date()
        with self.db.transaction() as session:
            dates = [row["issue_date"] for row in session.fetchall("SELECT issue_date FROM daily_issues")]

        stale: list[str] = []
        for issue_date in dates:
            try:
                if day_diff(issue_date, today) > self.retention_days:
                    stale.append(issue_date)
            except ValueError:
                logger.warning("Skipping rotation of row with invalid date %r", issue_date)

        moved = 0
        for issue_date in sorted(stale):
            with self.db.transaction() as session:
                session.execute(_ARCHIVE_ROW, (utc_now().isoformat(), issue_date))
                moved += session.execute("DELETE FROM daily_issues WHERE issue_date = ?", (issue_date,))

        if moved:
            log_event("repository.rotated", today=str(today), moved=moved)
        return moved

    # ------------------------------------------------------------------
    # Covers
    # ------------------------------------------------------------------

    @db_operation("get cover")
    def get_cover(self, issue_date: str, section: str) -> CoverImage | None:
        with self.db.transaction() as session:
            row = session.fetchone(
                "SELECT image_url, prompt, keywords_json FROM issue_covers WHERE issue_date = ? AND block_name = ?",
                (issue_date, section),
            )
        return self._row_to_cover(section, row) if row else None

    @db_operation("upsert cover")
    def upsert_cover(self, issue_date: str, cover: CoverImage) -> None:
        with self.db.transaction() as session:
            session.execute(
                _UPSERT_COVER,
                (
                    issue_date,
                    cover.section,
                    cover.image_url,
                    cover.prompt,
                    json.dumps(cover.keywords),
                    utc_now().isoformat(),
                ),
            )

    # ------------------------------------------------------------------
    # Ingest runs
    # ------------------------------------------------------------------

    @db_operation("log ingest run")
    def log_ingest(self, run: IngestRun) -> None:
        with self.db.transaction() as session:
            session.execute(
                "INSERT INTO ingest_runs (issue_date, status, error_message, created_at) VALUES (?, ?, ?, ?)",
                (run.issue_date, run.status, run.error_message, run.created_at.isoformat()),
            )

    @db_operation("list ingest runs")
    def list_ingest_runs(self, issue_date: str) -> list[IngestRun]:
        """Audit read for operators; the pipeline itself never reads runs."""
        with self.db.transaction() as session:
            rows = session.fetchall(
                "SELECT issue_date, status, error_message, created_at FROM ingest_runs "
                "WHERE issue_date = ? ORDER BY id",
                (issue_date,),
            )
        return [IngestRun.model_validate(row) for row in rows]

    @db_operation("ping")
    def ping(self) -> bool:
        with self.db.transaction() as session:
            session.fetchone("SELECT 1 AS ok")
        return True
