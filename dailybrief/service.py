"""
Briefing service - the ingestion pipeline and read paths.

ingest():  build issue -> merge sports -> read times -> covers -> save
           -> rotate -> log IngestRun(success)
Any exception past extraction (in practice RepositoryError) is recorded as
IngestRun(error) and re-raised; it is the one failure the caller sees.

build_service() is the composition root: it constructs the database once,
runs schema initialization, and injects it into every component.
"""

from __future__ import annotations

from collections.abc import Callable

from dailybrief import config
from dailybrief.contracts.issue import DailyIssue, IngestPayload, IngestRun, IssueStatus, today_iso
from dailybrief.contracts.issue_shape import attach_read_times
from dailybrief.covers.cache import CoverCache
from dailybrief.covers.image import CoverGenerator
from dailybrief.extraction.orchestrator import ExtractionOrchestrator
from dailybrief.feeds import load_automation_feed
from dailybrief.infrastructure.database import RepositoryError, create_database
from dailybrief.infrastructure.database_schema import init_database, validate_schema
from dailybrief.llm.client import GeminiClient
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import counter, log_event, time_block
from dailybrief.sports.unifier import SportsUnifier
from dailybrief.storage.repository import IssueRepository

logger = get_logger(__name__)

FeedLoader = Callable[[str], IngestPayload | None]


class BriefingService:
    def __init__(
        self,
        repository: IssueRepository,
        orchestrator: ExtractionOrchestrator,
        sports: SportsUnifier,
        covers: CoverCache,
        *,
        cover_sections: tuple[str, ...] | None = None,
        feed_loader: FeedLoader = load_automation_feed,
    ) -> None:
        self.repository = repository
        self.orchestrator = orchestrator
        self.sports = sports
        self.covers = covers
        self.cover_sections = cover_sections if cover_sections is not None else (config.COVER_SECTIONS or None)
        self.feed_loader = feed_loader

    def resolve_payload(self, payload: IngestPayload) -> IngestPayload | None:
        """
        Fill an empty request from the automation feed.

        Returns None when there is no text anywhere and no sports data
        source to fall back on (the issue would be "missing").
        """
        issue_date = payload.date or today_iso()
        if not payload.is_empty():
            return payload.model_copy(update={"date": issue_date})

        feed = self.feed_loader(issue_date)
        if feed is not None and not feed.is_empty():
            return feed.model_copy(update={"date": issue_date})

        if not self.sports.configured:
            logger.info("No automation content for %s and sports data disabled", issue_date)
            return None
        return IngestPayload(date=issue_date)

    def ingest(self, payload: IngestPayload) -> DailyIssue:
        """
        Run the full pipeline for one date.

        Side Effects:
            - External calls (extraction service, sports APIs, image endpoint)
            - Writes daily_issues, issue_covers, ingest_runs; rotates old rows

        Raises:
            RepositoryError: persistence failed (an error IngestRun is logged first)
        """
        issue_date = payload.date or today_iso()
        texts = payload.texts_by_bucket()

        try:
            with time_block("service.ingest"):
                issue = self.orchestrator.build_issue(issue_date, texts)
                self.sports.apply_to_issue(issue)
                if issue.item_count() > 0:
                    issue.status = IssueStatus.READY
                attach_read_times(issue)
                self.covers.attach(issue, self.cover_sections)

                stored = self.repository.save(issue, texts)
                self.repository.rotate(issue_date)
                self.repository.log_ingest(IngestRun(issue_date=issue_date, status="success"))
        except Exception as e:
            counter("service.ingest.error")
            self._log_failure(issue_date, e)
            raise

        status = getattr(stored.status, "value", stored.status)
        log_event("service.ingested", date=issue_date, status=status, items=stored.item_count())
        return stored

    def _log_failure(self, issue_date: str, error: Exception) -> None:
        logger.error("Ingestion failed for %s: %s", issue_date, error)
        try:
            self.repository.log_ingest(IngestRun(issue_date=issue_date, status="error", error_message=str(error)))
        except RepositoryError as log_error:
            logger.error("Could not record failed ingest run for %s: %s", issue_date, log_error)

    # ------------------------------------------------------------------
    # Read paths (rotate relative to today first)
    # ------------------------------------------------------------------

    def get_issue(self, issue_date: str) -> DailyIssue | None:
        self.repository.rotate(today_iso())
        return self.repository.get_by_date(issue_date)

    def get_issue_or_latest(self, issue_date: str) -> tuple[DailyIssue | None, bool]:
        """Return (issue, requested_date_found); falls back to the latest issue."""
        self.repository.rotate(today_iso())
        direct = self.repository.get_by_date(issue_date)
        if direct is not None:
            return direct, True
        return self.repository.get_latest(), False

    def recent_window(self, limit: int = config.API_RECENT_WINDOW_DEFAULT) -> list[DailyIssue]:
        self.repository.rotate(today_iso())
        return self.repository.list_recent(limit)

    def archive_window(self, limit: int = 60) -> list[DailyIssue]:
        return self.repository.list_archived(limit)

    def close(self) -> None:
        self.repository.db.close()


def build_service(database_url: str | None = None, db_path: str | None = None) -> BriefingService:
    """
    Wire every component around one database object.

    Raises:
        SchemaMigrationError: the schema could not be brought up to date
    """
    db = create_database(database_url, db_path)
    init_database(db)
    validate_schema(db)

    repository = IssueRepository(db)
    llm = GeminiClient() if config.USE_LLM else None
    return BriefingService(
        repository=repository,
        orchestrator=ExtractionOrchestrator(llm),
        sports=SportsUnifier(),
        covers=CoverCache(repository, CoverGenerator(llm)),
    )
