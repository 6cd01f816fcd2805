"""
Read endpoints for the active window and the archive.

Issues are returned as stored documents (camelCase keys).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from dailybrief.api.routes import get_service, validate_issue_date
from dailybrief.config import API_ARCHIVE_LIMIT_DEFAULT, API_LIST_LIMIT_MAX, API_RECENT_WINDOW_DEFAULT
from dailybrief.contracts.issue import DailyIssue
from dailybrief.service import BriefingService

router = APIRouter(prefix="/api", tags=["issues"])


def _document(issue: DailyIssue) -> dict[str, Any]:
    return issue.model_dump(mode="json", by_alias=True, exclude_none=True)


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"issue": None, "error": "Issue not found"})


@router.get("/issues", response_model=None)
def get_issues(
    date: str | None = Query(default=None, description="Issue date (YYYY-MM-DD)"),
    window: int = Query(default=API_RECENT_WINDOW_DEFAULT, ge=1, le=API_LIST_LIMIT_MAX),
    latest: bool = Query(default=False, description="Fall back to the latest issue when the date is absent"),
    service: BriefingService = Depends(get_service),
) -> dict[str, Any] | JSONResponse:
    """
    One issue by date, or the most recent ``window`` issues.

    With ``latest=true`` a missing date falls back to the newest stored issue
    and ``requestedDateFound`` tells the caller which one they got.
    """
    if date is None:
        return {"issues": [_document(issue) for issue in service.recent_window(window)]}

    issue_date = validate_issue_date(date)
    if latest:
        issue, found = service.get_issue_or_latest(issue_date)
        if issue is None:
            return _not_found()
        return {"issue": _document(issue), "requestedDateFound": found}

    issue = service.get_issue(issue_date)
    if issue is None:
        return _not_found()
    return {"issue": _document(issue)}


@router.get("/archive")
def get_archive(
    limit: int = Query(default=API_ARCHIVE_LIMIT_DEFAULT, ge=1, le=API_LIST_LIMIT_MAX),
    service: BriefingService = Depends(get_service),
) -> dict[str, Any]:
    return {"issues": [_document(issue) for issue in service.archive_window(limit)]}
