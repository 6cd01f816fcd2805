"""
Route modules and their shared dependencies.

The BriefingService lives on ``app.state.service``; routes resolve it per
request so tests can swap in a service built over a temporary database.
"""

from __future__ import annotations

from datetime import date

from fastapi import HTTPException, Request, status

from dailybrief.service import BriefingService


def get_service(request: Request) -> BriefingService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service not initialized")
    return service


def validate_issue_date(value: str) -> str:
    """Return ``value`` as an ISO date or raise 400."""
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid date {value!r}, expected YYYY-MM-DD",
        ) from e
