"""
Ingestion endpoint.

POST /api/ingest runs the whole pipeline for one date. An empty body (or
one whose texts are all blank) pulls the day's texts from the automation
feed instead.
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from dailybrief.api.routes import get_service, validate_issue_date
from dailybrief.contracts.issue import IngestPayload
from dailybrief.infrastructure.database import RepositoryError
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import counter
from dailybrief.service import BriefingService

router = APIRouter(prefix="/api", tags=["ingest"])
logger = get_logger(__name__)


@router.post("/ingest")
def ingest_issue(
    payload: IngestPayload | None = Body(default=None),
    service: BriefingService = Depends(get_service),
) -> JSONResponse:
    """
    Build and store the issue for ``payload.date`` (today when omitted).

    Side Effects:
        - Runs the ingestion pipeline (external calls, database writes)
    """
    payload = payload or IngestPayload()
    if payload.date:
        payload.date = validate_issue_date(payload.date)

    resolved = service.resolve_payload(payload)
    if resolved is None:
        counter("api.ingest.missing")
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Automation feed missing for selected day", "status": "missing", "retryable": True},
        )

    try:
        issue = service.ingest(resolved)
    except RepositoryError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Ingestion failed", "detail": str(e)},
        )

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"issue": issue.model_dump(mode="json", by_alias=True, exclude_none=True)},
    )
