"""Health check endpoints.

- /health - service status plus which optional collaborators are configured
- /health/db - database reachability and pool usage
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends

from dailybrief import config
from dailybrief.api.routes import get_service
from dailybrief.infrastructure.database import RepositoryError
from dailybrief.observability.telemetry import get_latency_stats, snapshot_counters
from dailybrief.service import BriefingService

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Service status; only checks credential presence, never calls out."""
    return {
        "status": "healthy",
        "service": "Daily Brief API",
        "version": config.APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "llm": {
            "enabled": config.USE_LLM,
            "google_cloud_project": bool(config.GOOGLE_CLOUD_PROJECT),
        },
        "sports": {"configured": config.sports_api_configured()},
        "images": {"configured": bool(config.IMAGE_GEN_ENDPOINT)},
        "telemetry": {
            "ingest_latency": get_latency_stats("service.ingest"),
            "fallbacks": {name: value for name, value in snapshot_counters().items() if "fallback" in name},
        },
    }


@router.get("/health/db")
def database_health(service: BriefingService = Depends(get_service)) -> dict[str, Any]:
    """
    Database health check.

    Reports "degraded" when the pool is above 80% usage, "unhealthy" when a
    trivial query fails.
    """
    db = service.repository.db
    stats = db.stats()
    try:
        service.repository.ping()
    except RepositoryError as e:
        return {"status": "unhealthy", "backend": db.describe(), "pool": stats, "error": str(e)}

    usage_percent = stats.get("usage_percent", 0)
    return {
        "status": "degraded" if usage_percent > 80 else "healthy",
        "backend": db.describe(),
        "pool": stats,
        "warning": "Pool usage high" if usage_percent > 80 else None,
    }
