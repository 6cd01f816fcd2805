"""Daily Brief - one structured digest per day from raw news, tech and sports text"""

from __future__ import annotations

__version__ = "1.0.0"


# Lazy imports so lightweight modules (contracts, taxonomy) load without the service stack
def __getattr__(name: str):
    if name in ("BriefingService", "build_service"):
        from dailybrief import service

        return getattr(service, name)

    if name in ("DailyIssue", "IngestPayload", "IssueStatus"):
        from dailybrief.contracts import issue

        return getattr(issue, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "BriefingService",
    "build_service",
    "DailyIssue",
    "IngestPayload",
    "IssueStatus",
]
