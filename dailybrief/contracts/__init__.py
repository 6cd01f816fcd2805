"""Contracts - issue document models and shaping helpers."""

from __future__ import annotations

from dailybrief.contracts.issue import (
    DEFAULT_HEADLINE,
    SOURCE_BUCKETS,
    BriefItem,
    CoverImage,
    DailyIssue,
    IngestPayload,
    IngestRun,
    IssueStatus,
    SourceLink,
    Subsection,
    create_empty_issue,
    today_iso,
    utc_now,
)

__all__ = [
    "DEFAULT_HEADLINE",
    "SOURCE_BUCKETS",
    "BriefItem",
    "CoverImage",
    "DailyIssue",
    "IngestPayload",
    "IngestRun",
    "IssueStatus",
    "SourceLink",
    "Subsection",
    "create_empty_issue",
    "today_iso",
    "utc_now",
]
