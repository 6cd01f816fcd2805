"""Issue persistence."""

from __future__ import annotations

from dailybrief.storage.repository import IssueRepository, day_diff

__all__ = ["IssueRepository", "day_diff"]
