"""Cover images: generation tiers and the per-date cache."""

from __future__ import annotations

from dailybrief.covers.cache import CoverCache, extract_top_keywords
from dailybrief.covers.image import CoverGenerator, GeneratedCover, fallback_svg_data_uri

__all__ = [
    "CoverCache",
    "CoverGenerator",
    "GeneratedCover",
    "extract_top_keywords",
    "fallback_svg_data_uri",
]
