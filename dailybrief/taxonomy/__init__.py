"""Fixed section/subsection taxonomy for the daily issue."""

from __future__ import annotations

from dailybrief.taxonomy.registry import (
    REGISTRY,
    SectionDefinition,
    SubsectionDefinition,
    TaxonomyRegistry,
    UnknownSection,
    label_from_key,
)

__all__ = [
    "REGISTRY",
    "SectionDefinition",
    "SubsectionDefinition",
    "TaxonomyRegistry",
    "UnknownSection",
    "label_from_key",
]
