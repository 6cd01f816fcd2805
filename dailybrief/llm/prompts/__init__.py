"""
Prompt Management Module

Loads prompt templates from the .txt files beside this module and fills them
with str.format(). Literal braces in templates are doubled.

The structuring schema and the narrative response shape are rendered from
the taxonomy registry, so adding a subsection needs no prompt edit.
"""

from __future__ import annotations

import json
from pathlib import Path

from dailybrief.contracts.issue import DailyIssue
from dailybrief.taxonomy import REGISTRY, TaxonomyRegistry

PROMPTS_DIR = Path(__file__).parent

COVER_STYLES = {
    "news": "tasteful abstract editorial style, no photorealistic faces",
    "tech": "modern minimal tech illustration style",
    "sports": "dynamic stadium-light abstract sports style, no identifiable players or crests",
}


class PromptLoader:
    """Load and cache prompt templates from files"""

    def __init__(self):
        self._cache = {}

    def load_prompt(self, prompt_name: str) -> str:
        """
        Load a prompt template from file.

        Args:
            prompt_name: Name of the prompt file (without .txt extension)

        Returns:
            Prompt template string
        """
        if prompt_name not in self._cache:
            prompt_path = PROMPTS_DIR / f"{prompt_name}.txt"

            if not prompt_path.exists():
                raise FileNotFoundError(f"Prompt file not found: {prompt_path}")

            with open(prompt_path, encoding="utf-8") as f:
                self._cache[prompt_name] = f.read()

        return self._cache[prompt_name]

    def render(self, prompt_name: str, **kwargs) -> str:
        return self.load_prompt(prompt_name).format(**kwargs)

    def reload(self) -> None:
        """Clear cache and reload prompts from disk"""
        self._cache.clear()


_loader = PromptLoader()


def render_taxonomy_schema(registry: TaxonomyRegistry = REGISTRY) -> str:
    """JSON skeleton of every text-fed section with its subsection labels."""
    schema = {
        section.key: {sub.key: {"label": sub.label, "items": ["BriefItem"]} for sub in section.subsections}
        for section in registry
        if section.source_bucket is not None
    }
    return json.dumps(schema, ensure_ascii=False, indent=2)


def get_structure_prompt(
    *,
    date: str,
    news_text: str,
    tech_text: str,
    sports_text: str = "",
    registry: TaxonomyRegistry = REGISTRY,
) -> str:
    """Prompt for the structuring pass: raw texts in, one DailyIssue JSON out."""
    return _loader.render(
        "structure_issue",
        date=date,
        schema=render_taxonomy_schema(registry),
        news_text=news_text,
        tech_text=tech_text,
        sports_text=sports_text,
    )


def narrative_shape(issue: DailyIssue) -> dict[str, dict[str, dict[str, str]]]:
    """Response shape for the narrative pass; only subsections with items."""
    shape: dict[str, dict[str, dict[str, str]]] = {}
    for section_key, subsection_key, subsection in issue.iter_subsections():
        if subsection.items:
            shape.setdefault(section_key, {})[subsection_key] = {"narrative": "..."}
    return shape


def get_narrative_prompt(issue: DailyIssue) -> str:
    return _loader.render(
        "narrative",
        shape=json.dumps(narrative_shape(issue), indent=2),
        issue_json=issue.model_dump_json(by_alias=True, exclude_none=True, exclude={"covers", "raw_automation_input"}),
    )


def cover_style(section_key: str, registry: TaxonomyRegistry = REGISTRY) -> str:
    bucket = registry.get(section_key).source_bucket or "sports"
    return COVER_STYLES.get(bucket, COVER_STYLES["news"])


def get_cover_prompt(*, date: str, section: str, keywords: list[str], registry: TaxonomyRegistry = REGISTRY) -> str:
    return _loader.render(
        "cover_prompt",
        date=date,
        section=section,
        keywords=", ".join(keywords) if keywords else "daily brief",
        style=cover_style(section, registry),
    )


def reload_prompts() -> None:
    """Reload all prompts from disk (convenience function)"""
    _loader.reload()
