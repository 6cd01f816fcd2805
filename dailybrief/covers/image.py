"""
Cover image generation.

Three tiers, each falling back to the next:
    1. prompt: generative text service -> templated prompt string
    2. image:  external image endpoint (optional) -> local SVG gradient
The local SVG is seeded from md5(section:prompt), so the same inputs always
render the same cover without any network call.
"""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass

import requests

from dailybrief import config
from dailybrief.llm.client import LLMError, TextGenerator
from dailybrief.llm.prompts import get_cover_prompt
from dailybrief.observability.logging import get_logger
from dailybrief.observability.telemetry import counter

logger = get_logger(__name__)

SVG_WIDTH = 1600
SVG_HEIGHT = 900

_SVG_TEMPLATE = """<svg xmlns='http://www.w3.org/2000/svg' width='{width}' height='{height}' viewBox='0 0 {width} {height}'>
  <defs>
    <linearGradient id='g' x1='0' y1='0' x2='1' y2='1'>
      <stop offset='0%' stop-color='hsl({hue} 72% 52%)'/>
      <stop offset='100%' stop-color='hsl({secondary} 82% 22%)'/>
    </linearGradient>
    <filter id='blur'><feGaussianBlur stdDeviation='75'/></filter>
  </defs>
  <rect width='{width}' height='{height}' fill='url(#g)'/>
  <circle cx='380' cy='250' r='200' fill='white' opacity='0.12' filter='url(#blur)'/>
  <circle cx='1180' cy='610' r='250' fill='white' opacity='0.1' filter='url(#blur)'/>
  <rect x='180' y='190' width='1240' height='520' rx='38' fill='black' opacity='0.16'/>
</svg>"""


def hue_from_text(text: str) -> int:
    return hashlib.md5(text.encode("utf-8")).digest()[0] % 360


def fallback_svg_data_uri(prompt: str, section: str) -> str:
    hue = hue_from_text(f"{section}:{prompt}")
    svg = _SVG_TEMPLATE.format(width=SVG_WIDTH, height=SVG_HEIGHT, hue=hue, secondary=(hue + 70) % 360)
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def templated_prompt(date: str, section: str, keywords: list[str]) -> str:
    return (
        f"{section} cover on {date}: {', '.join(keywords)}; "
        "minimal high-contrast abstract editorial style, no text."
    )


@dataclass
class GeneratedCover:
    prompt: str
    image_url: str


class CoverGenerator:
    """Builds one cover (prompt + image locator). Never raises."""

    def __init__(
        self,
        llm: TextGenerator | None = None,
        *,
        endpoint: str | None = None,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.llm = llm
        self.endpoint = config.IMAGE_GEN_ENDPOINT if endpoint is None else endpoint
        self.api_key = config.IMAGE_GEN_API_KEY if api_key is None else api_key
        self.timeout_seconds = config.IMAGE_GEN_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self.session = session or requests.Session()

    def build_prompt(self, date: str, section: str, keywords: list[str]) -> str:
        fallback = templated_prompt(date, section, keywords)
        if self.llm is None:
            return fallback
        try:
            generated = self.llm.generate_text(get_cover_prompt(date=date, section=section, keywords=keywords))
        except LLMError as e:
            counter("covers.prompt.fallback")
            logger.warning("Cover prompt generation failed for %s: %s", section, e)
            return fallback
        return generated.strip() or fallback

    def request_image(self, prompt: str) -> str | None:
        """
        POST the prompt to the external image endpoint.

        Side Effects:
            - HTTP POST to IMAGE_GEN_ENDPOINT when configured
        """
        if not self.endpoint:
            return None

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            response = self.session.post(
                self.endpoint, json={"prompt": prompt}, headers=headers, timeout=self.timeout_seconds
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("Image generation request failed: %s", e)
            return None

        image_url = payload.get("imageUrl") if isinstance(payload, dict) else None
        return image_url if isinstance(image_url, str) and image_url else None

    def create(self, date: str, section: str, keywords: list[str]) -> GeneratedCover:
        prompt = self.build_prompt(date, section, keywords)
        image_url = self.request_image(prompt)
        if image_url is None:
            counter("covers.image.fallback")
            image_url = fallback_svg_data_uri(prompt, section)
        return GeneratedCover(prompt=prompt, image_url=image_url)
