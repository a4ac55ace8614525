"""
Mood tag generation backed by the Gemini text model.

The model is asked for a bare JSON object. Replies are decoded on a best
effort basis: code fences are stripped, the remainder is parsed, and any
failure collapses to ``TagResult.default()`` so callers never see an error.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

from .schemas import HEX_COLOR_PATTERN, TagResult

logger = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-1.5-flash"
OVERVIEW_LIMIT = 300
MOOD_COUNT = 5

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

_LEADING_FENCE = re.compile(r"^\s*```[A-Za-z0-9_-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```\s*$")


class TagDecodeError(ValueError):
    """Raised when a model reply cannot be turned into a ``TagResult``."""


def strip_code_fence(text: str) -> str:
    """Remove a wrapping ```` ```json ... ``` ```` block if present."""

    cleaned = _LEADING_FENCE.sub("", text, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_tag_response(text: Optional[str]) -> TagResult:
    """Decode a raw model reply into a ``TagResult``.

    Raises ``TagDecodeError`` when the reply is empty, not JSON, not an
    object, or carries a non-list ``moods`` value. A missing ``moods`` key
    yields no tags and a missing or malformed ``themeColor`` yields the
    default accent colour.
    """

    if not text or not text.strip():
        raise TagDecodeError("empty model response")

    cleaned = strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise TagDecodeError(f"model response is not JSON: {exc.msg}") from exc

    if not isinstance(data, dict):
        raise TagDecodeError("model response is not a JSON object")

    raw_moods = data.get("moods")
    if raw_moods is None:
        raw_moods = []
    if not isinstance(raw_moods, list):
        raise TagDecodeError("moods must be a list")

    moods = [mood.strip() for mood in raw_moods if isinstance(mood, str) and mood.strip()]

    color = data.get("themeColor") or data.get("theme_color")
    result = TagResult.default()
    if isinstance(color, str) and HEX_COLOR_PATTERN.match(color.strip()):
        result.theme_color = color.strip()
    result.moods = moods[:MOOD_COUNT]
    return result


def build_tag_prompt(title: str, overview: Optional[str] = None, *, language: str = "Korean") -> str:
    """Return the instruction sent to the model for one title."""

    subject = "media item" if overview else "title"
    description = ""
    if overview:
        description = f' with description: "{overview[:OVERVIEW_LIMIT]}"'

    return (
        f'Analyze the {subject} "{title}"{description}.\n'
        "If the title and the description suggest different moods, "
        "follow the description and the actual content, not the literal words of the title.\n"
        f"Generate exactly {MOOD_COUNT} short mood tags in {language}, written as nouns or noun phrases, "
        "and one hex theme color code (#RRGGBB) that fits the vibe.\n"
        "Return ONLY a JSON object with this format:\n"
        '{"moods": ["tag1", "tag2", "tag3", "tag4", "tag5"], "themeColor": "#hexcode"}\n'
        "Do not include markdown formatting or explanations."
    )


class TagGenerator:
    """Call the generative model and always hand back a usable ``TagResult``."""

    def __init__(
        self,
        client: httpx.Client,
        api_key: Optional[str] = None,
        *,
        model: str = DEFAULT_MODEL,
        language: str = "Korean",
        endpoint: str = GEMINI_ENDPOINT,
    ) -> None:
        self.client = client
        self.api_key = api_key
        self.model = model
        self.language = language
        self.endpoint = endpoint.rstrip("/")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def generate(self, title: str, overview: Optional[str] = None) -> TagResult:
        if not self.enabled:
            logger.warning("Gemini API key missing; returning default tags")
            return TagResult.default()
        if not title:
            return TagResult.default()

        prompt = build_tag_prompt(title, overview, language=self.language)
        try:
            text = self._complete(prompt)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Tag generation failed for %r: %s", title, exc)
            return TagResult.default()

        logger.debug("Raw tag response for %r: %s", title, text)
        try:
            return parse_tag_response(text)
        except TagDecodeError as exc:
            logger.warning("Could not decode tag response for %r: %s", title, exc)
            return TagResult.default()

    def _complete(self, prompt: str) -> str:
        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_NONE"}
                for category in SAFETY_CATEGORIES
            ],
        }
        response = self.client.post(
            f"{self.endpoint}/models/{self.model}:generateContent",
            params={"key": self.api_key},
            json=body,
        )
        response.raise_for_status()
        payload = response.json()

        if not isinstance(payload, dict):
            raise TagDecodeError("model reply is not an object")
        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise TagDecodeError("model returned no candidates")
        candidate = candidates[0]
        content = candidate.get("content") if isinstance(candidate, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise TagDecodeError("model candidate has no content parts")
        return "".join(part.get("text", "") for part in parts if isinstance(part, dict))
