"""Pydantic shapes produced by the catalog and tagging layers."""
from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, Field

MediaType = Literal["movie", "game", "book"]

DEFAULT_THEME_COLOR = "#a855f7"
HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


class ExternalCatalogItem(BaseModel):
    """Normalized search hit returned by any catalog provider."""

    id: str = Field(..., description="Provider-specific identifier.")
    title: str
    type: MediaType
    year: str | None = Field(default=None, description="Four digit release year.")
    poster_url: str | None = None
    overview: str | None = None
    author: str | None = Field(default=None, description="First listed author (books).")
    publisher: str | None = Field(default=None, description="Publisher (books).")
    genres: list[str] | None = Field(default=None, description="Categories (books).")


class TagResult(BaseModel):
    """Mood tags and accent colour suggested by the generative model."""

    moods: list[str] = Field(default_factory=list)
    theme_color: str = Field(default=DEFAULT_THEME_COLOR)

    @classmethod
    def default(cls) -> "TagResult":
        """Return the fallback record used whenever generation fails."""

        return cls(moods=[], theme_color=DEFAULT_THEME_COLOR)


class EnrichmentResult(BaseModel):
    """Merged output of a detail fetch and a tag generation."""

    details: dict[str, Any] = Field(default_factory=dict)
    tags: TagResult = Field(default_factory=TagResult.default)
