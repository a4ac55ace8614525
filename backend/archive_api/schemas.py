"""Pydantic models exposed by the Archive API."""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from ..enrichment.schemas import (  # noqa: F401 - re-exported for routers
    EnrichmentResult,
    ExternalCatalogItem,
    MediaType,
    TagResult,
)

EntryStatus = Literal["wishlist", "in-progress", "completed"]

EntrySortOption = Literal["updated", "rating", "title"]


class NotifierHealthStatus(BaseModel):
    """Represents Redis change-channel connectivity status."""

    status: Literal["ok", "error"] = Field(default="ok")
    detail: str | None = Field(
        default=None, description="Optional diagnostic message when Redis is unavailable."
    )


class HealthStatus(BaseModel):
    """Service health payload."""

    status: Literal["ok"] = Field(default="ok")
    version: str = Field(default="0.1.0", description="Semantic version of the API service.")
    notifier: NotifierHealthStatus = Field(
        default_factory=NotifierHealthStatus,
        description="Health information for the change notification channel.",
    )


class ConfigModel(BaseModel):
    """Represents the persisted provider configuration."""

    tmdb_api_key: str | None = Field(default=None, description="TMDB API key if configured.")
    rawg_api_key: str | None = Field(default=None, description="RAWG API key if configured.")
    google_books_api_key: str | None = Field(
        default=None, description="Google Books API key if configured."
    )
    gemini_api_key: str | None = Field(default=None, description="Gemini API key if configured.")
    gemini_model: str = Field(default="gemini-1.5-flash", description="Model used for mood tags.")
    tag_language: str = Field(default="Korean", description="Language of generated mood tags.")
    catalog_language: str = Field(
        default="ko-KR", description="Locale requested from localized catalogs."
    )


class ConfigUpdate(BaseModel):
    """Subset of configuration fields allowed to be updated at runtime."""

    tmdb_api_key: str | None = Field(default=None)
    rawg_api_key: str | None = Field(default=None)
    google_books_api_key: str | None = Field(default=None)
    gemini_api_key: str | None = Field(default=None)
    gemini_model: str | None = Field(default=None)
    tag_language: str | None = Field(default=None)
    catalog_language: str | None = Field(default=None)


class UserCreate(BaseModel):
    """Payload used to register an account."""

    display_name: str | None = Field(default=None)
    email: str | None = Field(default=None)


class UserModel(BaseModel):
    """Public view of an account."""

    id: str
    display_name: str | None = None
    email: str | None = None
    created_at: datetime


class UserTokenModel(UserModel):
    """Account view returned once at registration, including its token."""

    api_token: str


class TagRequest(BaseModel):
    """Payload for an ad-hoc tag generation."""

    title: str = Field(..., min_length=1)
    overview: str | None = None


class EntryCreate(BaseModel):
    """Payload used to add a title to the caller's archive."""

    title: str = Field(..., min_length=1)
    type: MediaType
    media_id: str | None = Field(
        default=None, description="Existing media item to link instead of resolving by title."
    )
    poster_url: str | None = None
    overview: str | None = None
    release_date: str | None = None
    details: dict[str, Any] = Field(
        default_factory=dict, description="Provider detail fields stored on new media items."
    )
    ai_metadata: dict[str, Any] = Field(
        default_factory=dict, description="Tag generation output stored on new media items."
    )
    status: EntryStatus = "wishlist"
    rating: float = Field(default=0.0, ge=0, le=5, multiple_of=0.5)
    moods: list[str] = Field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None
    one_line_review: str | None = None
    detailed_review: str | None = None


class EntryUpdate(BaseModel):
    """Fields of a log the owner may change; unset fields are left untouched."""

    status: EntryStatus | None = None
    rating: float | None = Field(default=None, ge=0, le=5, multiple_of=0.5)
    moods: list[str] | None = None
    start_date: date | None = None
    end_date: date | None = None
    one_line_review: str | None = None
    detailed_review: str | None = None


class EntryModel(BaseModel):
    """A user log joined with its shared media item."""

    id: str
    media_id: str
    title: str
    type: MediaType
    poster_url: str | None = None
    overview: str | None = None
    release_date: str | None = None
    status: EntryStatus
    rating: float
    moods: list[str] = Field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None
    one_line_review: str | None = None
    detailed_review: str | None = None
    director: str | None = None
    cast: list[str] | None = None
    runtime: int | None = None
    developer: str | None = None
    publisher: str | None = None
    platforms: list[str] | None = None
    stores: list[str] | None = None
    author: str | None = None
    genres: list[str] | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    theme_color: str | None = None
    created_at: datetime
    updated_at: datetime


class EntryListModel(BaseModel):
    """Paginated list container for entry responses."""

    items: list[EntryModel]
    total: int
    page: int
    page_size: int


class EntryStatsModel(BaseModel):
    """Dashboard counters for the caller's archive."""

    total: int = Field(description="Number of entries.")
    this_month: int = Field(description="Entries created in the current calendar month.")
    in_progress: int = Field(description="Entries with status in-progress.")
    avg_rating: float = Field(description="Average of non-zero ratings, one decimal place.")


class EntryEvent(BaseModel):
    """Change notification published on the owner's channel."""

    event: Literal["INSERT", "UPDATE", "DELETE"]
    entry_id: str
    user_id: str
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
