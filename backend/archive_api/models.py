"""Database models for the Archive API."""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


class ConfigRecord(SQLModel, table=True):
    """Persisted configuration row holding provider credentials."""

    __tablename__ = "archive_config"

    id: int | None = Field(default=None, primary_key=True)
    tmdb_api_key: str | None = Field(default=None)
    rawg_api_key: str | None = Field(default=None)
    google_books_api_key: str | None = Field(default=None)
    gemini_api_key: str | None = Field(default=None)
    gemini_model: str = Field(default="gemini-1.5-flash")
    tag_language: str = Field(default="Korean")
    catalog_language: str = Field(default="ko-KR")
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)


class UserRecord(SQLModel, table=True):
    """Account identity resolved from bearer tokens."""

    __tablename__ = "users"

    id: str = Field(primary_key=True, index=True)
    display_name: str | None = Field(default=None)
    email: str | None = Field(default=None, index=True)
    api_token: str = Field(index=True, unique=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)


class MediaRecord(SQLModel, table=True):
    """Catalog-level title shared by every user who logs it."""

    __tablename__ = "media_items"

    id: str = Field(primary_key=True, index=True)
    title: str = Field(index=True)
    media_type: str = Field(index=True)
    release_date: str | None = Field(default=None)
    poster_url: str | None = Field(default=None)
    overview: str | None = Field(default=None)
    ai_metadata: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    # SQLModel reserves ``metadata`` on the class, so the attribute is renamed.
    details: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column("metadata", JSON, nullable=False)
    )
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)


class EntryRecord(SQLModel, table=True):
    """One user's log for a media item."""

    __tablename__ = "user_logs"

    id: str = Field(primary_key=True, index=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    media_id: str = Field(index=True, foreign_key="media_items.id")
    status: str = Field(default="wishlist", index=True)
    rating: float = Field(default=0.0)
    moods: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    start_date: date | None = Field(default=None)
    end_date: date | None = Field(default=None)
    one_line_review: str | None = Field(default=None)
    detailed_review: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)
