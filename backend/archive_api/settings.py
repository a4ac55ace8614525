"""Runtime configuration for the Archive API."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.paths import default_database_url


class ArchiveSettings(BaseSettings):
    """Environment-aware settings for the Archive API service."""

    default_tmdb_api_key: str | None = Field(
        default=None, description="TMDB API key used for movie search and details."
    )
    default_rawg_api_key: str | None = Field(
        default=None, description="RAWG API key used for game search and details."
    )
    default_google_books_api_key: str | None = Field(
        default=None, description="Optional Google Books API key."
    )
    default_gemini_api_key: str | None = Field(
        default=None, description="Gemini API key used for mood tag generation."
    )
    default_gemini_model: str = Field(
        default="gemini-1.5-flash", description="Generative model used for mood tags."
    )
    default_tag_language: str = Field(
        default="Korean", description="Language the mood tags are written in."
    )
    default_catalog_language: str = Field(
        default="ko-KR", description="Locale requested from localized catalog providers."
    )
    http_timeout: float = Field(
        default=10.0, description="Timeout in seconds for outbound provider calls."
    )
    database_url: str = Field(
        default_factory=default_database_url,
        description="Connection URL for the archive database.",
    )
    database_echo: bool = Field(
        default=False, description="Enable SQL echo for debugging queries."
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Connection URL for the Redis change-notification channel.",
    )
    events_channel_prefix: str = Field(
        default="nua-archive",
        description="Prefix applied to per-user change notification channels.",
    )
    admin_token: str | None = Field(
        default=None,
        description="Bearer token allowed to read and change provider credentials; "
        "the config endpoints refuse every caller when unset.",
    )

    model_config = SettingsConfigDict(
        env_prefix="NUA_ARCHIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )
