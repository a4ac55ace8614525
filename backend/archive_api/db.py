"""Database helpers for the Archive API."""
from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from .models import ConfigRecord
from .schemas import ConfigModel
from .settings import ArchiveSettings
from .utils.paths import ensure_parent_directory


def _ensure_sqlite_path(database_url: str) -> None:
    """Create parent directories when using a SQLite URL."""

    if database_url.startswith("sqlite:///"):
        path_part = database_url.removeprefix("sqlite:///").split("?")[0]
        if path_part and path_part != ":memory:":
            ensure_parent_directory(path_part)


def create_engine_from_settings(settings: ArchiveSettings) -> Engine:
    """Create a SQLModel engine using archive settings."""

    _ensure_sqlite_path(settings.database_url)
    connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
    return create_engine(settings.database_url, echo=settings.database_echo, connect_args=connect_args)


def init_database(engine: Engine, settings: ArchiveSettings) -> None:
    """Create tables and seed default configuration from the environment."""

    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        record = session.get(ConfigRecord, 1)
        if record is None:
            defaults = ConfigRecord(
                id=1,
                tmdb_api_key=settings.default_tmdb_api_key,
                rawg_api_key=settings.default_rawg_api_key,
                google_books_api_key=settings.default_google_books_api_key,
                gemini_api_key=settings.default_gemini_api_key,
                gemini_model=settings.default_gemini_model,
                tag_language=settings.default_tag_language,
                catalog_language=settings.default_catalog_language,
            )
            session.add(defaults)
            session.commit()


def to_config_model(record: ConfigRecord) -> ConfigModel:
    """Convert the configuration row into its API model."""

    return ConfigModel(
        tmdb_api_key=record.tmdb_api_key,
        rawg_api_key=record.rawg_api_key,
        google_books_api_key=record.google_books_api_key,
        gemini_api_key=record.gemini_api_key,
        gemini_model=record.gemini_model,
        tag_language=record.tag_language,
        catalog_language=record.catalog_language,
    )


def read_config(session: Session) -> ConfigModel:
    """Fetch the persisted configuration as a Pydantic model."""

    record = session.get(ConfigRecord, 1)
    if record is None:
        raise RuntimeError("Configuration record missing from database")
    return to_config_model(record)
