"""Database-backed configuration store for the Archive API."""
from __future__ import annotations

from threading import Lock
from typing import Any

from sqlmodel import Session, select

from ..db import read_config, to_config_model
from ..models import ConfigRecord, utcnow
from ..schemas import ConfigModel, ConfigUpdate


class ConfigStore:
    """Thread-safe interface over the persisted provider configuration."""

    def __init__(self, engine) -> None:
        self._engine = engine
        self._lock = Lock()

    def read(self) -> ConfigModel:
        """Return the current configuration model."""

        with Session(self._engine) as session:
            return read_config(session)

    def update(self, update: ConfigUpdate) -> ConfigModel:
        """Apply updates to the stored configuration.

        Fields sent explicitly as ``null`` clear the stored value, which is how
        a credential is revoked.
        """

        update_payload = _extract_update(update)
        with self._lock, Session(self._engine) as session:
            record = session.exec(select(ConfigRecord).where(ConfigRecord.id == 1)).one_or_none()
            if record is None:
                raise RuntimeError("Configuration record missing from database")
            for key, value in update_payload.items():
                setattr(record, key, value)
            record.updated_at = utcnow()
            session.add(record)
            session.commit()
            session.refresh(record)
            return to_config_model(record)


_REQUIRED_FIELDS = {"gemini_model", "tag_language", "catalog_language"}


def _extract_update(update: ConfigUpdate) -> dict[str, Any]:
    """Extract a payload suitable for model updates."""

    payload = update.model_dump(exclude_unset=True)
    return {
        key: value
        for key, value in payload.items()
        if value is not None or key not in _REQUIRED_FIELDS
    }


_SECRET_FIELDS = ("tmdb_api_key", "rawg_api_key", "google_books_api_key", "gemini_api_key")


def mask_secret(value: str | None) -> str | None:
    """Keep the first and last two characters of a credential."""

    if value is None:
        return None
    if len(value) > 4:
        return f"{value[:2]}***{value[-2:]}"
    return "***"


def masked(config: ConfigModel) -> ConfigModel:
    """Return a copy of ``config`` safe to send over the wire."""

    return config.model_copy(
        update={field: mask_secret(getattr(config, field)) for field in _SECRET_FIELDS}
    )
