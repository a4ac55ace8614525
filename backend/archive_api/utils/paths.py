"""Filesystem helpers for archive storage paths."""
from __future__ import annotations

from pathlib import Path

from platformdirs import user_data_dir


APP_NAME = "NuaArchive"
APP_AUTHOR = "Nua"


def default_data_directory() -> Path:
    """Return the platform-appropriate data directory for the archive."""

    return Path(user_data_dir(APP_NAME, APP_AUTHOR))


def default_database_url() -> str:
    """Return a SQLite URL located in the platform data directory."""

    return f"sqlite:///{(default_data_directory() / 'archive.db').as_posix()}"


def ensure_parent_directory(path: str) -> Path:
    """Expand a file path and create its parent directory if missing."""

    resolved = Path(path).expanduser()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved
