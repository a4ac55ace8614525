"""Persistence stores backing the Archive API."""

from .config_store import ConfigStore
from .entry_store import EntryStore, EntryStoreError
from .user_store import UserStore

__all__ = ["ConfigStore", "EntryStore", "EntryStoreError", "UserStore"]
