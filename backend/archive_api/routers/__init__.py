"""Router exports for the Archive API."""
from . import catalog, config, entries, health, users

__all__ = ["catalog", "config", "entries", "health", "users"]
