"""Nua Archive API: personal media log with catalog and mood tag enrichment."""

from .app import create_app

__all__ = ["create_app"]
