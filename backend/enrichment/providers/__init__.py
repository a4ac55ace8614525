"""Catalog provider bindings, one per media type."""

from .base import CatalogProvider, ProviderResponseError
from .google_books import GoogleBooksProvider
from .rawg import RawgProvider
from .tmdb import TmdbProvider

__all__ = [
    "CatalogProvider",
    "GoogleBooksProvider",
    "ProviderResponseError",
    "RawgProvider",
    "TmdbProvider",
]
