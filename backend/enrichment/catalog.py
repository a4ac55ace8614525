"""
Catalog adapter dispatching searches and detail lookups to one provider.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from .providers import CatalogProvider, GoogleBooksProvider, RawgProvider, TmdbProvider
from .schemas import ExternalCatalogItem

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2

# Anything a provider can raise while talking to the network or reading its payload.
PROVIDER_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError)


class CatalogAdapter:
    """Route catalog calls by media type and absorb provider failures."""

    def __init__(self, providers: Mapping[str, CatalogProvider]) -> None:
        self.providers = dict(providers)

    @classmethod
    def from_credentials(
        cls,
        client: httpx.Client,
        *,
        tmdb_api_key: Optional[str] = None,
        rawg_api_key: Optional[str] = None,
        google_books_api_key: Optional[str] = None,
        language: str = "ko-KR",
    ) -> "CatalogAdapter":
        return cls(
            {
                "movie": TmdbProvider(client, tmdb_api_key, language=language),
                "game": RawgProvider(client, rawg_api_key),
                "book": GoogleBooksProvider(client, google_books_api_key),
            }
        )

    def search(self, query: str, media_type: str) -> List[ExternalCatalogItem]:
        """Return at most five normalized hits; never raises."""

        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        provider = self.providers.get(media_type)
        if provider is None:
            return []

        try:
            return provider.search(query)
        except PROVIDER_ERRORS as exc:
            logger.warning("Catalog search failed type=%s query=%r: %s", media_type, query, exc)
            return []

    def fetch_details(
        self,
        item_id: str,
        media_type: str,
        known: Optional[ExternalCatalogItem] = None,
    ) -> Dict[str, Any]:
        """Return provider-specific detail fields, or an empty map on failure."""

        provider = self.providers.get(media_type)
        if provider is None or not item_id:
            return {}

        try:
            return provider.fetch_details(item_id, known)
        except PROVIDER_ERRORS as exc:
            logger.warning("Catalog detail fetch failed type=%s id=%s: %s", media_type, item_id, exc)
            return {}
