"""
Shared plumbing for catalog provider bindings.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from ..schemas import ExternalCatalogItem

MAX_RESULTS = 5


class ProviderResponseError(ValueError):
    """Raised when a provider answers with a payload of an unexpected shape."""


class CatalogProvider:
    """Base class for one third-party catalog (film, game or book)."""

    media_type: str = ""
    base_url: str = ""

    def __init__(self, client: httpx.Client, api_key: Optional[str] = None) -> None:
        self.client = client
        self.api_key = api_key

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def search(self, query: str) -> List[ExternalCatalogItem]:
        raise NotImplementedError

    def fetch_details(
        self, item_id: str, known: Optional[ExternalCatalogItem] = None
    ) -> Dict[str, Any]:
        raise NotImplementedError

    def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        response = self.client.get(f"{self.base_url}{path}", params=params)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ProviderResponseError(f"{self.media_type} provider returned a non-object body")
        return payload


def extract_year(value: Optional[str]) -> Optional[str]:
    """Truncate a provider date string (``YYYY-MM-DD``) to its year."""

    if not value or not isinstance(value, str):
        return None
    year = value[:4]
    return year if year.isdigit() else None


def names(entries: Any, key: str = "name") -> List[str]:
    """Collect ``key`` from a list of objects, skipping malformed rows."""

    if not isinstance(entries, list):
        return []
    collected: List[str] = []
    for entry in entries:
        if isinstance(entry, dict) and entry.get(key):
            collected.append(str(entry[key]))
    return collected
