"""
Google Books catalog binding.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..schemas import ExternalCatalogItem
from .base import MAX_RESULTS, CatalogProvider, extract_year


class GoogleBooksProvider(CatalogProvider):
    media_type = "book"
    base_url = "https://www.googleapis.com/books/v1"

    @property
    def enabled(self) -> bool:
        # The key only raises quota; anonymous requests are accepted.
        return True

    def search(self, query: str) -> List[ExternalCatalogItem]:
        params: Dict[str, Any] = {"q": query, "maxResults": MAX_RESULTS}
        if self.api_key:
            params["key"] = self.api_key

        payload = self._get_json("/volumes", params)
        volumes = payload.get("items")
        if not isinstance(volumes, list):
            return []

        items: List[ExternalCatalogItem] = []
        for entry in volumes[:MAX_RESULTS]:
            if not isinstance(entry, dict) or not entry.get("id"):
                continue
            info = entry.get("volumeInfo") or {}
            authors = info.get("authors") or []
            categories = info.get("categories") or None
            items.append(
                ExternalCatalogItem(
                    id=str(entry["id"]),
                    title=info.get("title") or "",
                    type="book",
                    year=extract_year(info.get("publishedDate")),
                    poster_url=secure_thumbnail((info.get("imageLinks") or {}).get("thumbnail")),
                    overview=info.get("description") or None,
                    author=authors[0] if authors else None,
                    publisher=info.get("publisher") or None,
                    genres=list(categories) if categories else None,
                )
            )
        return items

    def fetch_details(
        self, item_id: str, known: Optional[ExternalCatalogItem] = None
    ) -> Dict[str, Any]:
        """Pass through what the search hit already carried; no request is made."""

        if known is None:
            return {}
        details: Dict[str, Any] = {}
        if known.author:
            details["author"] = known.author
        if known.publisher:
            details["publisher"] = known.publisher
        if known.genres:
            details["genres"] = list(known.genres)
        return details


def secure_thumbnail(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    if url.startswith("http:"):
        return "https:" + url[len("http:"):]
    return url
