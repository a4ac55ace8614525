"""
RAWG game catalog binding.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..schemas import ExternalCatalogItem
from .base import MAX_RESULTS, CatalogProvider, extract_year, names


class RawgProvider(CatalogProvider):
    media_type = "game"
    base_url = "https://api.rawg.io/api"

    def search(self, query: str) -> List[ExternalCatalogItem]:
        if not self.enabled:
            return []

        payload = self._get_json(
            "/games", {"key": self.api_key, "search": query, "page_size": MAX_RESULTS}
        )
        results = payload.get("results")
        if not isinstance(results, list):
            return []

        items: List[ExternalCatalogItem] = []
        for entry in results[:MAX_RESULTS]:
            if not isinstance(entry, dict) or entry.get("id") is None:
                continue
            items.append(
                ExternalCatalogItem(
                    id=str(entry["id"]),
                    title=entry.get("name") or "",
                    type="game",
                    year=extract_year(entry.get("released")),
                    poster_url=entry.get("background_image") or None,
                    # the list endpoint carries no description
                    overview="",
                )
            )
        return items

    def fetch_details(
        self, item_id: str, known: Optional[ExternalCatalogItem] = None
    ) -> Dict[str, Any]:
        if not self.enabled:
            return {}

        payload = self._get_json(f"/games/{item_id}", {"key": self.api_key})

        details: Dict[str, Any] = {}
        developers = names(payload.get("developers"))
        if developers:
            details["developer"] = developers[0]
        publishers = names(payload.get("publishers"))
        if publishers:
            details["publisher"] = publishers[0]
        genres = names(payload.get("genres"))
        if genres:
            details["genres"] = genres
        platforms = [
            entry["platform"]["name"]
            for entry in payload.get("platforms") or []
            if isinstance(entry, dict)
            and isinstance(entry.get("platform"), dict)
            and entry["platform"].get("name")
        ]
        if platforms:
            details["platforms"] = platforms
        stores = [
            entry["store"]["name"]
            for entry in payload.get("stores") or []
            if isinstance(entry, dict)
            and isinstance(entry.get("store"), dict)
            and entry["store"].get("name")
        ]
        if stores:
            details["stores"] = stores
        if payload.get("released"):
            details["released"] = payload["released"]
        if payload.get("game_series_count") is not None:
            details["game_series_count"] = payload["game_series_count"]
        return details
