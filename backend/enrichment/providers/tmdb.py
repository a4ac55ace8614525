"""
TMDB film catalog binding.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..schemas import ExternalCatalogItem
from .base import MAX_RESULTS, CatalogProvider, ProviderResponseError, extract_year, names

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
CAST_LIMIT = 5


class TmdbProvider(CatalogProvider):
    media_type = "movie"
    base_url = "https://api.themoviedb.org/3"

    def __init__(
        self,
        client: httpx.Client,
        api_key: Optional[str] = None,
        *,
        language: str = "ko-KR",
    ) -> None:
        super().__init__(client, api_key)
        self.language = language

    def search(self, query: str) -> List[ExternalCatalogItem]:
        if not self.enabled:
            return []

        payload = self._get_json(
            "/search/movie",
            {
                "api_key": self.api_key,
                "query": query,
                "language": self.language,
                "page": 1,
            },
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
                    title=entry.get("title") or entry.get("original_title") or "",
                    type="movie",
                    year=extract_year(entry.get("release_date")),
                    poster_url=build_poster_url(entry.get("poster_path")),
                    overview=entry.get("overview") or None,
                )
            )
        return items

    def fetch_details(
        self, item_id: str, known: Optional[ExternalCatalogItem] = None
    ) -> Dict[str, Any]:
        if not self.enabled:
            return {}

        details: Dict[str, Any] = {}
        # Movie facts and credits come from separate endpoints; either may fail alone.
        try:
            details.update(self._movie_facts(item_id))
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("TMDB movie lookup failed for %s: %s", item_id, exc)
        try:
            details.update(self._credits(item_id))
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("TMDB credits lookup failed for %s: %s", item_id, exc)
        return details

    def _movie_facts(self, item_id: str) -> Dict[str, Any]:
        payload = self._get_json(
            f"/movie/{item_id}", {"api_key": self.api_key, "language": self.language}
        )
        facts: Dict[str, Any] = {}
        genres = names(payload.get("genres"))
        if genres:
            facts["genres"] = genres
        if payload.get("runtime"):
            facts["runtime"] = payload["runtime"]
        collection = payload.get("belongs_to_collection")
        if isinstance(collection, dict) and collection.get("name"):
            facts["collection"] = collection["name"]
        return facts

    def _credits(self, item_id: str) -> Dict[str, Any]:
        payload = self._get_json(
            f"/movie/{item_id}/credits",
            {"api_key": self.api_key, "language": self.language},
        )
        crew = payload.get("crew")
        cast = payload.get("cast")
        if crew is not None and not isinstance(crew, list):
            raise ProviderResponseError("TMDB credits crew is not a list")

        credits: Dict[str, Any] = {}
        for member in crew or []:
            if isinstance(member, dict) and member.get("job") == "Director" and member.get("name"):
                credits["director"] = member["name"]
                break
        cast_names = names(cast)[:CAST_LIMIT]
        if cast_names:
            credits["cast"] = cast_names
        return credits


def build_poster_url(poster_path: Optional[str]) -> Optional[str]:
    if not poster_path:
        return None
    return f"{IMAGE_BASE_URL}{poster_path}"
