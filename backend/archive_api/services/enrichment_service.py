"""Bind the enrichment package to the persisted provider configuration."""
from __future__ import annotations

import httpx

from ...enrichment import (
    CatalogAdapter,
    EnrichmentOrchestrator,
    EnrichmentResult,
    ExternalCatalogItem,
    TagGenerator,
    TagResult,
)
from ..stores.config_store import ConfigStore


class EnrichmentService:
    """Build provider clients from the current configuration on every call.

    Credentials are read per request so that ``PUT /config`` takes effect
    without a restart.
    """

    def __init__(self, config_store: ConfigStore, client: httpx.Client) -> None:
        self._config_store = config_store
        self._client = client

    def catalog(self) -> CatalogAdapter:
        config = self._config_store.read()
        return CatalogAdapter.from_credentials(
            self._client,
            tmdb_api_key=config.tmdb_api_key,
            rawg_api_key=config.rawg_api_key,
            google_books_api_key=config.google_books_api_key,
            language=config.catalog_language,
        )

    def tagger(self) -> TagGenerator:
        config = self._config_store.read()
        return TagGenerator(
            self._client,
            config.gemini_api_key,
            model=config.gemini_model,
            language=config.tag_language,
        )

    def search(self, query: str, media_type: str) -> list[ExternalCatalogItem]:
        return self.catalog().search(query, media_type)

    def generate_tags(self, title: str, overview: str | None = None) -> TagResult:
        return self.tagger().generate(title, overview)

    def enrich(self, item: ExternalCatalogItem) -> EnrichmentResult:
        orchestrator = EnrichmentOrchestrator(self.catalog(), self.tagger())
        return orchestrator.enrich(item)
