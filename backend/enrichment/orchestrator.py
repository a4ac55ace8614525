"""
Enrichment of a selected catalog hit with detail fields and mood tags.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from .catalog import CatalogAdapter
from .schemas import EnrichmentResult, ExternalCatalogItem, TagResult
from .tagging import TagGenerator

logger = logging.getLogger(__name__)


class EnrichmentOrchestrator:
    """Fetch provider details and generate tags side by side."""

    def __init__(self, catalog: CatalogAdapter, tagger: TagGenerator) -> None:
        self.catalog = catalog
        self.tagger = tagger

    def enrich(self, item: ExternalCatalogItem) -> EnrichmentResult:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="enrich") as pool:
            details_future = pool.submit(
                self.catalog.fetch_details, item.id, item.type, item
            )
            tags_future = pool.submit(self.tagger.generate, item.title, item.overview)

        # Both sides already absorb provider errors; anything left is a bug on
        # one side and must not cost the other side its result.
        try:
            details = details_future.result()
        except Exception:
            logger.exception("Detail fetch crashed for %s %s", item.type, item.id)
            details = {}
        try:
            tags = tags_future.result()
        except Exception:
            logger.exception("Tag generation crashed for %r", item.title)
            tags = TagResult.default()

        return EnrichmentResult(details=details, tags=tags)
