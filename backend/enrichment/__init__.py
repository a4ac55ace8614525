"""
Catalog metadata and mood tag enrichment for the archive.

This package bundles the third-party catalog bindings (TMDB, RAWG,
Google Books), the Gemini-backed tag generator and the orchestrator that
merges both into one enrichment result.
"""

from .catalog import CatalogAdapter
from .orchestrator import EnrichmentOrchestrator
from .schemas import EnrichmentResult, ExternalCatalogItem, TagResult
from .tagging import TagDecodeError, TagGenerator, parse_tag_response

__all__ = [
    "CatalogAdapter",
    "EnrichmentOrchestrator",
    "EnrichmentResult",
    "ExternalCatalogItem",
    "TagDecodeError",
    "TagGenerator",
    "TagResult",
    "parse_tag_response",
]
