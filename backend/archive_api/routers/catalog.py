"""Catalog search, enrichment and tag endpoints."""
from fastapi import APIRouter, Depends, Query

from ..dependencies import get_current_user, get_enrichment_service
from ..schemas import (
    EnrichmentResult,
    ExternalCatalogItem,
    MediaType,
    TagRequest,
    TagResult,
)
from ..services.enrichment_service import EnrichmentService

router = APIRouter(tags=["catalog"], dependencies=[Depends(get_current_user)])


@router.get("/catalog/search", response_model=list[ExternalCatalogItem])
def search_catalog(
    query: str = Query(default="", description="Free-text title search."),
    media_type: MediaType = Query(
        default="movie", alias="type", description="Catalog to query (movie, game or book)."
    ),
    service: EnrichmentService = Depends(get_enrichment_service),
) -> list[ExternalCatalogItem]:
    """Return up to five catalog hits; provider failures yield an empty list."""

    return service.search(query, media_type)


@router.post("/catalog/enrich", response_model=EnrichmentResult)
def enrich_item(
    item: ExternalCatalogItem,
    service: EnrichmentService = Depends(get_enrichment_service),
) -> EnrichmentResult:
    """Fetch detail fields and mood tags for a selected catalog hit."""

    return service.enrich(item)


@router.post("/tags", response_model=TagResult)
def generate_tags(
    request: TagRequest,
    service: EnrichmentService = Depends(get_enrichment_service),
) -> TagResult:
    """Generate mood tags for an arbitrary title."""

    return service.generate_tags(request.title, request.overview)
