"""Service layer helpers for external integrations."""

from .enrichment_service import EnrichmentService
from .notifier import ChangeNotifier, NotifierError

__all__ = [
    "ChangeNotifier",
    "EnrichmentService",
    "NotifierError",
]
