"""Shared state container for the Archive API."""
from __future__ import annotations

from dataclasses import dataclass

import httpx
from sqlalchemy.engine import Engine

from .db import create_engine_from_settings, init_database
from .services.enrichment_service import EnrichmentService
from .services.notifier import ChangeNotifier
from .settings import ArchiveSettings
from .stores.config_store import ConfigStore
from .stores.entry_store import EntryStore
from .stores.user_store import UserStore


@dataclass(slots=True)
class AppState:
    """Encapsulates mutable application state shared across routers."""

    settings: ArchiveSettings
    config_store: ConfigStore
    user_store: UserStore
    entry_store: EntryStore
    notifier: ChangeNotifier
    enrichment: EnrichmentService
    http_client: httpx.Client
    engine: Engine

    def __init__(
        self,
        settings: ArchiveSettings,
        *,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.engine = create_engine_from_settings(settings)
        init_database(self.engine, settings)
        self.notifier = ChangeNotifier(settings)
        self.config_store = ConfigStore(self.engine)
        self.user_store = UserStore(self.engine)
        self.entry_store = EntryStore(self.engine, notifier=self.notifier)
        self.http_client = httpx.Client(timeout=settings.http_timeout, transport=http_transport)
        self.enrichment = EnrichmentService(self.config_store, self.http_client)
