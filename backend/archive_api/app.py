"""Application factory for the Nua Archive API."""
import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import catalog, config, entries, health, users
from .settings import ArchiveSettings
from .state import AppState


def create_app(
    settings: ArchiveSettings | None = None,
    *,
    http_transport: httpx.BaseTransport | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application."""

    resolved_settings = settings or ArchiveSettings()
    app_state = AppState(settings=resolved_settings, http_transport=http_transport)

    app = FastAPI(title="Nua Archive API", version="0.1.0")
    app.state.app_state = app_state
    app.state.settings = app_state.settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in (
        health.router,
        users.router,
        config.router,
        catalog.router,
        entries.router,
    ):
        app.include_router(router)

    return app
