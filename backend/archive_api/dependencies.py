"""FastAPI dependencies for the Archive API."""
import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .schemas import UserModel
from .services.enrichment_service import EnrichmentService
from .services.notifier import ChangeNotifier
from .state import AppState
from .stores.config_store import ConfigStore
from .stores.entry_store import EntryStore
from .stores.user_store import UserStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_state(request: Request) -> AppState:
    """Resolve the shared application state from the FastAPI request."""
    return request.app.state.app_state


def get_config_store(app_state: AppState = Depends(get_app_state)) -> ConfigStore:
    """Return the configuration store dependency."""
    return app_state.config_store


def get_user_store(app_state: AppState = Depends(get_app_state)) -> UserStore:
    """Return the account store dependency."""
    return app_state.user_store


def get_entry_store(app_state: AppState = Depends(get_app_state)) -> EntryStore:
    """Return the entry store dependency."""
    return app_state.entry_store


def get_notifier(app_state: AppState = Depends(get_app_state)) -> ChangeNotifier:
    """Return the change notifier dependency."""
    return app_state.notifier


def get_enrichment_service(app_state: AppState = Depends(get_app_state)) -> EnrichmentService:
    """Return the catalog and tagging service dependency."""
    return app_state.enrichment


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    user_store: UserStore = Depends(get_user_store),
) -> UserModel:
    """Resolve the caller from its bearer token, failing with 401 otherwise."""

    token = credentials.credentials if credentials else None
    user = user_store.authenticate(token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    app_state: AppState = Depends(get_app_state),
) -> None:
    """Allow only the configured admin token; account tokens are forbidden."""

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    admin_token = app_state.settings.admin_token
    if not admin_token or not secrets.compare_digest(
        credentials.credentials.encode(), admin_token.encode()
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
