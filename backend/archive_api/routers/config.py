"""Configuration endpoints, restricted to the admin token."""
from fastapi import APIRouter, Depends

from ..dependencies import get_config_store, require_admin
from ..schemas import ConfigModel, ConfigUpdate
from ..stores.config_store import ConfigStore, masked

router = APIRouter(prefix="/config", tags=["config"], dependencies=[Depends(require_admin)])


@router.get("", response_model=ConfigModel)
def read_config(store: ConfigStore = Depends(get_config_store)) -> ConfigModel:
    """Return the current provider configuration with credentials masked."""
    return masked(store.read())


@router.put("", response_model=ConfigModel)
def update_config(
    update: ConfigUpdate,
    store: ConfigStore = Depends(get_config_store),
) -> ConfigModel:
    """Update the provider configuration and return it with credentials masked."""

    payload = update.model_copy()
    for field in ("gemini_model", "tag_language", "catalog_language"):
        value = getattr(payload, field)
        if value is not None and not value.strip():
            setattr(payload, field, None)

    return masked(store.update(payload))
