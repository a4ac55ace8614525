"""Account registration endpoints."""
from fastapi import APIRouter, Depends, status

from ..dependencies import get_current_user, get_user_store
from ..schemas import UserCreate, UserModel, UserTokenModel
from ..stores.user_store import UserStore

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserTokenModel, status_code=status.HTTP_201_CREATED)
def register_user(
    payload: UserCreate,
    store: UserStore = Depends(get_user_store),
) -> UserTokenModel:
    """Create an account and return its API token."""

    return store.create(payload)


@router.get("/me", response_model=UserModel)
def read_current_user(user: UserModel = Depends(get_current_user)) -> UserModel:
    """Return the account the bearer token belongs to."""

    return user
