"""Account registry and bearer token lookup."""
from __future__ import annotations

import secrets
from uuid import uuid4

from sqlmodel import Session, select

from ..models import UserRecord
from ..schemas import UserCreate, UserModel, UserTokenModel


class UserStore:
    """Create accounts and resolve API tokens to user identities."""

    def __init__(self, engine) -> None:
        self._engine = engine

    def create(self, payload: UserCreate) -> UserTokenModel:
        """Register a new account and return it with a freshly minted token."""

        record = UserRecord(
            id=uuid4().hex,
            display_name=payload.display_name,
            email=payload.email,
            api_token=secrets.token_urlsafe(32),
        )
        with Session(self._engine) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            return UserTokenModel(
                id=record.id,
                display_name=record.display_name,
                email=record.email,
                created_at=record.created_at,
                api_token=record.api_token,
            )

    def get(self, user_id: str) -> UserModel | None:
        with Session(self._engine) as session:
            record = session.get(UserRecord, user_id)
            return _to_model(record) if record else None

    def authenticate(self, token: str | None) -> UserModel | None:
        """Return the account owning ``token``, or ``None`` for unknown tokens."""

        if not token:
            return None
        with Session(self._engine) as session:
            record = session.exec(select(UserRecord).where(UserRecord.api_token == token)).first()
            return _to_model(record) if record else None


def _to_model(record: UserRecord) -> UserModel:
    return UserModel(
        id=record.id,
        display_name=record.display_name,
        email=record.email,
        created_at=record.created_at,
    )
