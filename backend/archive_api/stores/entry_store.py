"""Owner-scoped persistence for archive entries and their shared media items."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterator, Sequence
from uuid import uuid4

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..models import EntryRecord, MediaRecord, utcnow
from ..schemas import (
    EntryCreate,
    EntryEvent,
    EntryListModel,
    EntryModel,
    EntrySortOption,
    EntryStatsModel,
    EntryUpdate,
)
from ..services.notifier import ChangeNotifier

logger = logging.getLogger(__name__)

ALL = "all"
# Columns that cannot be cleared through an update.
_NON_NULLABLE_FIELDS = {"status", "rating", "moods"}


class EntryStoreError(RuntimeError):
    """Raised when the database rejects an entry read or write."""


@contextmanager
def _guard(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Entry %s failed: %s", operation, exc)
        raise EntryStoreError(f"Failed to {operation} entry") from exc


@dataclass(slots=True)
class EntryStore:
    """Read and write the caller's entries; every query is scoped by owner."""

    engine: Engine
    notifier: ChangeNotifier | None = None

    def list(
        self,
        user_id: str,
        *,
        query: str | None = None,
        media_type: str | None = None,
        status: str | None = None,
        sort: EntrySortOption = "updated",
        page: int = 1,
        page_size: int = 24,
    ) -> EntryListModel:
        """Return one page of matching entries plus the unpaginated total."""

        page = max(page, 1)
        offset = (page - 1) * page_size
        filters = _owner_filters(user_id, media_type)
        if query:
            title = func.lower(MediaRecord.title)
            filters.append(title.contains(query.lower(), autoescape=True))
        if status and status != ALL:
            filters.append(EntryRecord.status == status)

        count_statement = (
            select(func.count())
            .select_from(EntryRecord)
            .join(MediaRecord, EntryRecord.media_id == MediaRecord.id)
        )
        items_statement = select(EntryRecord, MediaRecord).join(
            MediaRecord, EntryRecord.media_id == MediaRecord.id
        )
        for condition in filters:
            count_statement = count_statement.where(condition)
            items_statement = items_statement.where(condition)

        sort_orders: dict[str, tuple[object, ...]] = {
            "updated": (EntryRecord.updated_at.desc(), EntryRecord.id),
            "rating": (
                EntryRecord.rating.desc(),
                EntryRecord.updated_at.desc(),
                EntryRecord.id,
            ),
            "title": (func.lower(MediaRecord.title).asc(), EntryRecord.id),
        }
        order_by_clauses = sort_orders.get(sort, sort_orders["updated"])
        items_statement = items_statement.order_by(*order_by_clauses).offset(offset).limit(page_size)

        with _guard("list"), Session(self.engine) as session:
            total = session.exec(count_statement).one()
            rows: Sequence[tuple[EntryRecord, MediaRecord]] = session.exec(items_statement).all()
            items = [_to_model(entry, media) for entry, media in rows]

        return EntryListModel(items=items, total=total, page=page, page_size=page_size)

    def get(self, user_id: str, entry_id: str) -> EntryModel | None:
        """Return one owned entry, or ``None`` when missing or owned by someone else."""

        statement = (
            select(EntryRecord, MediaRecord)
            .join(MediaRecord, EntryRecord.media_id == MediaRecord.id)
            .where(EntryRecord.id == entry_id, EntryRecord.user_id == user_id)
        )
        with _guard("read"), Session(self.engine) as session:
            row = session.exec(statement).first()
            return _to_model(*row) if row else None

    def create(self, user_id: str, payload: EntryCreate) -> EntryModel:
        """Link or create the shared media item, then insert the owner's log.

        Both writes share one transaction, so a failed log insert leaves no
        orphaned media item behind.
        """

        with _guard("create"), Session(self.engine) as session:
            media = _resolve_media(session, payload)
            entry = EntryRecord(
                id=uuid4().hex,
                user_id=user_id,
                media_id=media.id,
                status=payload.status,
                rating=payload.rating,
                moods=list(payload.moods),
                start_date=payload.start_date,
                end_date=payload.end_date,
                one_line_review=payload.one_line_review or None,
                detailed_review=payload.detailed_review or None,
            )
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.refresh(media)
            model = _to_model(entry, media)

        self._notify("INSERT", user_id, model.id)
        return model

    def update(self, user_id: str, entry_id: str, payload: EntryUpdate) -> EntryModel | None:
        """Apply the sent fields to an owned entry.

        Whenever the resulting status is ``completed`` the end date is set to
        today, replacing any date the client supplied.
        """

        changes = payload.model_dump(exclude_unset=True)
        with _guard("update"), Session(self.engine) as session:
            entry = session.exec(
                select(EntryRecord).where(
                    EntryRecord.id == entry_id, EntryRecord.user_id == user_id
                )
            ).first()
            if entry is None:
                return None

            for key, value in changes.items():
                if value is None and key in _NON_NULLABLE_FIELDS:
                    continue
                if key in {"one_line_review", "detailed_review"} and not value:
                    value = None
                setattr(entry, key, value)
            if entry.status == "completed":
                entry.end_date = date.today()
            entry.updated_at = utcnow()

            session.add(entry)
            session.commit()
            session.refresh(entry)
            media = session.get(MediaRecord, entry.media_id)
            if media is None:
                raise EntryStoreError("Media item missing for entry")
            model = _to_model(entry, media)

        self._notify("UPDATE", user_id, model.id)
        return model

    def delete(self, user_id: str, entry_id: str) -> bool:
        """Remove an owned entry; the shared media item is kept."""

        with _guard("delete"), Session(self.engine) as session:
            entry = session.exec(
                select(EntryRecord).where(
                    EntryRecord.id == entry_id, EntryRecord.user_id == user_id
                )
            ).first()
            if entry is None:
                return False
            session.delete(entry)
            session.commit()

        self._notify("DELETE", user_id, entry_id)
        return True

    def stats(self, user_id: str, *, media_type: str | None = None) -> EntryStatsModel:
        """Return dashboard counters, optionally restricted to one media type."""

        filters = _owner_filters(user_id, media_type)
        now = utcnow()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        def _count(*extra: Any):
            statement = (
                select(func.count())
                .select_from(EntryRecord)
                .join(MediaRecord, EntryRecord.media_id == MediaRecord.id)
            )
            for condition in (*filters, *extra):
                statement = statement.where(condition)
            return statement

        ratings_statement = (
            select(EntryRecord.rating)
            .join(MediaRecord, EntryRecord.media_id == MediaRecord.id)
            .where(EntryRecord.rating > 0)
        )
        for condition in filters:
            ratings_statement = ratings_statement.where(condition)

        with _guard("summarize"), Session(self.engine) as session:
            total = session.exec(_count()).one()
            this_month = session.exec(_count(EntryRecord.created_at >= month_start)).one()
            in_progress = session.exec(_count(EntryRecord.status == "in-progress")).one()
            ratings = [float(rating) for rating in session.exec(ratings_statement).all()]

        return EntryStatsModel(
            total=total,
            this_month=this_month,
            in_progress=in_progress,
            avg_rating=average_rating(ratings),
        )

    def _notify(self, event: str, user_id: str, entry_id: str) -> None:
        if self.notifier is None:
            return
        self.notifier.publish(EntryEvent(event=event, entry_id=entry_id, user_id=user_id))


def average_rating(ratings: list[float]) -> float:
    """Mean of the non-zero ratings, rounded half up to one decimal; 0 when none."""

    rated = [rating for rating in ratings if rating > 0]
    if not rated:
        return 0.0
    mean = Decimal(str(sum(rated))) / Decimal(len(rated))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _owner_filters(user_id: str, media_type: str | None) -> list[Any]:
    filters: list[Any] = [EntryRecord.user_id == user_id]
    if media_type and media_type != ALL:
        filters.append(MediaRecord.media_type == media_type)
    return filters


def _resolve_media(session: Session, payload: EntryCreate) -> MediaRecord:
    """Return the media item to link, creating it when no exact match exists."""

    media: MediaRecord | None = None
    if payload.media_id:
        media = session.get(MediaRecord, payload.media_id)
    if media is None:
        # Exact title match only; differently punctuated titles create new rows.
        media = session.exec(
            select(MediaRecord).where(
                MediaRecord.title == payload.title,
                MediaRecord.media_type == payload.type,
            )
        ).first()

    if media is None:
        media = MediaRecord(
            id=uuid4().hex,
            title=payload.title,
            media_type=payload.type,
            release_date=payload.release_date,
            poster_url=payload.poster_url,
            overview=payload.overview,
            ai_metadata=dict(payload.ai_metadata),
            details=dict(payload.details),
        )
        session.add(media)
        return media

    _fill_missing_metadata(media, payload)
    return media


def _fill_missing_metadata(media: MediaRecord, payload: EntryCreate) -> None:
    """Enrich an existing media item with fields it does not have yet."""

    changed = False
    for field in ("poster_url", "overview", "release_date"):
        if not getattr(media, field) and getattr(payload, field):
            setattr(media, field, getattr(payload, field))
            changed = True
    missing_details = {
        key: value for key, value in payload.details.items() if key not in (media.details or {})
    }
    if missing_details:
        # Reassign so the JSON column is flagged dirty.
        media.details = {**(media.details or {}), **missing_details}
        changed = True
    if not media.ai_metadata and payload.ai_metadata:
        media.ai_metadata = dict(payload.ai_metadata)
        changed = True
    if changed:
        media.updated_at = utcnow()


def _to_model(entry: EntryRecord, media: MediaRecord) -> EntryModel:
    """Convert an entry and its media item into the response model."""

    meta: dict[str, Any] = dict(media.details or {})
    ai_meta: dict[str, Any] = dict(media.ai_metadata or {})
    runtime = meta.get("runtime")

    return EntryModel(
        id=entry.id,
        media_id=media.id,
        title=media.title,
        type=media.media_type,
        poster_url=media.poster_url,
        overview=media.overview,
        release_date=media.release_date,
        status=entry.status,
        rating=float(entry.rating or 0),
        moods=list(entry.moods) if isinstance(entry.moods, list) else [],
        start_date=entry.start_date,
        end_date=entry.end_date,
        one_line_review=entry.one_line_review,
        detailed_review=entry.detailed_review,
        director=meta.get("director"),
        cast=_string_list(meta.get("cast")),
        runtime=runtime if isinstance(runtime, int) else None,
        developer=meta.get("developer"),
        publisher=meta.get("publisher"),
        platforms=_string_list(meta.get("platforms")),
        stores=_string_list(meta.get("stores")),
        author=meta.get("author"),
        genres=_string_list(meta.get("genres")),
        details=meta,
        theme_color=ai_meta.get("theme_color") or ai_meta.get("themeColor"),
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


def _string_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [str(item) for item in value]
