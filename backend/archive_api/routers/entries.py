"""Entry endpoints for the caller's personal archive."""
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.responses import StreamingResponse

from ..dependencies import get_current_user, get_entry_store, get_notifier
from ..schemas import (
    EntryCreate,
    EntryListModel,
    EntryModel,
    EntrySortOption,
    EntryStatsModel,
    EntryUpdate,
    UserModel,
)
from ..services.notifier import ChangeNotifier, NotifierError
from ..stores.entry_store import EntryStore, EntryStoreError

router = APIRouter(prefix="/entries", tags=["entries"])

TypeFilter = Literal["all", "movie", "game", "book"]
StatusFilter = Literal["all", "wishlist", "in-progress", "completed"]


def _operation_failed(exc: EntryStoreError) -> HTTPException:
    return HTTPException(status_code=500, detail=str(exc))


@router.get("", response_model=EntryListModel)
def list_entries(
    query: str | None = Query(default=None, description="Optional title search term."),
    media_type: TypeFilter | None = Query(
        default=None, alias="type", description="Filter by media type; 'all' disables it."
    ),
    entry_status: StatusFilter | None = Query(
        default=None, alias="status", description="Filter by status; 'all' disables it."
    ),
    sort: EntrySortOption = Query(
        default="updated",
        description="Sort ordering: recently updated, highest rated or title A-Z.",
    ),
    page: int = Query(default=1, ge=1, description="Page number starting at 1."),
    page_size: int = Query(
        default=24,
        ge=1,
        le=100,
        description="Number of entries to return per page.",
    ),
    user: UserModel = Depends(get_current_user),
    store: EntryStore = Depends(get_entry_store),
) -> EntryListModel:
    """Return the caller's entries matching the provided filters."""

    try:
        return store.list(
            user.id,
            query=query,
            media_type=media_type,
            status=entry_status,
            sort=sort,
            page=page,
            page_size=page_size,
        )
    except EntryStoreError as exc:
        raise _operation_failed(exc) from exc


@router.post("", response_model=EntryModel, status_code=status.HTTP_201_CREATED)
def create_entry(
    payload: EntryCreate,
    user: UserModel = Depends(get_current_user),
    store: EntryStore = Depends(get_entry_store),
) -> EntryModel:
    """Add a title to the caller's archive."""

    try:
        return store.create(user.id, payload)
    except EntryStoreError as exc:
        raise _operation_failed(exc) from exc


@router.get("/stats", response_model=EntryStatsModel)
def entry_stats(
    media_type: TypeFilter | None = Query(
        default=None, alias="type", description="Restrict counters to one media type."
    ),
    user: UserModel = Depends(get_current_user),
    store: EntryStore = Depends(get_entry_store),
) -> EntryStatsModel:
    """Return dashboard counters for the caller's archive."""

    try:
        return store.stats(user.id, media_type=media_type)
    except EntryStoreError as exc:
        raise _operation_failed(exc) from exc


@router.get("/events")
def entry_events(
    user: UserModel = Depends(get_current_user),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> StreamingResponse:
    """Stream change notifications for the caller's entries as Server-Sent Events."""

    try:
        stream = notifier.stream(user.id)
        first_frame = next(stream)
    except NotifierError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    def _frames():
        yield first_frame
        yield from stream

    return StreamingResponse(
        _frames(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.get("/{entry_id}", response_model=EntryModel)
def get_entry(
    entry_id: str,
    user: UserModel = Depends(get_current_user),
    store: EntryStore = Depends(get_entry_store),
) -> EntryModel:
    """Return one of the caller's entries, raising when missing."""

    try:
        entry = store.get(user.id, entry_id)
    except EntryStoreError as exc:
        raise _operation_failed(exc) from exc
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    return entry


@router.put("/{entry_id}", response_model=EntryModel)
def update_entry(
    entry_id: str,
    payload: EntryUpdate,
    user: UserModel = Depends(get_current_user),
    store: EntryStore = Depends(get_entry_store),
) -> EntryModel:
    """Update one of the caller's entries."""

    try:
        entry = store.update(user.id, entry_id, payload)
    except EntryStoreError as exc:
        raise _operation_failed(exc) from exc
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: str,
    user: UserModel = Depends(get_current_user),
    store: EntryStore = Depends(get_entry_store),
) -> Response:
    """Delete one of the caller's entries; the shared media item is kept."""

    try:
        deleted = store.delete(user.id, entry_id)
    except EntryStoreError as exc:
        raise _operation_failed(exc) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Entry not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
