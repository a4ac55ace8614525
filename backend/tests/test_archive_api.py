"""Tests for the Archive API application factory and routes."""
from __future__ import annotations

import json
import re
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.archive_api import create_app  # noqa: E402
from backend.archive_api.models import EntryRecord, MediaRecord  # noqa: E402
from backend.archive_api.schemas import (  # noqa: E402
    ConfigModel,
    EntryEvent,
    EntryListModel,
    EntryModel,
    EntryStatsModel,
)
from backend.archive_api.settings import ArchiveSettings  # noqa: E402
from backend.archive_api.services.notifier import NotifierError  # noqa: E402
from backend.archive_api.stores.config_store import mask_secret  # noqa: E402
from backend.archive_api.stores.entry_store import average_rating  # noqa: E402
from provider_fixtures import ProviderStub  # noqa: E402

ADMIN_TOKEN = "admin-secret"
ADMIN = {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture()
def stub() -> ProviderStub:
    return ProviderStub()


@pytest.fixture()
def client(tmp_path: Path, stub: ProviderStub) -> TestClient:
    """Provide a test client backed by an isolated SQLite database."""

    db_path = tmp_path / "archive.db"
    settings = ArchiveSettings(
        database_url=f"sqlite:///{db_path}",
        redis_url="fakeredis://",
        default_tmdb_api_key="tmdb-key",
        default_rawg_api_key="rawg-key",
        default_gemini_api_key="gemini-key",
        admin_token=ADMIN_TOKEN,
    )
    app = create_app(settings=settings, http_transport=stub.transport())
    return TestClient(app)


def register(client: TestClient, name: str = "reader") -> dict[str, str]:
    response = client.post("/users", json={"display_name": name})
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['api_token']}"}


def add_entry(client: TestClient, headers: dict[str, str], **overrides) -> EntryModel:
    payload = {"title": "Inception", "type": "movie", "status": "wishlist", "rating": 0}
    payload.update(overrides)
    response = client.post("/entries", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return EntryModel.model_validate(response.json())


def test_health_endpoint_reports_ok_status(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "version": "0.1.0",
        "notifier": {"status": "ok", "detail": None},
    }


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("get", "/entries"),
        ("post", "/entries"),
        ("get", "/entries/stats"),
        ("get", "/entries/some-id"),
        ("put", "/entries/some-id"),
        ("delete", "/entries/some-id"),
        ("get", "/catalog/search?query=Inception"),
        ("post", "/catalog/enrich"),
        ("post", "/tags"),
        ("get", "/users/me"),
    ],
)
def test_routes_require_authentication(client: TestClient, method: str, path: str) -> None:
    """Missing or unknown tokens are rejected before any work happens."""

    response = client.request(method, path, json={})
    assert response.status_code == 401
    assert response.json()["detail"] == "Unauthorized"

    bogus = client.request(method, path, json={}, headers={"Authorization": "Bearer nope"})
    assert bogus.status_code == 401


def test_unauthorized_create_writes_nothing(client: TestClient) -> None:
    response = client.post("/entries", json={"title": "Inception", "type": "movie"})

    assert response.status_code == 401
    with Session(client.app.state.app_state.engine) as session:
        assert session.exec(select(MediaRecord)).all() == []


def test_users_me_returns_caller(client: TestClient) -> None:
    headers = register(client, "Mina")

    response = client.get("/users/me", headers=headers)

    assert response.status_code == 200
    assert response.json()["display_name"] == "Mina"
    assert "api_token" not in response.json()


def test_config_round_trip_updates_database_store(client: TestClient) -> None:
    seeded = ConfigModel.model_validate(client.get("/config", headers=ADMIN).json())
    assert seeded.tmdb_api_key == "tm***ey"
    assert seeded.google_books_api_key is None

    response = client.put(
        "/config",
        json={"rawg_api_key": None, "tag_language": "English", "gemini_model": "  "},
        headers=ADMIN,
    )
    assert response.status_code == 200
    updated = ConfigModel.model_validate(response.json())
    assert updated.rawg_api_key is None
    assert updated.tag_language == "English"
    assert updated.gemini_model == "gemini-1.5-flash"
    assert updated.tmdb_api_key == "tm***ey"

    persisted = ConfigModel.model_validate(client.get("/config", headers=ADMIN).json())
    assert persisted == updated
    stored = client.app.state.app_state.config_store.read()
    assert stored.tmdb_api_key == "tmdb-key"
    assert stored.rawg_api_key is None


def test_accounts_cannot_read_or_change_credentials(client: TestClient) -> None:
    """Provider keys are shared by every account, so account tokens may not touch them."""

    headers = register(client)

    read = client.get("/config", headers=headers)
    cleared = client.put("/config", json={"gemini_api_key": None}, headers=headers)

    assert read.status_code == 403
    assert "gemini-key" not in read.text
    assert cleared.status_code == 403
    assert client.app.state.app_state.config_store.read().gemini_api_key == "gemini-key"


@pytest.mark.parametrize("method", ["get", "put"])
def test_config_requires_a_token(client: TestClient, method: str) -> None:
    response = client.request(method, "/config", json={})

    assert response.status_code == 401


def test_config_is_closed_without_admin_token(tmp_path: Path) -> None:
    settings = ArchiveSettings(
        database_url=f"sqlite:///{tmp_path / 'closed.db'}",
        redis_url="fakeredis://",
        default_gemini_api_key="gemini-key",
    )
    client = TestClient(create_app(settings=settings))

    response = client.get("/config", headers={"Authorization": "Bearer "})
    guessed = client.get("/config", headers=ADMIN)

    assert response.status_code == 401
    assert guessed.status_code == 403


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, None), ("abcd", "***"), ("tmdb-key", "tm***ey"), ("AIzaSyExample", "AI***le")],
)
def test_mask_secret(value: str | None, expected: str | None) -> None:
    assert mask_secret(value) == expected


def test_catalog_search_and_enrich_endpoints(client: TestClient, stub: ProviderStub) -> None:
    headers = register(client)

    search = client.get("/catalog/search", params={"query": "Inception", "type": "movie"}, headers=headers)
    assert search.status_code == 200
    hits = search.json()
    assert len(hits) == 5
    assert hits[0]["poster_url"] == "https://image.tmdb.org/t/p/w500/oYuLEt3zVCKq57qu2F8dT7NIa6f.jpg"

    enrich = client.post("/catalog/enrich", json=hits[0], headers=headers)
    assert enrich.status_code == 200
    body = enrich.json()
    assert body["details"]["director"] == "Christopher Nolan"
    assert len(body["details"]["cast"]) == 5
    assert len(body["tags"]["moods"]) == 5
    assert re.match(r"^#[0-9a-fA-F]{6}$", body["tags"]["theme_color"])


def test_catalog_search_short_query_is_empty(client: TestClient, stub: ProviderStub) -> None:
    headers = register(client)

    response = client.get("/catalog/search", params={"query": "I", "type": "game"}, headers=headers)

    assert response.status_code == 200
    assert response.json() == []
    assert stub.requests == []


def test_catalog_credentials_follow_config_updates(client: TestClient, stub: ProviderStub) -> None:
    headers = register(client)
    client.put("/config", json={"tmdb_api_key": None, "gemini_api_key": None}, headers=ADMIN)

    search = client.get("/catalog/search", params={"query": "Inception"}, headers=headers)
    tags = client.post("/tags", json={"title": "Inception"}, headers=headers)

    assert search.json() == []
    assert tags.json() == {"moods": [], "theme_color": "#a855f7"}
    assert stub.requests == []


def test_create_links_existing_media_by_title_and_type(client: TestClient) -> None:
    alice = register(client, "alice")
    bob = register(client, "bob")

    first = add_entry(
        client,
        alice,
        poster_url="https://image.tmdb.org/t/p/w500/poster.jpg",
        details={"director": "Christopher Nolan", "cast": ["Leonardo DiCaprio"]},
        ai_metadata={"moods": ["꿈"], "theme_color": "#1e3a8a"},
        moods=["꿈"],
    )
    second = add_entry(client, alice)
    other_user = add_entry(client, bob, details={"runtime": 148})
    game = add_entry(client, alice, type="game")

    assert first.media_id == second.media_id == other_user.media_id
    assert game.media_id != first.media_id
    assert first.director == "Christopher Nolan"
    assert first.cast == ["Leonardo DiCaprio"]
    assert first.theme_color == "#1e3a8a"
    assert first.poster_url == "https://image.tmdb.org/t/p/w500/poster.jpg"

    with Session(client.app.state.app_state.engine) as session:
        media = session.exec(select(MediaRecord)).all()
        assert len(media) == 2
        shared = session.get(MediaRecord, first.media_id)
        assert shared.details == {
            "director": "Christopher Nolan",
            "cast": ["Leonardo DiCaprio"],
            "runtime": 148,
        }


def test_create_with_unknown_media_id_resolves_by_title(client: TestClient) -> None:
    headers = register(client)
    existing = add_entry(client, headers, title="Dune", type="book")

    linked = add_entry(client, headers, title="Dune", type="book", media_id="missing")
    direct = add_entry(client, headers, title="Anything", type="book", media_id=existing.media_id)

    assert linked.media_id == existing.media_id
    assert direct.media_id == existing.media_id
    assert direct.title == "Dune"


@pytest.mark.parametrize("rating", [-0.5, 5.5, 4.3])
def test_create_rejects_invalid_ratings(client: TestClient, rating: float) -> None:
    headers = register(client)

    response = client.post(
        "/entries", json={"title": "Dune", "type": "book", "rating": rating}, headers=headers
    )

    assert response.status_code == 422


def test_list_paginates_and_reports_total(client: TestClient) -> None:
    headers = register(client)
    for index in range(5):
        add_entry(client, headers, title=f"Film {index}")

    pages = []
    for page in (1, 2, 3, 4):
        response = client.get("/entries", params={"page": page, "page_size": 2}, headers=headers)
        assert response.status_code == 200
        pages.append(EntryListModel.model_validate(response.json()))

    assert [len(page.items) for page in pages] == [2, 2, 1, 0]
    assert {page.total for page in pages} == {5}
    seen = [item.id for page in pages for item in page.items]
    assert len(set(seen)) == 5


def test_list_filters_by_query_type_and_status(client: TestClient) -> None:
    headers = register(client)
    add_entry(client, headers, title="The Dark Knight", status="completed")
    add_entry(client, headers, title="Dark Souls", type="game", status="in-progress")
    add_entry(client, headers, title="Dune", type="book", status="wishlist")

    def titles(**params) -> list[str]:
        response = client.get("/entries", params={"sort": "title", **params}, headers=headers)
        assert response.status_code == 200
        return [item["title"] for item in response.json()["items"]]

    assert titles(query="dARK") == ["Dark Souls", "The Dark Knight"]
    assert titles(query="dark", type="movie") == ["The Dark Knight"]
    assert titles(type="all", status="all") == ["Dark Souls", "Dune", "The Dark Knight"]
    assert titles(status="in-progress") == ["Dark Souls"]
    assert titles(type="book", status="completed") == []


@pytest.mark.parametrize(
    ("query", "expected"),
    [("a_c", ["a_c"]), ("100%", ["100% Orange Juice"]), ("%", ["100% Orange Juice"])],
)
def test_list_query_matches_wildcards_literally(
    client: TestClient, query: str, expected: list[str]
) -> None:
    headers = register(client)
    for title in ("abc", "a_c", "100% Orange Juice", "1000 Orange Juices"):
        add_entry(client, headers, title=title, type="game")

    response = client.get("/entries", params={"query": query, "sort": "title"}, headers=headers)

    assert [item["title"] for item in response.json()["items"]] == expected


def test_list_sort_orders(client: TestClient) -> None:
    headers = register(client)
    low = add_entry(client, headers, title="beta", rating=2.5)
    high = add_entry(client, headers, title="Alpha", rating=4.5)
    unrated = add_entry(client, headers, title="gamma")

    client.put(f"/entries/{low.id}", json={"one_line_review": "grew on me"}, headers=headers)

    def ids(sort: str) -> list[str]:
        response = client.get("/entries", params={"sort": sort}, headers=headers)
        return [item["id"] for item in response.json()["items"]]

    assert ids("updated")[0] == low.id
    assert ids("rating") == [high.id, low.id, unrated.id]
    assert ids("title") == [high.id, low.id, unrated.id]


def test_update_to_completed_overrides_end_date(client: TestClient) -> None:
    headers = register(client)
    entry = add_entry(client, headers, status="in-progress", start_date="2024-01-02")

    response = client.put(
        f"/entries/{entry.id}",
        json={"status": "completed", "end_date": "2001-01-01", "rating": 4.5},
        headers=headers,
    )

    assert response.status_code == 200
    updated = EntryModel.model_validate(response.json())
    assert updated.status == "completed"
    assert updated.end_date == date.today()
    assert updated.start_date == date(2024, 1, 2)
    assert updated.rating == 4.5


def test_update_without_completion_keeps_client_end_date(client: TestClient) -> None:
    headers = register(client)
    entry = add_entry(client, headers, moods=["고요"])

    response = client.put(
        f"/entries/{entry.id}",
        json={"end_date": "2023-05-06", "moods": None, "one_line_review": "quiet"},
        headers=headers,
    )

    updated = EntryModel.model_validate(response.json())
    assert updated.end_date == date(2023, 5, 6)
    assert updated.moods == ["고요"]
    assert updated.one_line_review == "quiet"
    assert updated.status == "wishlist"


def test_ownership_isolation(client: TestClient) -> None:
    alice = register(client, "alice")
    bob = register(client, "bob")
    entry = add_entry(client, alice, rating=3)

    assert client.get(f"/entries/{entry.id}", headers=bob).status_code == 404
    assert (
        client.put(f"/entries/{entry.id}", json={"rating": 1}, headers=bob).status_code == 404
    )
    assert client.delete(f"/entries/{entry.id}", headers=bob).status_code == 404
    assert client.get("/entries", headers=bob).json()["total"] == 0

    untouched = EntryModel.model_validate(
        client.get(f"/entries/{entry.id}", headers=alice).json()
    )
    assert untouched.rating == 3


def test_delete_removes_entry_but_keeps_media(client: TestClient) -> None:
    headers = register(client)
    entry = add_entry(client, headers)

    response = client.delete(f"/entries/{entry.id}", headers=headers)

    assert response.status_code == 204
    assert client.get(f"/entries/{entry.id}", headers=headers).status_code == 404
    assert client.delete(f"/entries/{entry.id}", headers=headers).status_code == 404
    with Session(client.app.state.app_state.engine) as session:
        assert session.get(MediaRecord, entry.media_id) is not None
        assert session.exec(select(EntryRecord)).all() == []


def test_stats_counts_and_average(client: TestClient) -> None:
    headers = register(client)
    add_entry(client, headers, title="Zero", rating=0)
    add_entry(client, headers, title="Three", rating=3, status="in-progress")
    old = add_entry(client, headers, title="Four and a half", rating=4.5)
    add_entry(client, headers, title="Game", type="game", rating=1, status="in-progress")

    with Session(client.app.state.app_state.engine) as session:
        record = session.get(EntryRecord, old.id)
        record.created_at = datetime.now(timezone.utc).replace(day=1) - timedelta(days=40)
        session.add(record)
        session.commit()

    movies = EntryStatsModel.model_validate(
        client.get("/entries/stats", params={"type": "movie"}, headers=headers).json()
    )
    assert movies == EntryStatsModel(total=3, this_month=2, in_progress=1, avg_rating=3.8)

    everything = EntryStatsModel.model_validate(
        client.get("/entries/stats", headers=headers).json()
    )
    assert everything.total == 4
    assert everything.in_progress == 2
    assert everything.avg_rating == 2.8


def test_stats_without_ratings_is_zero(client: TestClient) -> None:
    headers = register(client)
    add_entry(client, headers)

    stats = client.get("/entries/stats", params={"type": "all"}, headers=headers).json()

    assert stats["avg_rating"] == 0
    assert stats["total"] == 1


@pytest.mark.parametrize(
    ("ratings", "expected"),
    [([0, 3, 4.5], 3.8), ([], 0.0), ([0, 0], 0.0), ([5], 5.0), ([1, 2, 2], 1.7)],
)
def test_average_rating_rounding(ratings: list[float], expected: float) -> None:
    assert average_rating(ratings) == expected


def _next_message(pubsub) -> dict | None:
    for _ in range(10):
        message = pubsub.get_message(timeout=0.2)
        if message is not None:
            return json.loads(message["data"])
    return None


def test_writes_publish_change_events_to_owner_channel(client: TestClient) -> None:
    alice = register(client, "alice")
    bob = register(client, "bob")
    alice_id = client.get("/users/me", headers=alice).json()["id"]
    bob_id = client.get("/users/me", headers=bob).json()["id"]
    notifier = client.app.state.app_state.notifier
    alice_channel = notifier.subscribe(alice_id)
    bob_channel = notifier.subscribe(bob_id)

    entry = add_entry(client, alice)
    client.put(f"/entries/{entry.id}", json={"rating": 2}, headers=alice)
    client.delete(f"/entries/{entry.id}", headers=alice)

    events = [_next_message(alice_channel) for _ in range(3)]
    assert [event["event"] for event in events] == ["INSERT", "UPDATE", "DELETE"]
    assert {event["entry_id"] for event in events} == {entry.id}
    assert _next_message(bob_channel) is None

    alice_channel.close()
    bob_channel.close()


def test_stream_yields_sse_frames(client: TestClient) -> None:
    notifier = client.app.state.app_state.notifier
    stream = notifier.stream("user-1", heartbeat_seconds=0.1)

    assert next(stream) == ": connected\n\n"
    notifier.publish(EntryEvent(event="DELETE", entry_id="entry-1", user_id="user-1"))
    frame = next(stream)
    for _ in range(10):
        if frame != ": keep-alive\n\n":
            break
        frame = next(stream)
    stream.close()

    assert frame.startswith("event: change\ndata: ")
    assert json.loads(frame.split("data: ", 1)[1])["entry_id"] == "entry-1"


def test_events_endpoint_reports_unavailable_notifier(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    headers = register(client)
    notifier = client.app.state.app_state.notifier

    def _fail(user_id: str):
        raise NotifierError("Unable to subscribe to change channel")

    monkeypatch.setattr(notifier, "subscribe", _fail)

    response = client.get("/entries/events", headers=headers)

    assert response.status_code == 503
    assert response.json()["detail"] == "Unable to subscribe to change channel"
