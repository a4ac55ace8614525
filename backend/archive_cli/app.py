"""Command line interface for the Nua Archive API."""
from __future__ import annotations

import json
from datetime import date
from typing import Any, List, Optional

import httpx
import typer

from .client import create_client


DEFAULT_API_BASE = "http://localhost:8000"

app = typer.Typer(help="Interact with the Nua Archive backend service.")
users_app = typer.Typer(help="Register accounts and inspect the current identity.")
app.add_typer(users_app, name="users")
config_app = typer.Typer(help="Manage catalog and tagging credentials.")
app.add_typer(config_app, name="config")
catalog_app = typer.Typer(help="Search external catalogs and enrich results.")
app.add_typer(catalog_app, name="catalog")
entries_app = typer.Typer(help="Browse and edit archive entries.")
app.add_typer(entries_app, name="entries")


MEDIA_TYPE_CHOICES = {"movie", "game", "book"}
STATUS_CHOICES = {"wishlist", "in-progress", "completed"}
SORT_CHOICES = {"updated", "rating", "title"}
CLEARABLE_CONFIG_KEYS = {"tmdb", "rawg", "google-books", "gemini"}


def _api_base_option() -> typer.Option:
    return typer.Option(
        DEFAULT_API_BASE,
        "--api-base",
        help="Base URL for the Archive API service.",
        show_default=True,
        envvar="NUA_ARCHIVE_API_BASE",
    )


def _token_option() -> typer.Option:
    return typer.Option(
        None,
        "--token",
        help="API token identifying the caller.",
        envvar="NUA_ARCHIVE_TOKEN",
    )


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _check(response: httpx.Response, *, not_found: str | None = None) -> None:
    """Translate common API failures into CLI errors."""

    if response.status_code == 401:
        typer.echo("Unauthorized: pass --token or set NUA_ARCHIVE_TOKEN", err=True)
        raise typer.Exit(code=1)
    if response.status_code == 403:
        typer.echo("Forbidden: this command needs the admin token", err=True)
        raise typer.Exit(code=1)
    if not_found and response.status_code == 404:
        typer.echo(not_found, err=True)
        raise typer.Exit(code=1)
    response.raise_for_status()


def _validate_choice(value: Optional[str], choices: set[str], label: str) -> None:
    if value is not None and value not in choices:
        typer.echo(
            f"Invalid {label} value. Allowed values: " + ", ".join(sorted(choices)),
            err=True,
        )
        raise typer.Exit(code=1)


@app.command()
def health(api_base: str = _api_base_option()) -> None:
    """Call the /health endpoint and pretty-print the response."""

    with create_client(api_base) as client:
        response = client.get("/health")
        response.raise_for_status()
        _echo_json(response.json())


@users_app.command("create")
def create_user(
    display_name: Optional[str] = typer.Option(None, help="Name shown in the dashboard."),
    email: Optional[str] = typer.Option(None, help="Contact email for the account."),
    api_base: str = _api_base_option(),
) -> None:
    """Register an account and print its API token."""

    payload = {"display_name": display_name, "email": email}
    with create_client(api_base) as client:
        response = client.post("/users", json=payload)
        response.raise_for_status()
        _echo_json(response.json())


@users_app.command("me")
def current_user(
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Display the account the token belongs to."""

    with create_client(api_base, token=token) as client:
        response = client.get("/users/me")
        _check(response)
        _echo_json(response.json())


@config_app.command("show")
def show_config(
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Display the provider configuration with credentials masked (admin token)."""

    with create_client(api_base, token=token) as client:
        response = client.get("/config")
        _check(response)
        _echo_json(response.json())


@config_app.command("update")
def update_config(
    tmdb_api_key: Optional[str] = typer.Option(None, help="TMDB API key to persist."),
    rawg_api_key: Optional[str] = typer.Option(None, help="RAWG API key to persist."),
    google_books_api_key: Optional[str] = typer.Option(
        None, help="Google Books API key to persist."
    ),
    gemini_api_key: Optional[str] = typer.Option(None, help="Gemini API key to persist."),
    gemini_model: Optional[str] = typer.Option(None, help="Gemini model used for tags."),
    tag_language: Optional[str] = typer.Option(None, help="Language of generated mood tags."),
    catalog_language: Optional[str] = typer.Option(
        None, help="Locale requested from localized catalogs (e.g. ko-KR)."
    ),
    clear: Optional[List[str]] = typer.Option(
        None,
        "--clear",
        help="Remove a stored key: tmdb, rawg, google-books or gemini (repeat the flag).",
    ),
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Update configuration fields with the provided values (admin token)."""

    payload: dict[str, object] = {}
    for name in clear or []:
        _validate_choice(name, CLEARABLE_CONFIG_KEYS, "clear")
        payload[f"{name.replace('-', '_')}_api_key"] = None

    values = {
        "tmdb_api_key": tmdb_api_key,
        "rawg_api_key": rawg_api_key,
        "google_books_api_key": google_books_api_key,
        "gemini_api_key": gemini_api_key,
        "gemini_model": gemini_model,
        "tag_language": tag_language,
        "catalog_language": catalog_language,
    }
    for key, value in values.items():
        if value is None:
            continue
        if key in payload:
            typer.echo(f"Cannot set and clear {key} in the same command.", err=True)
            raise typer.Exit(code=1)
        payload[key] = value

    if not payload:
        typer.echo("No updates supplied.")
        raise typer.Exit(code=1)

    with create_client(api_base, token=token) as client:
        response = client.put("/config", json=payload)
        _check(response)
        _echo_json(response.json())


@catalog_app.command("search")
def search_catalog(
    query: str = typer.Argument(..., help="Title to look up."),
    media_type: str = typer.Option("movie", "--type", help="movie, game or book."),
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Search one external catalog."""

    _validate_choice(media_type, MEDIA_TYPE_CHOICES, "type")
    with create_client(api_base, token=token) as client:
        response = client.get("/catalog/search", params={"query": query, "type": media_type})
        _check(response)
        _echo_json(response.json())


@catalog_app.command("enrich")
def enrich_catalog_hit(
    query: str = typer.Argument(..., help="Title to look up."),
    media_type: str = typer.Option("movie", "--type", help="movie, game or book."),
    pick: int = typer.Option(1, min=1, max=5, help="Which search hit to enrich, starting at 1."),
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Search a catalog, then fetch details and mood tags for one hit."""

    _validate_choice(media_type, MEDIA_TYPE_CHOICES, "type")
    with create_client(api_base, token=token) as client:
        search = client.get("/catalog/search", params={"query": query, "type": media_type})
        _check(search)
        hits = search.json()
        if len(hits) < pick:
            typer.echo("No matching catalog result", err=True)
            raise typer.Exit(code=1)
        item = hits[pick - 1]
        response = client.post("/catalog/enrich", json=item)
        _check(response)
        _echo_json({"item": item, "enrichment": response.json()})


@app.command()
def tags(
    title: str = typer.Argument(..., help="Title to generate mood tags for."),
    overview: Optional[str] = typer.Option(None, help="Optional description of the title."),
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Generate mood tags and a theme colour for a title."""

    with create_client(api_base, token=token) as client:
        response = client.post("/tags", json={"title": title, "overview": overview})
        _check(response)
        _echo_json(response.json())


@entries_app.command("list")
def list_entries(
    page: int = typer.Option(1, min=1, help="Page number starting at 1."),
    page_size: int = typer.Option(24, min=1, max=100, help="Number of entries per page."),
    query: Optional[str] = typer.Option(None, help="Optional title search term."),
    media_type: Optional[str] = typer.Option(None, "--type", help="movie, game or book."),
    status: Optional[str] = typer.Option(
        None, help="wishlist, in-progress or completed."
    ),
    sort: str = typer.Option(
        "updated", help="updated, rating or title.", show_default=True
    ),
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Display archive entries returned by the API."""

    _validate_choice(media_type, MEDIA_TYPE_CHOICES, "type")
    _validate_choice(status, STATUS_CHOICES, "status")
    _validate_choice(sort, SORT_CHOICES, "sort")

    params: dict[str, object] = {"page": page, "page_size": page_size, "sort": sort}
    if query:
        params["query"] = query
    if media_type:
        params["type"] = media_type
    if status:
        params["status"] = status

    with create_client(api_base, token=token) as client:
        response = client.get("/entries", params=params)
        _check(response)
        _echo_json(response.json())


@entries_app.command("show")
def show_entry(
    entry_id: str = typer.Argument(..., help="Entry identifier to display."),
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Display a single entry."""

    with create_client(api_base, token=token) as client:
        response = client.get(f"/entries/{entry_id}")
        _check(response, not_found="Entry not found")
        _echo_json(response.json())


@entries_app.command("add")
def add_entry(
    title: str = typer.Argument(..., help="Title of the movie, game or book."),
    media_type: str = typer.Option(..., "--type", help="movie, game or book."),
    status: str = typer.Option("wishlist", help="wishlist, in-progress or completed."),
    rating: float = typer.Option(0.0, min=0.0, max=5.0, help="Rating in 0.5 steps."),
    moods: Optional[List[str]] = typer.Option(
        None, "--mood", help="Mood tag (repeat the flag)."
    ),
    start_date: Optional[str] = typer.Option(None, help="Start date (YYYY-MM-DD)."),
    end_date: Optional[str] = typer.Option(None, help="End date (YYYY-MM-DD)."),
    review: Optional[str] = typer.Option(None, help="One line review."),
    detailed_review: Optional[str] = typer.Option(None, help="Longer review text."),
    enrich: bool = typer.Option(
        False,
        "--enrich/--no-enrich",
        help="Look the title up in its catalog and attach details and AI mood tags.",
        show_default=True,
    ),
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Add a title to the archive."""

    _validate_choice(media_type, MEDIA_TYPE_CHOICES, "type")
    _validate_choice(status, STATUS_CHOICES, "status")

    payload: dict[str, object] = {
        "title": title,
        "type": media_type,
        "status": status,
        "rating": rating,
        "moods": list(moods or []),
        "start_date": _parse_date(start_date),
        "end_date": _parse_date(end_date),
        "one_line_review": review,
        "detailed_review": detailed_review,
    }

    with create_client(api_base, token=token) as client:
        if enrich:
            _attach_enrichment(client, payload)
        response = client.post("/entries", json=payload)
        _check(response)
        _echo_json(response.json())


@entries_app.command("update")
def update_entry(
    entry_id: str = typer.Argument(..., help="Entry identifier to update."),
    status: Optional[str] = typer.Option(None, help="wishlist, in-progress or completed."),
    rating: Optional[float] = typer.Option(None, min=0.0, max=5.0, help="Rating in 0.5 steps."),
    moods: Optional[List[str]] = typer.Option(
        None, "--mood", help="Replace the mood tags (repeat the flag)."
    ),
    start_date: Optional[str] = typer.Option(None, help="Start date (YYYY-MM-DD)."),
    end_date: Optional[str] = typer.Option(None, help="End date (YYYY-MM-DD)."),
    review: Optional[str] = typer.Option(None, help="One line review."),
    detailed_review: Optional[str] = typer.Option(None, help="Longer review text."),
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Change fields of an existing entry."""

    _validate_choice(status, STATUS_CHOICES, "status")

    payload: dict[str, object] = {}
    if status is not None:
        payload["status"] = status
    if rating is not None:
        payload["rating"] = rating
    if moods:
        payload["moods"] = list(moods)
    if start_date is not None:
        payload["start_date"] = _parse_date(start_date)
    if end_date is not None:
        payload["end_date"] = _parse_date(end_date)
    if review is not None:
        payload["one_line_review"] = review
    if detailed_review is not None:
        payload["detailed_review"] = detailed_review

    if not payload:
        typer.echo("No updates supplied.")
        raise typer.Exit(code=1)

    with create_client(api_base, token=token) as client:
        response = client.put(f"/entries/{entry_id}", json=payload)
        _check(response, not_found="Entry not found")
        _echo_json(response.json())


@entries_app.command("delete")
def delete_entry(
    entry_id: str = typer.Argument(..., help="Entry identifier to delete."),
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Delete an entry from the archive."""

    with create_client(api_base, token=token) as client:
        response = client.delete(f"/entries/{entry_id}")
        _check(response, not_found="Entry not found")
        typer.echo(f"Deleted {entry_id}")


@entries_app.command("stats")
def entry_stats(
    media_type: Optional[str] = typer.Option(None, "--type", help="movie, game or book."),
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Display dashboard counters."""

    _validate_choice(media_type, MEDIA_TYPE_CHOICES, "type")
    params = {"type": media_type} if media_type else None
    with create_client(api_base, token=token) as client:
        response = client.get("/entries/stats", params=params)
        _check(response)
        _echo_json(response.json())


@entries_app.command("watch")
def watch_entries(
    api_base: str = _api_base_option(),
    token: Optional[str] = _token_option(),
) -> None:
    """Print change notifications for your entries until interrupted."""

    with create_client(api_base, token=token) as client:
        with client.stream("GET", "/entries/events", timeout=None) as response:
            _check(response)
            for line in response.iter_lines():
                if line.startswith("data: "):
                    typer.echo(line[len("data: "):])


def _parse_date(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as exc:
        typer.echo(f"Invalid date {value!r}; expected YYYY-MM-DD", err=True)
        raise typer.Exit(code=1) from exc


def _attach_enrichment(client: httpx.Client, payload: dict[str, object]) -> None:
    """Fill poster, details and mood tags from the first catalog hit."""

    search = client.get(
        "/catalog/search", params={"query": payload["title"], "type": payload["type"]}
    )
    _check(search)
    hits = search.json()
    if not hits:
        typer.echo("No catalog match; adding without enrichment.", err=True)
        return

    item = hits[0]
    response = client.post("/catalog/enrich", json=item)
    _check(response)
    enrichment = response.json()

    payload["title"] = item["title"] or payload["title"]
    payload["poster_url"] = item.get("poster_url")
    payload["overview"] = item.get("overview")
    payload["release_date"] = item.get("year")
    payload["details"] = enrichment["details"]
    payload["ai_metadata"] = enrichment["tags"]
    if not payload["moods"]:
        payload["moods"] = enrichment["tags"]["moods"]
