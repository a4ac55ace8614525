"""HTTP client helpers for the Archive CLI."""
from __future__ import annotations

import httpx


def create_client(
    base_url: str,
    *,
    token: str | None = None,
    timeout: float = 30.0,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Instantiate an HTTPX client with a configurable base URL and bearer token."""

    headers = {"Authorization": f"Bearer {token}"} if token else None
    return httpx.Client(base_url=base_url, headers=headers, timeout=timeout, transport=transport)
