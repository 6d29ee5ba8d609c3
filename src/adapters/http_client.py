"""httpx wrapper.

Why a wrapper:
- Standardizes timeouts, headers and base URL for every probe.
- Makes testing easy: a `httpx.MockTransport` can be injected.
"""

from __future__ import annotations

from typing import Any

import httpx
from bs4 import BeautifulSoup

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    base_url: str | None = None,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with the harness defaults.

    Why a builder:
    - Centralizes timeouts/headers so every probe behaves the same.
    - Redirects are not followed: a redirect to a login page is a finding.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=(base_url or settings.base_url).rstrip("/"),
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=False,
        headers=headers,
        transport=transport,
    )


def decode_json_body(response: httpx.Response) -> dict[str, Any]:
    """Parse a response body into a dict without ever raising.

    - empty body -> {}
    - non-JSON -> {"raw": text}
    - JSON that is not an object -> {"data": value}
    """

    text = response.text
    if not text.strip():
        return {}
    try:
        parsed = response.json()
    except ValueError:
        return {"raw": text}
    if isinstance(parsed, dict):
        return parsed
    return {"data": parsed}


def extract_html_metadata(*, html: str) -> dict[str, Any]:
    """Title and meta description of an HTML page, when present."""

    if not html:
        return {}

    soup = BeautifulSoup(html, "html.parser")
    out: dict[str, Any] = {}
    if soup.title and soup.title.string:
        out["title"] = soup.title.string.strip()
    tag = soup.find("meta", attrs={"name": "description"})
    if tag and tag.get("content"):
        out["meta_description"] = str(tag.get("content")).strip()
    return out
