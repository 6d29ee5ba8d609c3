"""Route sweep for the web application (404 fix verification).

- Known routes are probed with HEAD and must not 404 (401 counts as fine:
  auth-protected endpoints answer 401 without a session).
- Deliberately bogus routes are fetched with GET and must answer 404; the
  page title is kept so a custom 404 page can be told apart from the default.

Transport errors are recorded per route and never stop the sweep.
"""

from __future__ import annotations

import logging
from typing import Iterable

import httpx

from adapters.http_client import build_async_client, extract_html_metadata
from core.config import AppSettings
from core.domain.models import RouteResult

logger = logging.getLogger(__name__)

DEFAULT_ROUTES: tuple[str, ...] = (
    # Main application routes
    "/",
    "/auth",
    "/dashboard",
    "/admin",
    # User routes
    "/chat",
    "/boards",
    "/topics",
    "/schedule",
    "/settings",
    "/analytics",
    "/achievements",
    "/feedback",
    "/gamification",
    "/points-history",
    "/resources",
    "/revision",
    "/revision-queue",
    "/daily-summary",
    "/activity-logs",
    "/study-buddy",
    "/suggestions",
    # Dynamic routes
    "/session/test-block",
    "/feedback/test-feedback",
    # API routes
    "/api/auth/session",
    "/api/chat",
    "/api/user/dashboard/stats",
    "/api/suggestions",
)

DEFAULT_MISSING_ROUTES: tuple[str, ...] = (
    "/this-does-not-exist",
    "/nonexistent",
    "/fake-route-404",
)


def classify_route_status(status_code: int | None) -> str:
    if status_code is None:
        return "error"
    if 200 <= status_code < 300 or status_code == 401:
        return "ok"
    if status_code == 404:
        return "missing"
    return "warn"


async def _probe(client: httpx.AsyncClient, route: str, *, expect_missing: bool) -> RouteResult:
    url = str(client.base_url).rstrip("/") + route
    method = "GET" if expect_missing else "HEAD"
    try:
        resp = await client.request(method, route)
    except httpx.HTTPError as exc:
        logger.warning("%s %s failed: %s", method, route, exc)
        return RouteResult(route=route, url=url, classification="error", error=str(exc) or type(exc).__name__)

    result = RouteResult(
        route=route,
        url=url,
        status_code=resp.status_code,
        status_text=resp.reason_phrase,
    )
    if expect_missing:
        result.classification = "custom-404" if resp.status_code == 404 else "no-custom-404"
        if "html" in resp.headers.get("content-type", ""):
            result.title = extract_html_metadata(html=resp.text).get("title")
    else:
        result.classification = classify_route_status(resp.status_code)
    logger.debug("%s %s -> %s (%s)", method, route, resp.status_code, result.classification)
    return result


async def check_routes(
    *,
    settings: AppSettings,
    routes: Iterable[str] = DEFAULT_ROUTES,
    missing_routes: Iterable[str] = DEFAULT_MISSING_ROUTES,
    base_url: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[RouteResult]:
    results: list[RouteResult] = []
    async with build_async_client(settings, base_url=base_url, transport=transport) as client:
        for route in routes:
            results.append(await _probe(client, route, expect_missing=False))
        for route in missing_routes:
            results.append(await _probe(client, route, expect_missing=True))
    return results
