"""Administrative SQL over the hosted database's RPC function.

Statements are sent one by one through `client.rpc(<function>, {"sql": ...})`.
A failing statement is recorded and the next one is still attempted, so a
partially applied patch shows exactly which parts went through.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Iterable

import httpx
from supabase import AsyncClient, PostgrestAPIError, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from core.config import AppSettings
from core.domain.models import SqlStatementResult

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., Awaitable[AsyncClient]]


class SupabaseSqlExecutor:
    def __init__(
        self,
        settings: AppSettings,
        *,
        client_factory: ClientFactory = acreate_client,
    ) -> None:
        url = settings.supabase_url
        key = settings.supabase_service_key
        if not url or not key:
            raise ValueError("Supabase URL and service key are required for SQL execution.")
        self._settings = settings
        self._url = url.rstrip("/")
        self._key = key
        self._client_factory = client_factory

    async def _client(self) -> AsyncClient:
        options = AsyncClientOptions(
            headers={"User-Agent": self._settings.user_agent},
            postgrest_client_timeout=self._settings.http_timeout_seconds,
        )
        return await self._client_factory(self._url, self._key, options=options)

    async def execute(self, statements: Iterable[str]) -> list[SqlStatementResult]:
        client = await self._client()
        results = [await self._execute_one(client, sql) for sql in statements]
        ok = sum(1 for r in results if r.ok)
        logger.info("SQL patch: %d/%d statements successful", ok, len(results))
        return results

    async def _execute_one(self, client: Any, sql: str) -> SqlStatementResult:
        fn = self._settings.rpc_function
        logger.debug("rpc %s: %s", fn, sql[:80])
        try:
            await client.rpc(fn, {"sql": sql}).execute()
        except PostgrestAPIError as exc:
            message = exc.message or exc.details or exc.hint or str(exc)
            logger.error("SQL statement rejected (%s): %s", exc.code, message)
            return SqlStatementResult(statement=sql, ok=False, status_code=_status(exc.code), error=str(message))
        except httpx.HTTPError as exc:
            logger.error("SQL statement failed: %s", exc)
            return SqlStatementResult(statement=sql, ok=False, error=str(exc) or type(exc).__name__)
        return SqlStatementResult(statement=sql, ok=True)


def _status(code: object) -> int | None:
    # PostgREST puts either an HTTP status or a SQLSTATE / PGRST code here.
    text = str(code or "")
    return int(text) if text.isdigit() and len(text) == 3 else None
