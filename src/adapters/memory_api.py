"""Request driver for the chat/memory API.

Responsibility:
- Issue exactly one HTTP request per call, in program order.
- Record every exchange (`ProbeStep`) including the ones that failed.
- Abort the run on transport failure or a non-2xx status. No retry.

Endpoint contracts are inferred from how the service has been used; they are
not documented anywhere else.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Sequence

import httpx

from adapters.http_client import decode_json_body
from core.domain.errors import ProbeAborted
from core.domain.models import ProbeStep

logger = logging.getLogger(__name__)

STORE_PATH = "/api/memory/store"
SEARCH_PATH = "/api/memory/search"
CHAT_PATH = "/api/study-buddy"
STUDENT_MEMORIES_PATH = "/api/student/memories"


class MemoryApiDriver:
    """Sequential driver over an `httpx.AsyncClient`.

    The client's base URL, timeout and headers come from
    `adapters.http_client.build_async_client`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        chat_type: str = "study_assistant",
        on_step: Callable[[ProbeStep], None] | None = None,
    ) -> None:
        self._client = client
        self._chat_type = chat_type
        self._on_step = on_step
        self.steps: list[ProbeStep] = []

    def _emit(self, step: ProbeStep) -> None:
        if self._on_step is not None:
            self._on_step(step)

    async def send(
        self,
        *,
        name: str,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        require_success: bool = True,
    ) -> ProbeStep:
        step = ProbeStep(
            name=name,
            method=method.upper(),
            path=path,
            params=dict(params or {}),
            payload=json,
        )
        self.steps.append(step)

        logger.debug("%s %s %s params=%s", step.name, step.method, path, step.params)
        started = time.perf_counter()
        try:
            response = await self._client.request(step.method, path, json=json, params=params or None)
        except httpx.HTTPError as exc:
            step.elapsed_ms = (time.perf_counter() - started) * 1000.0
            step.error = f"{type(exc).__name__}: {exc}"
            logger.error("%s failed: %s", name, step.error)
            self._emit(step)
            raise ProbeAborted(step) from exc

        step.elapsed_ms = (time.perf_counter() - started) * 1000.0
        step.status_code = response.status_code
        step.headers = dict(response.headers)
        step.body = decode_json_body(response)
        logger.debug("%s -> HTTP %s in %.0f ms", name, response.status_code, step.elapsed_ms)

        if require_success and not response.is_success:
            step.error = f"HTTP {response.status_code} {response.reason_phrase}".strip()
            logger.error("%s failed: %s", name, step.error)
            self._emit(step)
            raise ProbeAborted(step)
        self._emit(step)
        return step

    async def store_memory(
        self,
        *,
        user_id: str,
        content: str,
        memory_type: str = "personal_info",
        importance_score: int = 5,
        tags: Sequence[str] = ("name", "personal"),
        metadata: dict[str, Any] | None = None,
    ) -> ProbeStep:
        payload = {
            "userId": user_id,
            "memoryType": memory_type,
            "content": content,
            "importanceScore": importance_score,
            "tags": list(tags),
            "metadata": metadata if metadata is not None else {"test": True},
        }
        return await self.send(name="memory-store", method="POST", path=STORE_PATH, json=payload)

    async def search_memories(self, *, user_id: str, query: str) -> ProbeStep:
        return await self.send(
            name="memory-search",
            method="GET",
            path=SEARCH_PATH,
            params={"userId": user_id, "query": query},
        )

    async def chat(
        self,
        *,
        user_id: str,
        message: str,
        name: str = "chat",
        conversation_id: str | None = None,
    ) -> ProbeStep:
        payload: dict[str, Any] = {
            "userId": user_id,
            "message": message,
            "operation": "chat",
            "chatType": self._chat_type,
        }
        if conversation_id:
            payload["conversationId"] = conversation_id
        return await self.send(name=name, method="POST", path=CHAT_PATH, json=payload)

    async def list_student_memories(self, *, user_id: str, name: str = "student-memories") -> ProbeStep:
        return await self.send(
            name=name,
            method="GET",
            path=STUDENT_MEMORIES_PATH,
            params={"userId": user_id},
        )

    async def ping_chat(self) -> ProbeStep:
        """Reachability only: any HTTP status counts, transport failure aborts."""

        return await self.send(name="chat-health", method="GET", path=CHAT_PATH, require_success=False)
