from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from core.config import AppSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    import os

    for key in list(os.environ):
        if key.startswith("MEMPROBE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        base_url="http://testserver",
        recall_delay_seconds=1.5,
        http_timeout_seconds=5,
    )


class FakeMemoryService:
    """In-memory stand-in for the chat service.

    Remembers "my name is X" per userId and answers recall questions with it.
    `events` records every request and every sleep in the order they happen.
    """

    def __init__(self, *, remember: bool = True, persist: bool = True) -> None:
        self.remember = remember
        self.persist = persist
        self.names: dict[str, str] = {}
        self.memories: dict[str, list[dict[str, Any]]] = {}
        self.events: list[str] = []
        self.user_ids: list[str] = []

    async def sleep(self, seconds: float) -> None:
        self.events.append(f"sleep {seconds:g}")

    def _store(self, user_id: str, content: str) -> None:
        lowered = content.lower()
        if "my name is" in lowered and self.persist:
            name = lowered.split("my name is", 1)[1].split()[0]
            self.names[user_id] = name
            self.memories.setdefault(user_id, []).append(
                {"id": f"m{len(self.memories.get(user_id, [])) + 1}", "content": content, "tags": ["name"]}
            )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.events.append(f"{request.method} {request.url.path}")
        payload: dict[str, Any] = json.loads(request.content) if request.content else {}
        user_id = payload.get("userId") or request.url.params.get("userId")
        if user_id:
            self.user_ids.append(user_id)

        path = request.url.path
        if path == "/api/memory/store":
            self._store(user_id, payload["content"])
            return httpx.Response(200, json={"success": True, "message": "Memory stored", "data": {"id": 42}})
        if path == "/api/memory/search" or path == "/api/student/memories":
            return httpx.Response(200, json={"success": True, "data": {"memories": self.memories.get(user_id, [])}})
        if path == "/api/study-buddy" and request.method == "GET":
            return httpx.Response(405, json={"error": "Method not allowed"})
        if path == "/api/study-buddy":
            message = payload["message"]
            if "my name is" in message.lower():
                self._store(user_id, message)
                return httpx.Response(
                    200,
                    json={
                        "success": True,
                        "data": {
                            "response": {"content": "Nice to meet you!", "memory_references": []},
                            "conversationId": payload.get("conversationId") or "conv-1",
                        },
                        "metadata": {"layersUsed": [2]},
                    },
                )
            name = self.names.get(user_id) if self.remember else None
            content = f"Your name is {name.title()}." if name else "I don't have past memories of you."
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "data": {
                        "response": {"content": content, "memory_references": [1] if name else []},
                        "metadata": {
                            "layersUsed": [2, 3] if name else [2],
                            "optimizationsApplied": ["memory_integration"] if name else [],
                        },
                    },
                },
            )
        return httpx.Response(404, json={"error": "not found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_service() -> FakeMemoryService:
    return FakeMemoryService()
