"""Request driver contract.

Why Protocol:
- A structural contract (duck typing) without rigid inheritance.
- Lets the pipeline run against the httpx driver or a test double without
  coupling the core to a concrete HTTP library.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

from core.domain.models import ProbeStep


@runtime_checkable
class ProbeDriver(Protocol):
    """Minimal contract the probe pipeline needs from an HTTP driver.

    Design rules:
    - Methods are async because they do network I/O.
    - Exactly one request per call; each returns the recorded `ProbeStep`.
    - Transport failures and non-2xx statuses raise `ProbeAborted`.
    """

    steps: list[ProbeStep]

    async def store_memory(
        self,
        *,
        user_id: str,
        content: str,
        memory_type: str = ...,
        importance_score: int = ...,
        tags: Sequence[str] = ...,
        metadata: dict[str, Any] | None = ...,
    ) -> ProbeStep: ...

    async def search_memories(self, *, user_id: str, query: str) -> ProbeStep: ...

    async def chat(
        self,
        *,
        user_id: str,
        message: str,
        name: str = ...,
        conversation_id: str | None = ...,
    ) -> ProbeStep: ...

    async def list_student_memories(self, *, user_id: str, name: str = ...) -> ProbeStep: ...

    async def ping_chat(self) -> ProbeStep: ...
