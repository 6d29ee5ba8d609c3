"""Response interpretation.

The chat service answers with an informal JSON shape that nobody documents.
Every reader here is defensive: a missing or wrongly typed level yields the
default (empty string / empty list / None) instead of raising, so a half
broken response still produces a printable summary.
"""

from __future__ import annotations

from typing import Any

from core.domain.models import ChatReply, MemoryListing, StoreReceipt

_MISSING = object()

MEMORY_UNAWARE_PHRASE = "don't have past memories"
MEMORY_OPTIMIZATION = "memory_integration"


def dig(body: object, *keys: str, default: Any = None) -> Any:
    """Walk nested dicts, returning `default` as soon as a level is missing."""

    current: object = body
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key, _MISSING)
        if current is _MISSING or current is None:
            return default
    return current


def _as_list(value: object) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _as_bool(value: object) -> bool | None:
    return value if isinstance(value, bool) else None


def _error_text(body: object) -> str | None:
    err = dig(body, "error")
    if err is None:
        return None
    if isinstance(err, dict):
        message = err.get("message")
        if isinstance(message, str):
            return message
    return str(err)


def _metadata_list(body: object, key: str) -> list[Any]:
    # The service has returned metadata both under data and at the top level.
    value = dig(body, "data", "metadata", key)
    if value is None:
        value = dig(body, "metadata", key)
    return _as_list(value)


def interpret_chat(body: object) -> ChatReply:
    conversation_id = dig(body, "data", "conversationId")
    return ChatReply(
        success=_as_bool(dig(body, "success")),
        content=_as_str(dig(body, "data", "response", "content")),
        memory_references=_as_list(dig(body, "data", "response", "memory_references")),
        layers_used=_metadata_list(body, "layersUsed"),
        optimizations_applied=_metadata_list(body, "optimizationsApplied"),
        conversation_id=str(conversation_id) if conversation_id is not None else None,
        error=_error_text(body),
    )


def interpret_memories(body: object) -> MemoryListing:
    memories = [m for m in _as_list(dig(body, "data", "memories")) if isinstance(m, dict)]
    return MemoryListing(
        success=_as_bool(dig(body, "success")),
        memories=memories,
        context_string=_as_str(dig(body, "data", "contextString")),
        personal_facts=_as_list(dig(body, "data", "personalFacts")),
        error=_error_text(body),
    )


def interpret_store(body: object) -> StoreReceipt:
    memory_id = dig(body, "data", "id")
    return StoreReceipt(
        success=_as_bool(dig(body, "success")),
        message=_as_str(dig(body, "message")),
        memory_id=str(memory_id) if memory_id is not None else None,
        error=_error_text(body),
    )


def mentions(text: str | None, token: str) -> bool:
    """Case-insensitive substring test."""

    if not text or not token:
        return False
    return token.lower() in text.lower()


def preview(text: str | None, limit: int = 100) -> str:
    return (text or "")[: max(0, limit)] + "..."


def memory_layer_active(reply: ChatReply, layer: int = 3) -> bool:
    return layer in reply.layers_used


def has_memory_references(reply: ChatReply) -> bool:
    return len(reply.memory_references) > 0


def is_memory_aware(reply: ChatReply) -> bool:
    return not mentions(reply.content, MEMORY_UNAWARE_PHRASE)


def has_memory_optimization(reply: ChatReply) -> bool:
    return MEMORY_OPTIMIZATION in reply.optimizations_applied


def summarize_memories(listing: MemoryListing, *, content_chars: int = 50) -> list[dict[str, Any]]:
    """Compact per-memory view used in step details and reports."""

    out: list[dict[str, Any]] = []
    for memory in listing.memories:
        content = memory.get("content")
        out.append(
            {
                "id": memory.get("id"),
                "content": content[:content_chars] if isinstance(content, str) else None,
                "tags": memory.get("tags"),
                "created_at": memory.get("created_at"),
            }
        )
    return out
