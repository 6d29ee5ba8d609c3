from core.services.interpreter import (
    dig,
    has_memory_optimization,
    has_memory_references,
    interpret_chat,
    interpret_memories,
    interpret_store,
    is_memory_aware,
    memory_layer_active,
    mentions,
    preview,
    summarize_memories,
)


def test_mentions_name_is_case_insensitive():
    body = {"success": True, "data": {"response": {"content": "Hello KUNAL, welcome back", "memory_references": [1]}}}
    reply = interpret_chat(body)
    assert mentions(reply.content, "kunal") is True
    assert has_memory_references(reply) is True


def test_mentions_false_without_substring():
    reply = interpret_chat({"success": True, "data": {"response": {"content": "I don't know your name."}}})
    assert mentions(reply.content, "kunal") is False
    assert mentions(None, "kunal") is False
    assert mentions("", "kunal") is False


def test_chat_tolerates_missing_fields():
    for body in ({}, None, {"data": None}, {"data": "oops"}, {"data": {"response": None}}, [1, 2]):
        reply = interpret_chat(body)
        assert reply.content == ""
        assert reply.memory_references == []
        assert reply.layers_used == []
        assert reply.optimizations_applied == []
        assert reply.success is None


def test_chat_layers_fall_back_to_top_level_metadata():
    body = {
        "success": False,
        "data": {"response": {"content": "x"}},
        "metadata": {"layersUsed": [2, 3], "optimizationsApplied": ["memory_integration"]},
    }
    reply = interpret_chat(body)
    assert reply.success is False
    assert memory_layer_active(reply, 3)
    assert not memory_layer_active(reply, 4)
    assert has_memory_optimization(reply)


def test_chat_prefers_nested_metadata():
    body = {"data": {"metadata": {"layersUsed": [1]}}, "metadata": {"layersUsed": [3]}}
    assert interpret_chat(body).layers_used == [1]


def test_chat_wrong_types_default():
    body = {"success": "yes", "data": {"response": {"content": 12, "memory_references": "many"}}}
    reply = interpret_chat(body)
    assert reply.success is None
    assert reply.content == ""
    assert reply.memory_references == []


def test_memory_awareness_phrase():
    aware = interpret_chat({"data": {"response": {"content": "Your name is Kunal"}}})
    unaware = interpret_chat({"data": {"response": {"content": "Sorry, I DON'T have past memories yet."}}})
    assert is_memory_aware(aware)
    assert not is_memory_aware(unaware)


def test_interpret_memories_filters_non_objects():
    body = {"success": True, "data": {"memories": [{"id": 1, "content": "my name is kunal"}, "junk", None]}}
    listing = interpret_memories(body)
    assert listing.success is True
    assert listing.count == 1
    assert summarize_memories(listing, content_chars=7) == [
        {"id": 1, "content": "my name", "tags": None, "created_at": None}
    ]


def test_interpret_memories_error_message():
    listing = interpret_memories({"success": False, "error": {"message": "permission denied for table"}})
    assert listing.count == 0
    assert listing.error == "permission denied for table"


def test_interpret_store():
    receipt = interpret_store({"success": True, "message": "Memory stored", "data": {"id": 7}})
    assert receipt.success is True
    assert receipt.memory_id == "7"
    assert interpret_store({}).memory_id is None


def test_dig_and_preview():
    assert dig({"a": {"b": {"c": 1}}}, "a", "b", "c") == 1
    assert dig({"a": {"b": None}}, "a", "b", "c", default="d") == "d"
    assert preview("abcdef", 3) == "abc..."
    assert preview(None) == "..."
