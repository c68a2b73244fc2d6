"""Tests for the persistent reactive store."""
import json
from datetime import datetime, timezone

import pytest
from structlog.testing import capture_logs

from exam_tracker.models import TodoItem
from exam_tracker.storage import DurableReadError, MemoryStorage, SQLiteStorage
from exam_tracker.store import (
    DeserializationError, PersistentStore, decode_text, encode_value,
)


class BrokenReadStorage(MemoryStorage):
    def read(self, key):
        raise DurableReadError("medium unavailable")


def test_missing_key_uses_default(memory_storage):
    store = PersistentStore("todos", [], memory_storage)
    assert store.get() == []


def test_existing_value_is_loaded():
    storage = MemoryStorage({"syllabusProgress": '{"ssc": {"quant": {"t1": true}}}'})
    store = PersistentStore("syllabusProgress", {}, storage)
    assert store.get() == {"ssc": {"quant": {"t1": True}}}


def test_malformed_text_uses_default():
    storage = MemoryStorage({"todos": "{not json"})
    store = PersistentStore("todos", [], storage)
    assert store.get() == []


def test_decode_hook_failure_uses_default():
    def expect_list(raw):
        if not isinstance(raw, list):
            raise ValueError("not a list")
        return raw

    storage = MemoryStorage({"todos": '{"a": 1}'})
    store = PersistentStore("todos", ["fallback"], storage, decode=expect_list)
    assert store.get() == ["fallback"]


def test_read_error_uses_default():
    store = PersistentStore("activeTab", "syllabus", BrokenReadStorage())
    assert store.get() == "syllabus"


def test_default_is_not_shared():
    default = {}
    store = PersistentStore("syllabusProgress", default, MemoryStorage())
    store.get()["ssc"] = {}
    assert default == {}


def test_set_updates_memory_and_storage(memory_storage):
    store = PersistentStore("activeTab", "syllabus", memory_storage)
    assert store.set("todo") is True
    assert store.get() == "todo"
    assert memory_storage.read("activeTab") == '"todo"'


def test_failed_write_keeps_in_memory_value():
    storage = MemoryStorage({"activeTab": '"syllabus"'}, fail_writes=True)
    store = PersistentStore("activeTab", "syllabus", storage)
    assert store.set("todo") is False
    assert store.get() == "todo"
    assert storage.read("activeTab") == '"syllabus"'


def test_unencodable_value_is_dropped_not_raised(memory_storage):
    store = PersistentStore("todos", [], memory_storage)
    assert store.set([object()]) is False
    assert memory_storage.read("todos") is None


def test_update_applies_function(memory_storage):
    store = PersistentStore("count", 1, memory_storage)
    store.update(lambda n: n + 1)
    assert store.get() == 2
    assert memory_storage.read("count") == "2"


def test_listeners_notified_in_order(memory_storage):
    store = PersistentStore("activeTab", "syllabus", memory_storage)
    calls = []
    store.subscribe(lambda v: calls.append(("a", v)))
    store.subscribe(lambda v: calls.append(("b", v)))
    store.set("todo")
    assert calls == [("a", "todo"), ("b", "todo")]


def test_listener_notified_even_when_write_fails():
    store = PersistentStore("activeTab", "syllabus", MemoryStorage(fail_writes=True))
    seen = []
    store.subscribe(seen.append)
    store.set("todo")
    assert seen == ["todo"]


def test_unsubscribe(memory_storage):
    store = PersistentStore("activeTab", "syllabus", memory_storage)
    seen = []
    unsubscribe = store.subscribe(seen.append)
    store.set("todo")
    unsubscribe()
    unsubscribe()  # second call is harmless
    store.set("syllabus")
    assert seen == ["todo"]


def test_value_survives_restart(tmp_db):
    PersistentStore("syllabusProgress", {}, SQLiteStorage(tmp_db)).set({"ssc": {"quant": {"t1": True}}})
    reopened = PersistentStore("syllabusProgress", {}, SQLiteStorage(tmp_db))
    assert reopened.get() == {"ssc": {"quant": {"t1": True}}}


def test_encode_datetime_as_iso():
    when = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
    assert json.loads(encode_value({"at": when})) == {"at": "2024-03-01T09:30:00+00:00"}


def test_encode_uses_to_dict():
    item = TodoItem(id="1", text="Write essay", created_at=datetime(2024, 3, 1, 9, 30))
    assert json.loads(encode_value([item])) == [
        {"id": "1", "text": "Write essay", "completed": False, "createdAt": "2024-03-01T09:30:00"}
    ]


def test_progress_roundtrip():
    progress = {"ssc": {"quant": {"t1": True, "t2": False}}, "upsc": {}}
    assert decode_text(encode_value(progress)) == progress


def test_todo_list_roundtrip_preserves_instants():
    todos = [
        TodoItem(id="b", text="Revise polity", created_at=datetime(2024, 3, 2, 8, 0),
                 completed=True, completed_at=datetime(2024, 3, 3, 21, 15, 5)),
        TodoItem(id="a", text="Write essay", created_at=datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)),
    ]
    decoded = [TodoItem.from_dict(d) for d in decode_text(encode_value(todos))]
    assert decoded == todos


def test_decode_text_raises_deserialization_error():
    with pytest.raises(DeserializationError):
        decode_text("")


def test_deeply_nested_text_uses_default():
    store = PersistentStore("todos", [], MemoryStorage({"todos": "[" * 200000}))
    assert store.get() == []


def test_decode_text_wraps_recursion_error():
    with pytest.raises(DeserializationError):
        decode_text("[" * 200000)


def test_write_happens_before_listeners(memory_storage):
    store = PersistentStore("activeTab", "syllabus", memory_storage)
    seen = []
    store.subscribe(lambda v: seen.append(memory_storage.read("activeTab")))
    store.set("todo")
    assert seen == ['"todo"']


def test_failing_listener_does_not_lose_write(memory_storage):
    store = PersistentStore("activeTab", "syllabus", memory_storage)

    def broken(_value):
        raise RuntimeError("render failed")

    store.subscribe(broken)
    with pytest.raises(RuntimeError):
        store.set("todo")
    assert store.get() == "todo"
    assert memory_storage.read("activeTab") == '"todo"'


def test_failed_write_logged_once():
    store = PersistentStore("activeTab", "syllabus", MemoryStorage(fail_writes=True))
    with capture_logs() as logs:
        store.set("todo")
    assert [entry["event"] for entry in logs] == ["storage.write_failed"]


def test_unencodable_value_logged():
    store = PersistentStore("todos", [], MemoryStorage())
    with capture_logs() as logs:
        store.set([object()])
    assert [entry["event"] for entry in logs] == ["store.encode_failed"]
