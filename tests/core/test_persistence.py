"""Tests for filter persistence adapters and the background writer."""

import json
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from linefocus.core.persistence import (
    JsonFilterPersistence,
    MemoryFilterPersistence,
    PersistenceError,
    PersistenceWriter,
)


class FailingPersistence(MemoryFilterPersistence):
    """Persistence whose writes always fail."""

    def __init__(self):
        super().__init__()
        self.attempts = 0

    def set(self, document_id, patterns):
        self.attempts += 1
        raise PersistenceError("read-only", path=None)


class TestMemoryFilterPersistence:
    """Tests for the in-memory adapter."""

    def test_absent_record_is_none(self):
        assert MemoryFilterPersistence().get("doc") is None

    def test_set_get_remove(self):
        store = MemoryFilterPersistence()
        store.set("doc", ["a"])
        assert store.get("doc") == ["a"]
        store.remove("doc")
        assert store.get("doc") is None

    def test_returns_copies(self):
        store = MemoryFilterPersistence({"doc": ["a"]})
        store.get("doc").append("b")
        assert store.get("doc") == ["a"]

    def test_rename_missing_is_ignored(self):
        store = MemoryFilterPersistence({"a": ["x"]})
        store.rename("missing", "b")
        assert store.records == {"a": ["x"]}


class TestJsonFilterPersistence:
    """Tests for the JSON state file adapter."""

    def test_missing_file_starts_empty(self, state_file):
        store = JsonFilterPersistence(state_file)
        assert store.get("doc") is None
        assert store.documents() == {}
        assert not state_file.exists()

    def test_set_writes_file(self, state_file):
        store = JsonFilterPersistence(state_file)
        store.set("/notes/todo.md", ["TODO", "{{today}}"])
        data = json.loads(state_file.read_text())
        assert data["documents"] == {"/notes/todo.md": ["TODO", "{{today}}"]}
        assert data["version"] == 1

    def test_survives_reload(self, state_file):
        JsonFilterPersistence(state_file).set("doc", ["a", "b"])
        assert JsonFilterPersistence(state_file).get("doc") == ["a", "b"]

    def test_empty_list_is_kept(self, state_file):
        JsonFilterPersistence(state_file).set("doc", [])
        assert JsonFilterPersistence(state_file).get("doc") == []

    def test_remove_and_rename(self, state_file):
        store = JsonFilterPersistence(state_file)
        store.set("a", ["x"])
        store.set("b", ["y"])
        store.rename("a", "c")
        store.remove("b")
        assert JsonFilterPersistence(state_file).documents() == {"c": ["x"]}

    def test_no_temp_files_left(self, state_file):
        store = JsonFilterPersistence(state_file)
        store.set("doc", ["a"])
        store.set("doc", ["b"])
        assert [p.name for p in state_file.parent.iterdir()] == ["state.json"]

    def test_corrupt_file_is_ignored(self, state_file, caplog):
        state_file.parent.mkdir(parents=True)
        state_file.write_text("{not json")
        with caplog.at_level(logging.WARNING):
            store = JsonFilterPersistence(state_file)
        assert store.documents() == {}
        assert "Ignoring unreadable state file" in caplog.text

    def test_undecodable_file_is_ignored(self, state_file, caplog):
        state_file.parent.mkdir(parents=True)
        state_file.write_bytes(b'{"documents": {"\xff\xfe": ["x"]}}')
        with caplog.at_level(logging.WARNING):
            store = JsonFilterPersistence(state_file)
        assert store.documents() == {}
        assert "Ignoring unreadable state file" in caplog.text

    def test_history_round_trip(self, state_file):
        store = JsonFilterPersistence(state_file)
        store.set("doc", ["a"])
        store.save_history(["b", "a"])
        reloaded = JsonFilterPersistence(state_file)
        assert reloaded.load_history() == ["b", "a"]
        assert reloaded.get("doc") == ["a"]

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = JsonFilterPersistence(blocker / "state.json")
        with pytest.raises(PersistenceError) as exc_info:
            store.set("doc", ["a"])
        assert exc_info.value.path == blocker / "state.json"


class TestPersistenceWriter:
    """Tests for PersistenceWriter."""

    def test_inline_writes(self):
        store = MemoryFilterPersistence()
        writer = PersistenceWriter(store)
        writer.save("doc", ("a", "b"))
        assert store.get("doc") == ["a", "b"]
        writer.rename("doc", "new")
        assert store.records == {"new": ["a", "b"]}
        writer.remove("new")
        assert store.records == {}

    def test_background_writes_keep_order(self):
        store = MemoryFilterPersistence()
        writer = PersistenceWriter(store, executor=ThreadPoolExecutor(max_workers=1))
        for n in range(20):
            writer.save("doc", [str(n)])
        writer.close()
        assert store.get("doc") == ["19"]

    def test_failure_is_logged_once(self, caplog):
        store = FailingPersistence()
        writer = PersistenceWriter(store)
        with caplog.at_level(logging.DEBUG, logger="linefocus.core.persistence"):
            writer.save("doc", ["a"])
            writer.save("doc", ["b"])
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert store.attempts == 2
        assert writer.failed

    def test_failure_in_background_does_not_raise(self):
        writer = PersistenceWriter(
            FailingPersistence(), executor=ThreadPoolExecutor(max_workers=1)
        )
        writer.save("doc", ["a"])
        writer.flush()
        assert writer.failed
        writer.close()
