"""Tests for the filter engine, sessions and workspace."""

import pytest

from linefocus.core.engine import FilterEngine, FilterSession, FilterWorkspace
from linefocus.core.persistence import (
    MemoryFilterPersistence,
    PersistenceError,
    PersistenceWriter,
)
from linefocus.core.state import FilterState


class BrokenPersistence(MemoryFilterPersistence):
    """Persistence whose reads fail."""

    def get(self, document_id):
        raise PersistenceError("disk on fire")


@pytest.fixture
def store():
    return MemoryFilterPersistence()


@pytest.fixture
def writer(store):
    return PersistenceWriter(store)


class TestFilterEngine:
    """Tests for FilterEngine.evaluate()."""

    def test_no_patterns_shows_all(self, notes_lines):
        result = FilterEngine().evaluate(notes_lines, FilterState())
        assert not result.active
        assert result.visibility.hidden_count == 0
        assert result.describe() == "filter disabled"

    def test_children_of_match(self, notes_lines):
        result = FilterEngine().evaluate(notes_lines, FilterState(patterns=("Task A",)))
        assert result.visibility.visible_line_numbers() == [4, 5, 6]
        assert result.describe() == "filter enabled: /Task A/"

    def test_heading_section(self, notes_lines):
        state = FilterState(patterns=("^## Log",), include_heading_child_items=True)
        result = FilterEngine().evaluate(notes_lines, state)
        assert result.visibility.visible_line_numbers() == [9, 10, 11, 12, 13]

    def test_invalid_combination_fails_open(self, notes_lines, caplog):
        state = FilterState(patterns=("(?i)foo", "bar"))
        result = FilterEngine().evaluate(notes_lines, state)
        assert result.matcher is None
        assert result.error is not None
        assert result.error.invalid_patterns == ["(?i)foo"]
        assert result.visibility.hidden_count == 0
        assert result.describe().startswith("filter failed")
        assert "Could not compose" in caplog.text

    def test_last_error_cleared_by_next_success(self, notes_lines):
        engine = FilterEngine()
        engine.evaluate(notes_lines, FilterState(patterns=("(?i)foo", "bar")))
        assert engine.last_error is not None
        engine.evaluate(notes_lines, FilterState(patterns=("bar",)))
        assert engine.last_error is None

    def test_templates_resolved_when_enabled(self, notes_lines, fixed_now):
        engine = FilterEngine(enable_template_variables=True, clock=lambda: fixed_now)
        result = engine.evaluate(notes_lines, FilterState(patterns=("^{{today}}",)))
        assert result.resolved == ("^2024-02-14",)
        assert result.visibility.visible_line_numbers() == [11]

    def test_week_range(self, notes_lines, fixed_now):
        engine = FilterEngine(enable_template_variables=True, clock=lambda: fixed_now)
        result = engine.evaluate(notes_lines, FilterState(patterns=("^{{this-week}}",)))
        assert result.visibility.visible_line_numbers() == [10, 11]

    def test_templates_left_alone_when_disabled(self, notes_lines):
        result = FilterEngine().evaluate(notes_lines, FilterState(patterns=("{{today}}",)))
        assert result.resolved == ("{{today}}",)
        assert result.visibility.visible_line_numbers() == []

    def test_blank_patterns_disable(self, notes_lines):
        result = FilterEngine().evaluate(notes_lines, FilterState(patterns=("  ",)))
        assert not result.active
        assert result.visibility.hidden_count == 0


class TestFilterSession:
    """Tests for FilterSession."""

    def test_initial_result_is_computed_lazily(self, notes_lines):
        session = FilterSession("doc", notes_lines)
        assert session.result.visibility.hidden_count == 0

    def test_subscribers_receive_each_result(self, notes_lines):
        session = FilterSession("doc", notes_lines)
        seen = []
        session.subscribe(seen.append)
        session.toggle_specific("TODO")
        session.toggle_specific("TODO")
        assert len(seen) == 2
        assert seen[0].state.patterns == ("TODO",)
        assert seen[1].state.patterns == ()

    def test_unsubscribe(self, notes_lines):
        session = FilterSession("doc", notes_lines)
        seen = []
        unsubscribe = session.subscribe(seen.append)
        unsubscribe()
        session.toggle_specific("TODO")
        assert seen == []

    def test_changes_are_persisted(self, notes_lines, store, writer):
        session = FilterSession("doc", notes_lines, writer=writer)
        session.toggle_specific("A")
        session.toggle_specific("B")
        assert store.get("doc") == ["A", "B"]
        session.apply_manual("C")
        assert store.get("doc") == ["C"]

    def test_clear_persists_empty_list(self, notes_lines, store, writer):
        session = FilterSession("doc", notes_lines, writer=writer)
        session.toggle_specific("A")
        session.clear_all()
        assert store.get("doc") == []

    def test_replace_all_with_same_set_is_a_no_op(self, notes_lines, store, writer):
        session = FilterSession(
            "doc", notes_lines, writer=writer, state=FilterState(patterns=("a", "b"))
        )
        first = session.result
        seen = []
        session.subscribe(seen.append)
        assert session.replace_all(["b", "a"]) is first
        assert seen == []
        assert store.get("doc") is None

    def test_flags_recompute_but_do_not_persist(self, notes_lines, store, writer):
        session = FilterSession(
            "doc", notes_lines, writer=writer, state=FilterState(patterns=("## Log",))
        )
        before = session.result.visibility.visible_line_numbers()
        after = session.set_flags(include_heading_child_items=True)
        assert after.visibility.visible_line_numbers() != before
        assert store.get("doc") is None

    def test_update_lines(self):
        session = FilterSession("doc", ["a", "b"], state=FilterState(patterns=("b",)))
        assert session.result.visibility.visible_line_numbers() == [2]
        result = session.update_lines(["b", "a", "b"])
        assert result.visibility.visible_line_numbers() == [1, 3]


class TestFilterWorkspace:
    """Tests for FilterWorkspace."""

    def test_open_restores_stored_patterns(self, notes_lines):
        store = MemoryFilterPersistence({"doc": ["TODO"]})
        session = FilterWorkspace(store).open("doc", notes_lines)
        assert session.state.patterns == ("TODO",)
        assert session.result.visibility.visible_line_numbers() == [11]

    def test_open_without_record_uses_defaults(self):
        defaults = FilterState(include_child_items=False)
        session = FilterWorkspace(defaults=defaults).open("doc")
        assert session.state == defaults

    def test_opening_does_not_write(self):
        store = MemoryFilterPersistence({"doc": ["x"]})
        workspace = FilterWorkspace(store)
        workspace.open("doc")
        workspace.open("other")
        assert store.records == {"doc": ["x"]}

    def test_read_failure_falls_back_to_defaults(self, caplog):
        session = FilterWorkspace(BrokenPersistence()).open("doc")
        assert session.state.patterns == ()
        assert "disk on fire" in caplog.text

    def test_sessions_are_independent_last_write_wins(self):
        store = MemoryFilterPersistence()
        workspace = FilterWorkspace(store)
        first = workspace.open("doc")
        second = workspace.open("doc")
        first.toggle_specific("A")
        second.toggle_specific("B")
        assert first.state.patterns == ("A",)
        assert second.state.patterns == ("B",)
        assert store.get("doc") == ["B"]
        assert len(workspace.sessions_for("doc")) == 2

    def test_rename_moves_record_and_sessions(self):
        store = MemoryFilterPersistence({"old.md": ["A"]})
        workspace = FilterWorkspace(store)
        session = workspace.open("old.md")
        workspace.rename_document("old.md", "new.md")
        assert store.records == {"new.md": ["A"]}
        assert session.document_id == "new.md"
        session.toggle_specific("B")
        assert store.get("new.md") == ["A", "B"]

    def test_forget_and_close(self):
        store = MemoryFilterPersistence({"doc": ["A"]})
        workspace = FilterWorkspace(store)
        session = workspace.open("doc")
        workspace.forget("doc")
        workspace.close(session)
        assert store.get("doc") is None
        assert workspace.sessions == []
