"""Tests for the saved pattern library."""

import pytest
from pydantic import ValidationError

from linefocus.core.saved import SavedPatternLibrary
from linefocus.models.saved_pattern import SavedPattern


@pytest.fixture
def library():
    lib = SavedPatternLibrary()
    lib.add(r"- \[ \]", name="Open tasks", pinned=True, id="open")
    lib.add("TODO", id="todo")
    lib.add("FIXME", pinned=True, id="fixme")
    return lib


class TestSavedPatternLibrary:
    """Tests for SavedPatternLibrary."""

    def test_add_generates_id(self):
        item = SavedPatternLibrary().add("x")
        assert len(item.id) == 8

    def test_iteration_keeps_insertion_order(self, library):
        assert [item.id for item in library] == ["open", "todo", "fixme"]
        assert len(library) == 3
        assert "todo" in library

    def test_pinned(self, library):
        assert [item.id for item in library.pinned()] == ["open", "fixme"]

    def test_get(self, library):
        assert library.get("todo").pattern == "TODO"
        assert library.get("missing") is None

    def test_add_invalid_pattern(self):
        with pytest.raises(ValidationError):
            SavedPatternLibrary().add("[bad")

    def test_add_duplicate_id(self, library):
        with pytest.raises(ValueError, match="Duplicate"):
            library.add("x", id="todo")

    def test_edit_keeps_id(self, library):
        item = library.edit("todo", pattern="TODO|FIXME", name="Work")
        assert item.id == "todo"
        assert library.get("todo").pattern == "TODO|FIXME"
        assert library.get("todo").name == "Work"

    def test_edit_validates_pattern(self, library):
        with pytest.raises(ValidationError):
            library.edit("todo", pattern="(")
        assert library.get("todo").pattern == "TODO"

    def test_edit_unknown_field(self, library):
        with pytest.raises(ValueError, match="id"):
            library.edit("todo", id="other")

    def test_edit_missing(self, library):
        with pytest.raises(KeyError):
            library.edit("missing", name="x")

    def test_toggle_pin(self, library):
        assert library.toggle_pin("todo").pinned is True
        assert [item.id for item in library.pinned()] == ["open", "todo", "fixme"]

    def test_remove(self, library):
        removed = library.remove("todo")
        assert removed.pattern == "TODO"
        assert "todo" not in library
        with pytest.raises(KeyError):
            library.remove("todo")

    def test_template_validation_uses_resolved_form(self):
        library = SavedPatternLibrary(enable_template_variables=True)
        item = library.add("^{{today}}")
        assert item.pattern == "^{{today}}"

    def test_from_dicts_and_back(self):
        entries = [
            {"id": "a", "pattern": "x", "pinned": True},
            {"id": "b", "name": "Bee", "pattern": "y"},
        ]
        library = SavedPatternLibrary.from_dicts(entries)
        assert library.to_dicts() == [
            {"id": "a", "pattern": "x", "pinned": True},
            {"id": "b", "name": "Bee", "pattern": "y", "pinned": False},
        ]

    def test_duplicate_ids_rejected(self):
        items = [SavedPattern(id="a", pattern="x"), SavedPattern(id="a", pattern="y")]
        with pytest.raises(ValueError):
            SavedPatternLibrary(items)
