"""Tests for the PatternModal widget."""

from linefocus.core.compose import validate_pattern
from linefocus.tui.widgets.pattern_modal import PatternModal


class TestPatternModalInit:
    """Tests for PatternModal initialization."""

    def test_init_basic(self):
        modal = PatternModal()
        assert modal._initial == ""
        assert modal.recent == []

    def test_init_with_history(self):
        modal = PatternModal(current="TODO", history=["TODO", "FIXME"])
        assert modal._initial == "TODO"
        assert modal.recent == ["TODO", "FIXME"]

    def test_history_is_copied(self):
        history = ["a"]
        modal = PatternModal(history=history)
        history.append("b")
        assert modal.recent == ["a"]


class TestPatternModalCheck:
    """Tests for input validation inside the modal."""

    def test_valid_pattern(self):
        modal = PatternModal(validator=validate_pattern)
        assert modal.validation_error("TODO|FIXME") is None

    def test_invalid_pattern(self):
        modal = PatternModal(validator=validate_pattern)
        assert "Invalid regex" in modal.validation_error("[bad")

    def test_blank_is_accepted(self):
        modal = PatternModal(validator=validate_pattern)
        assert modal.validation_error("  ") is None

    def test_no_validator(self):
        assert PatternModal().validation_error("[bad") is None


class TestPatternModalImports:
    """Tests for PatternModal imports."""

    def test_import_from_widgets_package(self):
        from linefocus.tui.widgets import PatternModal as Exported
        assert Exported is PatternModal

    def test_action_cancel_method_exists(self):
        modal = PatternModal()
        assert callable(modal.action_cancel)
