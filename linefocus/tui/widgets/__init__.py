"""Textual widgets for the linefocus viewer."""

from linefocus.tui.widgets.footer import LineFocusFooter
from linefocus.tui.widgets.pattern_modal import PatternModal
from linefocus.tui.widgets.saved_sidebar import (
    SavedPatternCheckbox,
    SavedPatternToggled,
    SavedSidebar,
)

__all__ = [
    "LineFocusFooter",
    "PatternModal",
    "SavedPatternCheckbox",
    "SavedPatternToggled",
    "SavedSidebar",
]
