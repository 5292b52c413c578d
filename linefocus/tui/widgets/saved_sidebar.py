"""Saved pattern sidebar for the linefocus viewer.

Each saved pattern gets a checkbox that is ticked while its pattern is
active. Pinned patterns are listed first with their number key.
"""

from __future__ import annotations

from typing import Iterable

from rich.text import Text
from textual.app import ComposeResult
from textual.message import Message
from textual.widgets import Checkbox, Label, Static

from linefocus.core.saved import SavedPatternLibrary
from linefocus.models.saved_pattern import SavedPattern

MAX_PINNED_KEYS = 9


class SavedPatternToggled(Message):
    """Message emitted when a saved pattern checkbox is flipped.

    Attributes:
        item_id: Id of the saved pattern.
        pattern: The raw pattern to toggle.
    """

    def __init__(self, item_id: str, pattern: str) -> None:
        super().__init__()
        self.item_id = item_id
        self.pattern = pattern


class SavedPatternCheckbox(Checkbox):
    """Checkbox bound to one saved pattern."""

    def __init__(self, label: Text, item: SavedPattern, value: bool = False, **kwargs):
        super().__init__(label, value=value, **kwargs)
        self.item = item


def ordered_items(library: SavedPatternLibrary) -> list[tuple[str, SavedPattern]]:
    """Saved patterns in display order, with their key hint.

    Returns:
        (key, item) pairs; the first nine pinned items get keys "1".."9",
        everything else an empty key.
    """
    pinned = library.pinned()
    rows = [
        (str(index) if index <= MAX_PINNED_KEYS else "", item)
        for index, item in enumerate(pinned, start=1)
    ]
    rows.extend(("", item) for item in library if not item.pinned)
    return rows


class SavedSidebar(Static):
    """Sidebar listing saved patterns as toggles."""

    DEFAULT_CSS = """
    SavedSidebar {
        width: 32;
        height: 100%;
        padding: 0 1;
    }

    SavedSidebar > Label {
        width: 100%;
        text-style: bold;
        margin-bottom: 1;
    }

    SavedSidebar > .empty-label {
        color: $text-muted;
        text-style: none;
    }
    """

    def __init__(
        self,
        library: SavedPatternLibrary,
        active: Iterable[str] = (),
        *args,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self._library = library
        self._active_patterns = set(active)

    @property
    def active_patterns(self) -> set[str]:
        return set(self._active_patterns)

    def compose(self) -> ComposeResult:
        yield Label("Saved patterns")
        rows = ordered_items(self._library)
        if not rows:
            yield Label("none configured", classes="empty-label")
            return
        for key, item in rows:
            label = Text()
            if key:
                label.append(f"{key} ", style="bold")
            label.append(item.display_name)
            yield SavedPatternCheckbox(
                label,
                item=item,
                value=item.pattern in self._active_patterns,
                id=f"saved-{item.id}",
            )

    def sync(self, active: Iterable[str]) -> None:
        """Tick exactly the checkboxes whose pattern is active."""
        self._active_patterns = set(active)
        if not self.is_mounted:
            return
        for checkbox in self.query(SavedPatternCheckbox):
            value = checkbox.item.pattern in self._active_patterns
            if checkbox.value != value:
                with checkbox.prevent(Checkbox.Changed):
                    checkbox.value = value

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        """Forward a user toggle as SavedPatternToggled."""
        if isinstance(event.checkbox, SavedPatternCheckbox):
            event.stop()
            item = event.checkbox.item
            self.post_message(SavedPatternToggled(item.id, item.pattern))
