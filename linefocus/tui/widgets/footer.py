"""Key hint footer for the linefocus viewer.

Textual's built-in Footer ignores ANSI transparency, so the hints are
plain Static widgets in a HorizontalGroup.
"""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import HorizontalGroup
from textual.widget import Widget
from textual.widgets import Static


class LineFocusFooter(Widget):
    """Footer displaying keybinding hints.

    Args:
        bindings: List of (key, label) tuples to display.
    """

    DEFAULT_CSS = """
    LineFocusFooter {
        dock: bottom;
        height: 1;
        background: transparent;
    }

    LineFocusFooter > HorizontalGroup {
        background: transparent;
        height: 1;
    }

    LineFocusFooter .footer-key {
        color: $primary;
        text-style: bold;
        width: auto;
    }

    LineFocusFooter .footer-label {
        color: $text;
        width: auto;
        padding: 0 1 0 0;
    }
    """

    def __init__(
        self,
        bindings: list[tuple[str, str]] | None = None,
        *args,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self._hints = bindings or []

    @property
    def hints(self) -> list[tuple[str, str]]:
        return list(self._hints)

    def compose(self) -> ComposeResult:
        with HorizontalGroup():
            for key, label in self._hints:
                yield Static(f" {key} ", classes="footer-key", markup=False)
                yield Static(label, classes="footer-label", markup=False)
