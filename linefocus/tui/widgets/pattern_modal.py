"""Manual pattern modal for the linefocus viewer.

Entering a pattern replaces every active pattern with it. Recent entries
are offered as buttons so they can be re-applied with one press.
"""

from __future__ import annotations

from typing import Callable, Optional

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

Validator = Callable[[str], object]


class PatternModal(ModalScreen[Optional[str]]):
    """Modal screen asking for a single regex pattern.

    On Apply, Enter or a history button: dismisses with the pattern text
    (blank text is passed through so the caller can clear the filter).
    On Cancel/Escape: dismisses with None.
    """

    DEFAULT_CSS = """
    PatternModal {
        align: center middle;
    }

    #pattern-modal-container {
        width: 70;
        height: auto;
        max-height: 80%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    #pattern-modal-title {
        text-style: bold;
        width: 100%;
        content-align: center middle;
        margin-bottom: 1;
    }

    .section-label {
        margin-top: 1;
        color: $text-muted;
        text-style: bold;
    }

    #pattern-input {
        width: 100%;
        margin-top: 1;
    }

    #pattern-error {
        color: $error;
        height: auto;
    }

    .history-button {
        width: 100%;
        margin-top: 1;
    }

    #pattern-modal-buttons {
        margin-top: 1;
        height: 3;
        align: center middle;
    }

    #pattern-modal-buttons Button {
        margin: 0 1;
    }
    """

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(
        self,
        current: str = "",
        history: Optional[list[str]] = None,
        validator: Optional[Validator] = None,
        *args,
        **kwargs,
    ):
        """Initialize the pattern modal.

        Args:
            current: Text to pre-fill the input with.
            history: Recent manual patterns, newest first.
            validator: Called with a non-blank pattern before dismissing;
                a ValueError keeps the modal open and shows its message.
        """
        super().__init__(*args, **kwargs)
        self._initial = current
        self._recent = list(history or [])
        self._check_pattern = validator

    @property
    def recent(self) -> list[str]:
        return list(self._recent)

    def compose(self) -> ComposeResult:
        """Create the modal layout."""
        with Vertical(id="pattern-modal-container"):
            yield Static("Filter by pattern", id="pattern-modal-title")

            yield Label("Pattern (regex)", classes="section-label")
            yield Input(
                value=self._initial,
                placeholder="Regex pattern, e.g. TODO|{{today}}",
                id="pattern-input",
            )
            yield Static("", id="pattern-error", markup=False)

            if self._recent:
                yield Label("Recent", classes="section-label")
                for index, entry in enumerate(self._recent):
                    yield Button(
                        Text(entry),
                        id=f"history-{index}",
                        classes="history-button",
                    )

            with Horizontal(id="pattern-modal-buttons"):
                yield Button("Apply", variant="primary", id="btn-apply")
                yield Button("Cancel", variant="default", id="btn-cancel")

    def validation_error(self, pattern: str) -> Optional[str]:
        """Return the validation message for a pattern, or None if usable.

        Blank patterns are accepted here; they clear the filter.
        """
        if not pattern.strip() or self._check_pattern is None:
            return None
        try:
            self._check_pattern(pattern)
        except ValueError as e:
            return str(e)
        return None

    def on_mount(self) -> None:
        self.query_one("#pattern-input", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        button_id = event.button.id or ""
        if button_id == "btn-apply":
            self._submit(self.query_one("#pattern-input", Input).value)
        elif button_id == "btn-cancel":
            self.dismiss(None)
        elif button_id.startswith("history-"):
            index = int(button_id.removeprefix("history-"))
            self._submit(self._recent[index])

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "pattern-input":
            self._submit(event.value)

    def action_cancel(self) -> None:
        """Handle escape key."""
        self.dismiss(None)

    def _submit(self, pattern: str) -> None:
        error = self.validation_error(pattern)
        if error is not None:
            self.query_one("#pattern-error", Static).update(error)
            return
        self.dismiss(pattern)
