"""Main TUI application for linefocus.

Layout: header / status bar / saved pattern sidebar + document view /
footer. The app holds one FilterSession for the open document and
re-renders whenever the session publishes a new result.
"""

from __future__ import annotations

import logging
import warnings
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Optional

from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import Resize
from textual.widgets import DataTable, Static

from linefocus.core.compose import PatternValidationError
from linefocus.core.config import Config, ConfigLoader
from linefocus.core.engine import FilterEngine, FilterResult, FilterSession, FilterWorkspace
from linefocus.core.history import PatternHistory
from linefocus.core.persistence import (
    JsonFilterPersistence,
    MemoryFilterPersistence,
    PersistenceError,
    PersistenceWriter,
)
from linefocus.core.state import FilterState
from linefocus.core.template import TemplateFormatWarning
from linefocus.tui.theme import register_nord_theme
from linefocus.tui.widgets.footer import LineFocusFooter
from linefocus.tui.widgets.pattern_modal import PatternModal
from linefocus.tui.widgets.saved_sidebar import SavedPatternToggled, SavedSidebar
from linefocus.utils.documents import document_id, read_lines

logger = logging.getLogger(__name__)

UNTITLED = "<untitled>"


# ---------------------------------------------------------------------------
# Widgets
# ---------------------------------------------------------------------------

class StatusBar(Static):
    """One-line summary of the active filter and hidden line count."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._filter_result: FilterResult | None = None

    @property
    def result(self) -> FilterResult | None:
        return self._filter_result

    @result.setter
    def result(self, value: FilterResult) -> None:
        self._filter_result = value
        self.refresh()

    def render(self) -> Text:
        if self._filter_result is None:
            return Text("no document")
        return status_text(self._filter_result)


def status_text(result: FilterResult) -> Text:
    """Build the status bar line for a result."""
    visibility = result.visibility
    state = result.state
    text = Text()
    if result.error is not None:
        text.append("filter failed", style="bold red")
        text.append(f" ({len(state.patterns)} patterns)")
    elif result.active:
        text.append(result.describe(), style="bold")
    else:
        text.append("filter disabled", style="dim")
    text.append(f" | {visibility.hidden_count} of {len(visibility)} lines hidden")
    flags = [
        ("empty", "hidden" if state.hide_empty_lines else "shown"),
        ("children", "on" if state.include_child_items else "off"),
        ("headings", "on" if state.include_heading_child_items else "off"),
    ]
    text.append(" | " + "  ".join(f"{name}:{value}" for name, value in flags), style="dim")
    return text


class DocumentView(DataTable):
    """Table of the visible lines, keyed by their original line number."""

    BINDINGS = [
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("g", "scroll_top", "Top", show=False),
        Binding("G", "scroll_bottom", "Bottom", show=False),
    ]

    LINE_COL_WIDTH = 6
    TEXT_COL_MIN = 20

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.cursor_type = "row"
        self.show_header = False
        self._text_col_width = 80

    def on_mount(self) -> None:
        self.add_column("Line", key="line", width=self.LINE_COL_WIDTH)
        self.add_column("Text", key="text", width=self._text_col_width)
        self.call_after_refresh(self._sync_text_width)

    def on_resize(self, event: Resize) -> None:
        del event
        self.call_after_refresh(self._sync_text_width)

    def _sync_text_width(self) -> None:
        table_width = self.size.width
        if table_width <= 0:
            return
        # 2 chars spacing per column boundary
        width = max(self.TEXT_COL_MIN, table_width - self.LINE_COL_WIDTH - 6)
        if width == self._text_col_width:
            return
        self._text_col_width = width
        column = self.columns.get("text")
        if column is not None:
            column.width = width
            self.refresh()

    def show_lines(self, lines: list[str], line_numbers: Iterable[int]) -> None:
        """Replace the rows with the given 1-indexed lines."""
        prev_row = self.cursor_row
        self.clear()
        for number in line_numbers:
            self.add_row(
                Text(str(number), style="dim"),
                Text(lines[number - 1]),
                key=str(number),
            )
        if self.row_count:
            self.move_cursor(row=min(prev_row, self.row_count - 1))

    def action_scroll_top(self) -> None:
        self.move_cursor(row=0)

    def action_scroll_bottom(self) -> None:
        if self.row_count > 0:
            self.move_cursor(row=self.row_count - 1)


# ---------------------------------------------------------------------------
# Main application
# ---------------------------------------------------------------------------

class LineFocusApp(App):
    """Interactive viewer that shows only the lines passing the filters.

    Attributes:
        document: Path of the open document (None for in-memory lines).
        session: Filter session for the document.
        library: Saved patterns from the config.
        history: Recent manual patterns.
    """

    CSS = """
    #header {
        height: 1;
        padding: 0 1;
        color: $primary;
        text-style: bold;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
    }

    #body {
        height: 1fr;
    }

    .panel {
        border: round $secondary;
    }

    #document-panel {
        width: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("/", "open_pattern", "Pattern"),
        Binding("c", "clear", "Clear"),
        Binding("e", "toggle_hide_empty", "Empty lines", show=False),
        Binding("i", "toggle_children", "Children", show=False),
        Binding("h", "toggle_headings", "Headings", show=False),
        Binding("r", "reload", "Reload", show=False),
    ] + [
        Binding(str(n), f"toggle_pinned({n})", f"Pinned {n}", show=False)
        for n in range(1, 10)
    ]

    def __init__(
        self,
        document: Path | None = None,
        lines: list[str] | None = None,
        config: Config | None = None,
        workspace: FilterWorkspace | None = None,
        history: PatternHistory | None = None,
        history_store: JsonFilterPersistence | None = None,
        *args,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.last_notice: str | None = None

        # Widget refs (set in on_mount)
        self._ui_ready = False
        self._status_bar: StatusBar | None = None
        self._document_view: DocumentView | None = None
        self._sidebar: SavedSidebar | None = None

        self.document = document
        self.config = config or Config()
        self.library = self.config.saved_library()
        self.history = history or PatternHistory(limit=self.config.history.limit)
        self._history_store = history_store

        if lines is None:
            lines = read_lines(document) if document else []
        self.workspace = workspace or FilterWorkspace(
            MemoryFilterPersistence(),
            engine=FilterEngine(
                enable_template_variables=self.config.filter.enable_template_variables,
            ),
            defaults=FilterState.from_config(self.config.filter),
        )
        self.document_id = document_id(document) if document else UNTITLED
        self.session: FilterSession = self.workspace.open(self.document_id, lines)
        self._unsubscribe = self.session.subscribe(self._on_result)
        self._latest: FilterResult = self._with_template_notices(
            lambda: self.session.result
        )

    # -- Properties ----------------------------------------------------------

    @property
    def result(self) -> FilterResult:
        return self._latest

    @property
    def visible_lines(self) -> list[tuple[int, str]]:
        """(line number, text) pairs currently shown."""
        lines = self.session.lines
        return [
            (number, lines[number - 1])
            for number in self._latest.visibility.visible_line_numbers()
        ]

    # -- Compose & Mount -----------------------------------------------------

    def compose(self) -> ComposeResult:
        title = self.document.name if self.document else "linefocus"
        yield Static(f"linefocus: {title}", id="header", markup=False)
        yield StatusBar(id="status-bar")
        with Horizontal(id="body"):
            with Vertical(id="saved-panel", classes="panel"):
                yield SavedSidebar(self.library, self.session.state.patterns, id="saved-sidebar")
            with Vertical(id="document-panel", classes="panel"):
                yield DocumentView(id="document-view")
        yield LineFocusFooter(
            bindings=[
                ("q", "Quit"),
                ("/", "Pattern"),
                ("1-9", "Pinned"),
                ("c", "Clear"),
                ("e", "Empty"),
                ("i", "Children"),
                ("h", "Headings"),
                ("r", "Reload"),
            ],
        )

    def on_mount(self) -> None:
        """Apply the theme, grab widget refs and render the first result."""
        register_nord_theme(self)

        self._status_bar = self.query_one("#status-bar", StatusBar)
        self._document_view = self.query_one("#document-view", DocumentView)
        self._sidebar = self.query_one("#saved-sidebar", SavedSidebar)

        self.query_one("#saved-panel").border_title = "Saved"
        self.query_one("#document-panel").border_title = (
            self.document.name if self.document else "Document"
        )

        self._ui_ready = True
        self.call_after_refresh(self._render_result)
        self._document_view.focus()

    def on_unmount(self) -> None:
        self._unsubscribe()
        self.workspace.close(self.session)

    # -- Rendering -----------------------------------------------------------

    def _on_result(self, result: FilterResult) -> None:
        self._latest = result
        self._render_result()

    def _render_result(self) -> None:
        if not self._ui_ready:
            return
        result = self._latest
        if self._status_bar:
            self._status_bar.result = result
        if self._document_view:
            self._document_view.show_lines(
                self.session.lines, result.visibility.visible_line_numbers()
            )
        if self._sidebar:
            self._sidebar.sync(result.state.patterns)

    def _notice(self, message: str, severity: str = "information") -> None:
        """Show a toast notice (recorded for tests when not running)."""
        self.last_notice = message
        logger.info("%s", message)
        if self._ui_ready:
            self.notify(escape(message), severity=severity)

    def _with_template_notices(self, operation: Callable[[], FilterResult]) -> FilterResult:
        """Run a session operation, turning template warnings into notices."""
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", TemplateFormatWarning)
            result = operation()
        for warning in caught:
            if issubclass(warning.category, TemplateFormatWarning):
                self._notice(str(warning.message), severity="warning")
        return result

    def _announce(self, result: FilterResult) -> None:
        if result.error is not None:
            self._notice(f"{result.error}; showing all lines", severity="error")
        else:
            self._notice(result.describe())

    # -- Filter operations ---------------------------------------------------

    def apply_manual_pattern(self, pattern: Optional[str]) -> None:
        """Replace every active pattern with a manually entered one.

        None means the entry was cancelled. A blank entry disables the filter.
        """
        if pattern is None:
            return
        if not pattern.strip():
            self._with_template_notices(lambda: self.session.apply_manual(None))
            self._notice("Pattern cannot be empty; filter disabled", severity="warning")
            return
        try:
            self._with_template_notices(lambda: self.session.engine.validate(pattern))
        except PatternValidationError as e:
            self._notice(f"Invalid pattern: {e}", severity="error")
            return

        self.history.record(pattern)
        self._save_history()
        result = self._with_template_notices(lambda: self.session.apply_manual(pattern))
        self._announce(result)

    def toggle_saved(self, item_id: str) -> None:
        """Toggle the pattern of a saved item by id."""
        item = self.library.get(item_id)
        if item is None:
            self._notice(f"Saved pattern '{item_id}' not found", severity="error")
            return
        result = self._with_template_notices(
            lambda: self.session.toggle_specific(item.pattern)
        )
        self._announce(result)

    def _set_flag(self, **flags: bool) -> None:
        self._with_template_notices(lambda: self.session.set_flags(**flags))

    def _save_history(self) -> None:
        if self._history_store is None:
            return
        try:
            self._history_store.save_history(self.history.entries)
        except PersistenceError as e:
            logger.warning("Could not save pattern history: %s", e)

    # -- Event handlers ------------------------------------------------------

    def on_saved_pattern_toggled(self, event: SavedPatternToggled) -> None:
        self.toggle_saved(event.item_id)

    # -- Actions -------------------------------------------------------------

    def action_quit(self) -> None:
        self.exit()

    def action_open_pattern(self) -> None:
        """Open the manual pattern modal."""
        current = self.session.state.patterns
        self.push_screen(
            PatternModal(
                current=current[0] if len(current) == 1 else "",
                history=self.history.entries,
                validator=self.session.engine.validate,
            ),
            callback=self.apply_manual_pattern,
        )

    def action_toggle_pinned(self, number: int) -> None:
        """Toggle the nth pinned saved pattern (1-indexed)."""
        pinned = self.library.pinned()
        if not 1 <= number <= len(pinned):
            self._notice(f"No pinned pattern on key {number}", severity="warning")
            return
        self.toggle_saved(pinned[number - 1].id)

    def action_clear(self) -> None:
        self._with_template_notices(self.session.clear_all)
        self._notice("filter disabled")

    def action_toggle_hide_empty(self) -> None:
        self._set_flag(hide_empty_lines=not self.session.state.hide_empty_lines)

    def action_toggle_children(self) -> None:
        self._set_flag(include_child_items=not self.session.state.include_child_items)

    def action_toggle_headings(self) -> None:
        self._set_flag(
            include_heading_child_items=not self.session.state.include_heading_child_items
        )

    def action_reload(self) -> None:
        """Re-read the document from disk and recompute."""
        if self.document is None:
            return
        try:
            lines = read_lines(self.document)
        except OSError as e:
            self._notice(f"Could not reload {self.document}: {e}", severity="error")
            return
        self._with_template_notices(lambda: self.session.update_lines(lines))


# ---------------------------------------------------------------------------
# Entry point helper
# ---------------------------------------------------------------------------

def run_tui(document: Path, config: Config | None = None) -> None:
    """Run the viewer on a document with persisted filters.

    Args:
        document: Path of the document to open.
        config: Loaded configuration; discovered from disk when None.
    """
    config = config or ConfigLoader().load_merged()
    store = JsonFilterPersistence(config.storage.state_path)
    writer = PersistenceWriter(
        store,
        executor=ThreadPoolExecutor(max_workers=1, thread_name_prefix="linefocus-save"),
    )
    workspace = FilterWorkspace(
        store,
        engine=FilterEngine(
            enable_template_variables=config.filter.enable_template_variables,
        ),
        writer=writer,
        defaults=FilterState.from_config(config.filter),
    )
    app = LineFocusApp(
        document=document,
        config=config,
        workspace=workspace,
        history=PatternHistory(store.load_history(), limit=config.history.limit),
        history_store=store,
    )
    try:
        app.run()
    finally:
        writer.close()


if __name__ == "__main__":
    import sys

    run_tui(Path(sys.argv[1]))
