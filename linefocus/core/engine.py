"""Filter engine and per-view sessions.

The engine runs the pipeline for one recompute: resolve templates, compose
one matcher, compute line visibility. A FilterSession owns the state of one
document view, recomputes on every change and publishes the result to its
subscribers. A FilterWorkspace opens sessions seeded from persistence and
keeps persisted records in step with document renames.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from linefocus.core.compose import CompositionError, compose, usable_patterns, validate_pattern
from linefocus.core.persistence import (
    FilterPersistence,
    MemoryFilterPersistence,
    PersistenceError,
    PersistenceWriter,
)
from linefocus.core.state import FilterState
from linefocus.core.template import Clock, resolve_all
from linefocus.core.visibility import VisibilityCalculator, VisibilityMap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterResult:
    """Outcome of one recompute.

    Attributes:
        state: The filter state the result was computed from.
        resolved: Template-expanded patterns, in the state's order.
        matcher: Combined matcher, or None when filtering is off.
        visibility: Per-line hide decision.
        error: Composition failure, if the active patterns could not be joined.
    """

    state: FilterState
    resolved: tuple[str, ...]
    matcher: Optional[re.Pattern[str]]
    visibility: VisibilityMap
    error: Optional[CompositionError] = None

    @property
    def active(self) -> bool:
        return self.matcher is not None

    def describe(self) -> str:
        """One-line status for notices and status bars."""
        if self.error is not None:
            return f"filter failed: {self.error}"
        if not self.active:
            return "filter disabled"
        shown = ", ".join(f"/{p}/" for p in usable_patterns(self.resolved))
        return f"filter enabled: {shown}"


Subscriber = Callable[[FilterResult], None]


class FilterEngine:
    """Pipeline from raw patterns to a visibility map.

    Only ``last_error`` is kept between calls; it is overwritten by every
    composition, so sessions sharing an engine should read
    ``FilterResult.error`` instead.

    Args:
        enable_template_variables: Resolve date templates before composing.
        clock: Callable returning the reference time for templates; None
            means the current time.
    """

    def __init__(
        self,
        enable_template_variables: bool = False,
        clock: Optional[Callable[[], Clock]] = None,
    ):
        self.enable_template_variables = enable_template_variables
        self._clock = clock
        self.last_error: Optional[CompositionError] = None

    def now(self) -> Clock:
        return self._clock() if self._clock is not None else None

    def resolve(self, patterns: Iterable[str]) -> list[str]:
        """Expand templates when enabled, otherwise pass patterns through."""
        return resolve_all(
            patterns,
            now=self.now(),
            enabled=self.enable_template_variables,
        )

    def validate(self, pattern: Optional[str]) -> str:
        """Validate a pattern offered by the user before it enters a state.

        Raises:
            PatternValidationError: If the pattern is blank or invalid.
        """
        return validate_pattern(
            pattern,
            enable_template_variables=self.enable_template_variables,
            now=self.now(),
        )

    def build_matcher(
        self,
        resolved: Iterable[str],
    ) -> tuple[Optional[re.Pattern[str]], Optional[CompositionError]]:
        """Compose resolved patterns, failing open.

        Returns:
            (matcher, None) on success, (None, error) if composition failed.
        """
        try:
            matcher = compose(resolved)
        except CompositionError as e:
            logger.warning("%s", e)
            self.last_error = e
            return None, e
        self.last_error = None
        return matcher, None

    def evaluate(
        self,
        lines: Iterable[str],
        state: FilterState,
        calculator: Optional[VisibilityCalculator] = None,
    ) -> FilterResult:
        """Run the whole pipeline for one document.

        Args:
            lines: Line texts of the document.
            state: Active patterns and flags.
            calculator: Calculator holding the previous result for fallback.

        Returns:
            FilterResult for this recompute.
        """
        resolved = tuple(self.resolve(state.patterns))
        matcher, error = self.build_matcher(resolved)
        calculator = calculator or VisibilityCalculator()
        visibility = calculator.compute(
            lines,
            matcher,
            hide_empty_lines=state.hide_empty_lines,
            include_child_items=state.include_child_items,
            include_heading_child_items=state.include_heading_child_items,
        )
        return FilterResult(
            state=state,
            resolved=resolved,
            matcher=matcher,
            visibility=visibility,
            error=error,
        )


class FilterSession:
    """Filter state and latest result for one open document view.

    Every state change recomputes visibility, notifies subscribers and,
    when a writer is attached, saves the raw patterns for the document.
    """

    def __init__(
        self,
        document_id: str,
        lines: Iterable[str] = (),
        engine: Optional[FilterEngine] = None,
        writer: Optional[PersistenceWriter] = None,
        state: Optional[FilterState] = None,
    ):
        self.document_id = document_id
        self._lines = list(lines)
        self._engine = engine or FilterEngine()
        self._writer = writer
        self._state = state or FilterState()
        self._calculator = VisibilityCalculator()
        self._subscribers: list[Subscriber] = []
        self._result: Optional[FilterResult] = None

    @property
    def state(self) -> FilterState:
        return self._state

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    @property
    def engine(self) -> FilterEngine:
        return self._engine

    @property
    def result(self) -> FilterResult:
        if self._result is None:
            return self.recompute()
        return self._result

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for every new result.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def recompute(self) -> FilterResult:
        result = self._engine.evaluate(self._lines, self._state, self._calculator)
        self._result = result
        for callback in list(self._subscribers):
            callback(result)
        return result

    def update_lines(self, lines: Iterable[str]) -> FilterResult:
        """Recompute after a document edit or viewport change."""
        self._lines = list(lines)
        return self.recompute()

    def toggle_specific(self, pattern: str) -> FilterResult:
        return self._mutate(self._state.toggle_specific(pattern))

    def apply_manual(self, pattern: Optional[str]) -> FilterResult:
        return self._mutate(self._state.apply_manual(pattern))

    def clear_all(self) -> FilterResult:
        return self._mutate(self._state.clear_all())

    def replace_all(self, patterns: Iterable[str]) -> FilterResult:
        return self._mutate(self._state.replace_all(patterns))

    def set_flags(
        self,
        hide_empty_lines: Optional[bool] = None,
        include_child_items: Optional[bool] = None,
        include_heading_child_items: Optional[bool] = None,
    ) -> FilterResult:
        """Change behaviour flags. Flags are configuration, so nothing is saved."""
        new_state = self._state.with_flags(
            hide_empty_lines=hide_empty_lines,
            include_child_items=include_child_items,
            include_heading_child_items=include_heading_child_items,
        )
        if new_state is self._state:
            return self.result
        self._state = new_state
        return self.recompute()

    def _mutate(self, new_state: FilterState) -> FilterResult:
        if new_state is self._state:
            return self.result
        self._state = new_state
        result = self.recompute()
        if self._writer is not None:
            self._writer.save(self.document_id, new_state.patterns)
        return result


class FilterWorkspace:
    """Opens filter sessions and keeps persisted records in step.

    Sessions for the same document are independent; the last one to change
    its patterns wins in persistence.
    """

    def __init__(
        self,
        persistence: Optional[FilterPersistence] = None,
        engine: Optional[FilterEngine] = None,
        writer: Optional[PersistenceWriter] = None,
        defaults: Optional[FilterState] = None,
    ):
        self.persistence = persistence if persistence is not None else MemoryFilterPersistence()
        self.engine = engine or FilterEngine()
        self.writer = writer or PersistenceWriter(self.persistence)
        self._defaults = defaults or FilterState()
        self._sessions: list[FilterSession] = []

    @property
    def sessions(self) -> list[FilterSession]:
        return list(self._sessions)

    def open(self, document_id: str, lines: Iterable[str] = ()) -> FilterSession:
        """Open a view on a document, restoring its last active patterns."""
        try:
            stored = self.persistence.get(document_id)
        except PersistenceError as e:
            logger.warning("Could not read saved filters for %s: %s", document_id, e)
            stored = None

        state = self._defaults.replace_all(stored) if stored else self._defaults
        session = FilterSession(
            document_id,
            lines,
            engine=self.engine,
            writer=self.writer,
            state=state,
        )
        self._sessions.append(session)
        return session

    def close(self, session: FilterSession) -> None:
        if session in self._sessions:
            self._sessions.remove(session)

    def sessions_for(self, document_id: str) -> list[FilterSession]:
        return [s for s in self._sessions if s.document_id == document_id]

    def rename_document(self, old_id: str, new_id: str) -> None:
        """Move the persisted record to the new identity.

        Open sessions keep their patterns; only their key changes.
        """
        self.writer.rename(old_id, new_id)
        for session in self._sessions:
            if session.document_id == old_id:
                session.document_id = new_id

    def forget(self, document_id: str) -> None:
        """Drop the persisted record of a document."""
        self.writer.remove(document_id)
