"""Filter state for one document view.

FilterState is an immutable value. Every operation returns a new state, so
transitions can be tested without any host editor and compared by value.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from linefocus.core.config import FilterConfig


def _unique(patterns: Iterable[str]) -> tuple[str, ...]:
    """Collapse duplicates, keeping the first occurrence."""
    return tuple(dict.fromkeys(patterns))


@dataclass(frozen=True, eq=False)
class FilterState:
    """Active raw patterns plus the behaviour flags for one view.

    Patterns keep insertion order (resolved patterns mirror it) but are a
    set: two states are equal when they hold the same patterns and flags,
    whatever the order.

    Attributes:
        patterns: Unresolved filter strings; empty means filtering is off.
        hide_empty_lines: Hide blank lines that are not matched.
        include_child_items: Show lines indented under a matching line.
        include_heading_child_items: Show the section under a matching heading.
    """

    patterns: tuple[str, ...] = ()
    hide_empty_lines: bool = True
    include_child_items: bool = True
    include_heading_child_items: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "patterns", _unique(self.patterns))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterState):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def _key(self) -> tuple:
        return (
            frozenset(self.patterns),
            self.hide_empty_lines,
            self.include_child_items,
            self.include_heading_child_items,
        )

    def __contains__(self, pattern: object) -> bool:
        return pattern in self.patterns

    def __len__(self) -> int:
        return len(self.patterns)

    @property
    def is_active(self) -> bool:
        return bool(self.patterns)

    @classmethod
    def from_config(
        cls,
        config: FilterConfig,
        patterns: Iterable[str] = (),
    ) -> "FilterState":
        """Create a state with flags taken from configuration."""
        return cls(
            patterns=tuple(patterns),
            hide_empty_lines=config.hide_empty_lines,
            include_child_items=config.include_child_items,
            include_heading_child_items=config.include_heading_child_items,
        )

    def toggle_specific(self, pattern: str) -> "FilterState":
        """Add the pattern if absent, remove it if present."""
        if pattern in self.patterns:
            return replace(self, patterns=tuple(p for p in self.patterns if p != pattern))
        return replace(self, patterns=self.patterns + (pattern,))

    def apply_manual(self, pattern: Optional[str]) -> "FilterState":
        """Replace all patterns with a single manually entered one.

        A None or blank pattern clears the set.
        """
        if pattern is None or not pattern.strip():
            return replace(self, patterns=())
        return replace(self, patterns=(pattern,))

    def clear_all(self) -> "FilterState":
        return replace(self, patterns=())

    def replace_all(self, patterns: Iterable[str]) -> "FilterState":
        """Bulk replace the patterns.

        Returns this same object when the incoming patterns already equal the
        current set, so callers can skip a redundant recompute.
        """
        incoming = _unique(patterns)
        if frozenset(incoming) == frozenset(self.patterns):
            return self
        return replace(self, patterns=incoming)

    def with_flags(
        self,
        hide_empty_lines: Optional[bool] = None,
        include_child_items: Optional[bool] = None,
        include_heading_child_items: Optional[bool] = None,
    ) -> "FilterState":
        """Return a copy with the given behaviour flags changed."""
        changes = {
            name: value
            for name, value in (
                ("hide_empty_lines", hide_empty_lines),
                ("include_child_items", include_child_items),
                ("include_heading_child_items", include_heading_child_items),
            )
            if value is not None
        }
        if not changes:
            return self
        return replace(self, **changes)
