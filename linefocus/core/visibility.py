"""Line visibility calculation.

Given a matcher and the lines of a document, decides for every line whether
it is hidden. Matching lines ("seeds") can pull in their indented children
and, for markdown headings, the rest of their section.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

logger = logging.getLogger(__name__)

HEADING_RE = re.compile(r"^(#+) ")


def indent_of(line: str) -> int:
    """Count the leading whitespace characters of a line."""
    return len(line) - len(line.lstrip())


def heading_level(line: str) -> int:
    """Return the markdown heading level of a line, or 0 if not a heading.

    A heading is one or more leading ``#`` characters followed by a space.
    """
    match = HEADING_RE.match(line)
    return len(match.group(1)) if match else 0


def is_blank(line: str) -> bool:
    return not line.strip()


@dataclass(frozen=True)
class VisibilityMap:
    """Per-line hide decision for one recompute.

    Attributes:
        hidden: One entry per document line; True means the line is hidden.
    """

    hidden: tuple[bool, ...] = ()

    @classmethod
    def all_visible(cls, line_count: int) -> "VisibilityMap":
        return cls(hidden=(False,) * line_count)

    def __len__(self) -> int:
        return len(self.hidden)

    @property
    def visible(self) -> tuple[bool, ...]:
        return tuple(not h for h in self.hidden)

    @property
    def hidden_count(self) -> int:
        return sum(self.hidden)

    def is_hidden(self, line_number: int) -> bool:
        """Check a line by its 1-indexed line number."""
        return self.hidden[line_number - 1]

    def visible_line_numbers(self) -> list[int]:
        """Return the 1-indexed numbers of visible lines."""
        return [i for i, h in enumerate(self.hidden, start=1) if not h]

    def hidden_ranges(self) -> list[tuple[int, int]]:
        """Return runs of hidden lines as inclusive 1-indexed (start, end) pairs."""
        ranges: list[tuple[int, int]] = []
        start: Optional[int] = None
        for number, hidden in enumerate(self.hidden, start=1):
            if hidden and start is None:
                start = number
            elif not hidden and start is not None:
                ranges.append((start, number - 1))
                start = None
        if start is not None:
            ranges.append((start, len(self.hidden)))
        return ranges


def _mark_children(lines: Sequence[str], seed: int, visible: list[bool]) -> None:
    parent_indent = indent_of(lines[seed])
    i = seed + 1
    while i < len(lines) and indent_of(lines[i]) > parent_indent:
        visible[i] = True
        i += 1


def _mark_section(lines: Sequence[str], seed: int, visible: list[bool]) -> None:
    parent_level = heading_level(lines[seed])
    if parent_level == 0:
        return
    i = seed + 1
    while i < len(lines):
        level = heading_level(lines[i])
        if 0 < level <= parent_level:
            break
        visible[i] = True
        i += 1


def compute_visibility(
    lines: Sequence[str],
    matcher: Optional[re.Pattern[str]],
    hide_empty_lines: bool = True,
    include_child_items: bool = True,
    include_heading_child_items: bool = False,
) -> VisibilityMap:
    """Compute which lines of a document are hidden.

    Args:
        lines: Line texts of the document, in order.
        matcher: Combined matcher, or None when filtering is off.
        hide_empty_lines: When False, blank lines are always shown.
        include_child_items: Show lines indented deeper than a matching line,
            up to the first line indented at or above it.
        include_heading_child_items: For a matching heading, show everything
            up to the next heading of the same or a higher level.

    Returns:
        VisibilityMap with one entry per line.
    """
    if matcher is None:
        return VisibilityMap.all_visible(len(lines))

    visible = [False] * len(lines)

    for i, text in enumerate(lines):
        if not matcher.search(text):
            continue
        visible[i] = True
        if include_child_items:
            _mark_children(lines, i, visible)
        if include_heading_child_items:
            _mark_section(lines, i, visible)

    hidden = []
    for text, shown in zip(lines, visible):
        if not hide_empty_lines and is_blank(text):
            hidden.append(False)
        else:
            hidden.append(not shown)

    return VisibilityMap(hidden=tuple(hidden))


class VisibilityCalculator:
    """Runs compute_visibility and falls back to the last good result.

    A failure inside the scan never hides content: the previous map is
    returned if it still fits the document, otherwise every line is shown.
    """

    def __init__(self) -> None:
        self._previous: Optional[VisibilityMap] = None

    @property
    def previous(self) -> Optional[VisibilityMap]:
        return self._previous

    def compute(
        self,
        lines: Iterable[str],
        matcher: Optional[re.Pattern[str]],
        hide_empty_lines: bool = True,
        include_child_items: bool = True,
        include_heading_child_items: bool = False,
    ) -> VisibilityMap:
        lines = list(lines)
        try:
            result = compute_visibility(
                lines,
                matcher,
                hide_empty_lines=hide_empty_lines,
                include_child_items=include_child_items,
                include_heading_child_items=include_heading_child_items,
            )
        except Exception:
            logger.exception("Line visibility scan failed over %d lines", len(lines))
            if self._previous is not None and len(self._previous) == len(lines):
                return self._previous
            return VisibilityMap.all_visible(len(lines))

        self._previous = result
        return result
