"""History of manually entered filter patterns."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

DEFAULT_HISTORY_LIMIT = 5


class PatternHistory:
    """Most-recent-first list of patterns, without duplicates.

    Recording a pattern that is already present moves it to the front.
    The list is capped at ``limit`` entries.
    """

    def __init__(self, entries: Iterable[str] = (), limit: int = DEFAULT_HISTORY_LIMIT):
        self.limit = max(0, limit)
        self._entries: list[str] = []
        for entry in entries:
            if entry and entry not in self._entries:
                self._entries.append(entry)
        del self._entries[self.limit:]

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    @property
    def latest(self) -> Optional[str]:
        return self._entries[0] if self._entries else None

    def record(self, pattern: str) -> None:
        """Put a pattern at the front of the history."""
        if not pattern or not pattern.strip():
            return
        self._entries = [pattern] + [e for e in self._entries if e != pattern]
        del self._entries[self.limit:]
