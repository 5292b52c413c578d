"""Per-document persistence of active filter patterns.

A persistence adapter maps a document identity (usually its path) to the
raw patterns last active for it. Writes are dispatched through a
PersistenceWriter, which can run them on a background executor; a failed
write is logged once and never blocks filtering.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from concurrent.futures import Executor, Future, wait
from pathlib import Path
from typing import Callable, Iterable, Optional, Protocol

from pydantic import ValidationError

from linefocus.models.state_file import StateFile

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when the filter state cannot be read or written.

    Attributes:
        path: State file involved (if any).
    """

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path:
            full_message = f"Error in {path}: {message}"
        else:
            full_message = message
        super().__init__(full_message)


class FilterPersistence(Protocol):
    """Key-value contract for per-document filter records."""

    def get(self, document_id: str) -> Optional[list[str]]: ...

    def set(self, document_id: str, patterns: list[str]) -> None: ...

    def remove(self, document_id: str) -> None: ...

    def rename(self, old_id: str, new_id: str) -> None: ...


class MemoryFilterPersistence:
    """Dictionary-backed persistence, for tests and throwaway sessions."""

    def __init__(self, records: Optional[dict[str, list[str]]] = None):
        self._records: dict[str, list[str]] = {
            key: list(value) for key, value in (records or {}).items()
        }

    @property
    def records(self) -> dict[str, list[str]]:
        return {key: list(value) for key, value in self._records.items()}

    def get(self, document_id: str) -> Optional[list[str]]:
        patterns = self._records.get(document_id)
        return list(patterns) if patterns is not None else None

    def set(self, document_id: str, patterns: list[str]) -> None:
        self._records[document_id] = list(patterns)

    def remove(self, document_id: str) -> None:
        self._records.pop(document_id, None)

    def rename(self, old_id: str, new_id: str) -> None:
        if old_id in self._records:
            self._records[new_id] = self._records.pop(old_id)


class JsonFilterPersistence:
    """Persistence backed by a single JSON state file.

    The file also keeps the manual pattern history. Every write replaces
    the whole file atomically (temp file, then rename).

    Example usage:
        store = JsonFilterPersistence(Path("~/.local/state/linefocus/state.json"))
        store.set("/notes/todo.md", ["TODO", "{{today}}"])
    """

    def __init__(self, path: Path):
        self.path = Path(os.path.expanduser(str(path)))
        self._lock = threading.Lock()
        self._state = self._load()

    def _load(self) -> StateFile:
        """Read the state file, starting empty if it is missing or unreadable."""
        if not self.path.exists():
            return StateFile()
        try:
            return StateFile.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, exc)
            return StateFile()

    def _write(self) -> None:
        """Atomically write the current state to disk.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        content = self._state.model_dump_json(indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent),
                prefix=".state_",
                suffix=".tmp",
            )
            tmp_path = Path(tmp_name)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_path, self.path)
            except OSError:
                tmp_path.unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(str(e), path=self.path) from e

    def get(self, document_id: str) -> Optional[list[str]]:
        with self._lock:
            patterns = self._state.documents.get(document_id)
            return list(patterns) if patterns is not None else None

    def set(self, document_id: str, patterns: list[str]) -> None:
        with self._lock:
            self._state.documents[document_id] = list(patterns)
            self._write()

    def remove(self, document_id: str) -> None:
        with self._lock:
            if self._state.documents.pop(document_id, None) is not None:
                self._write()

    def rename(self, old_id: str, new_id: str) -> None:
        with self._lock:
            if old_id not in self._state.documents:
                return
            self._state.documents[new_id] = self._state.documents.pop(old_id)
            self._write()

    def documents(self) -> dict[str, list[str]]:
        with self._lock:
            return {key: list(value) for key, value in self._state.documents.items()}

    def load_history(self) -> list[str]:
        with self._lock:
            return list(self._state.history)

    def save_history(self, entries: Iterable[str]) -> None:
        with self._lock:
            self._state.history = list(entries)
            self._write()


class PersistenceWriter:
    """Fire-and-forget dispatcher for persistence writes.

    Without an executor writes run inline. With one (a single-worker
    ThreadPoolExecutor keeps them ordered) they run in the background.
    The first failure is logged as a warning; later ones only at debug
    level. Nothing is retried.
    """

    def __init__(
        self,
        persistence: FilterPersistence,
        executor: Optional[Executor] = None,
    ):
        self.persistence = persistence
        self._executor = executor
        self._pending: list[Future] = []
        self._lock = threading.Lock()
        self._failed = False

    @property
    def failed(self) -> bool:
        return self._failed

    def save(self, document_id: str, patterns: Iterable[str]) -> None:
        self._dispatch(self.persistence.set, document_id, list(patterns))

    def remove(self, document_id: str) -> None:
        self._dispatch(self.persistence.remove, document_id)

    def rename(self, old_id: str, new_id: str) -> None:
        self._dispatch(self.persistence.rename, old_id, new_id)

    def _dispatch(self, func: Callable[..., None], *args: object) -> None:
        if self._executor is None:
            self._run(func, *args)
            return
        future = self._executor.submit(self._run, func, *args)
        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)

    def _run(self, func: Callable[..., None], *args: object) -> None:
        try:
            func(*args)
        except Exception as exc:
            # No caller to propagate to; in-memory state stays authoritative
            with self._lock:
                first = not self._failed
                self._failed = True
            if first:
                logger.warning("Could not save filter state: %s", exc, exc_info=True)
            else:
                logger.debug("Could not save filter state: %s", exc)

    def flush(self) -> None:
        """Block until every dispatched write has finished."""
        with self._lock:
            pending, self._pending = self._pending, []
        wait(pending)

    def close(self) -> None:
        """Flush pending writes and shut the executor down."""
        self.flush()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
