"""On-disk layout of the linefocus state file."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StateFile(BaseModel):
    """Durable state shared across runs.

    Attributes:
        version: Layout version of the file.
        documents: Document identity mapped to its last active raw patterns.
        history: Recently entered manual patterns, most recent first.
    """

    model_config = ConfigDict(frozen=False)

    version: int = 1
    documents: dict[str, list[str]] = {}
    history: list[str] = []
