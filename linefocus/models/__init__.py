"""Data models for linefocus."""

from linefocus.models.saved_pattern import SavedPattern, new_pattern_id
from linefocus.models.state_file import StateFile

__all__ = [
    "SavedPattern",
    "StateFile",
    "new_pattern_id",
]
