"""Utility helpers for linefocus."""

from linefocus.utils.documents import document_id, read_lines
from linefocus.utils.git import find_git_root

__all__ = ["document_id", "find_git_root", "read_lines"]
