"""Fixtures for TUI tests."""

import pytest

from linefocus.core.config import Config


@pytest.fixture
def saved_config():
    """Config with one pinned and one unpinned saved pattern."""
    return Config(
        saved=[
            {"id": "open", "name": "Open tasks", "pattern": r"- \[ \]", "pinned": True},
            {"id": "todo", "pattern": "TODO"},
        ]
    )
