"""Shared pytest fixtures for linefocus tests."""

from datetime import date
from pathlib import Path

import pytest


@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fixed_now():
    """Wednesday 14 February 2024 (leap year, ISO week 7)."""
    return date(2024, 2, 14)


@pytest.fixture
def notes_lines():
    """A small markdown note with tasks, children and headings."""
    return [
        "# Project",
        "",
        "## Tasks",
        "- [ ] Task A",
        "  - subtask 1",
        "  - subtask 2",
        "- [x] Task B",
        "",
        "## Log",
        "2024-02-13 call with vendor",
        "2024-02-14 TODO follow up",
        "### Details",
        "  notes about the call",
        "## Archive",
        "old stuff",
    ]


@pytest.fixture
def notes_file(tmp_path, notes_lines):
    """The markdown note written to disk."""
    f = tmp_path / "notes.md"
    f.write_text("\n".join(notes_lines) + "\n")
    return f


@pytest.fixture
def state_file(tmp_path):
    """Location for a JSON state file (not created)."""
    return tmp_path / "state" / "state.json"


@pytest.fixture
def config_file(tmp_path):
    """Config file with saved patterns."""
    f = tmp_path / "linefocus.toml"
    f.write_text('''
[filter]
hide_empty_lines = true
include_child_items = true

[[saved]]
id = "open"
name = "Open tasks"
pattern = "- \\\\[ \\\\]"
pinned = true

[[saved]]
id = "todo"
pattern = "TODO"
''')
    return f


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """Keep user config discovery away from the real home directory."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("LINEFOCUS_GIT_ROOT", raising=False)
    return home


# Pytest markers
def pytest_configure(config):
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark test as integration test")
