"""Git repository utilities for linefocus.

Used by configuration discovery to locate a project-level ``linefocus.toml``.
"""

import os
from pathlib import Path
from typing import Optional


def find_git_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Find the root directory of a git repository.

    Walks up from the start path (or current working directory) looking for
    a .git entry. The LINEFOCUS_GIT_ROOT environment variable overrides
    detection.

    Args:
        start_path: Directory to start searching from. If None, uses the
            current working directory.

    Returns:
        Path to the git root directory, or None if not in a git repository.
    """
    env_override = os.environ.get("LINEFOCUS_GIT_ROOT")
    if env_override:
        # Returned even if missing; callers check for the config file anyway
        return Path(env_override)

    if start_path is None:
        start_path = Path.cwd()
    else:
        start_path = Path(start_path).resolve()

    current = start_path
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent

    if (current / ".git").exists():
        return current

    return None
