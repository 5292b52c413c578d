"""Main CLI module for linefocus.

This module re-exports the CLI for convenience. The main implementation
is in __main__.py.
"""

from linefocus.__main__ import cli

__all__ = ["cli"]
