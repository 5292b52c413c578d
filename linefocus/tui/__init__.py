"""Textual UI for linefocus.

An interactive viewer that shows only the lines of a document passing
the active filters, using the Textual framework.
"""

from linefocus.tui.app import LineFocusApp, run_tui

__all__ = ["LineFocusApp", "run_tui"]
