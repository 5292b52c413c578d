"""linefocus - show only the lines of a document that match your filters."""

__version__ = "0.3.0"
