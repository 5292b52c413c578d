"""Helpers for reading documents and naming them in persistence."""

from pathlib import Path


def document_id(path: Path) -> str:
    """Identity under which a document's filters are remembered.

    The absolute path, so the same file opened from different working
    directories shares one record.
    """
    return str(Path(path).expanduser().resolve())


def read_lines(path: Path) -> list[str]:
    """Read a document as a list of line texts.

    Only newlines end a line; form feeds and other separators stay in
    the line text. Undecodable bytes are replaced rather than failing the
    whole file.
    """
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines
