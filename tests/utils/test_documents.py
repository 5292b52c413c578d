"""Tests for document helpers."""

from linefocus.utils.documents import document_id, read_lines


def test_document_id_is_absolute(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert document_id("notes.md") == str(tmp_path.resolve() / "notes.md")


def test_document_id_same_file_same_id(tmp_path, monkeypatch):
    (tmp_path / "sub").mkdir()
    monkeypatch.chdir(tmp_path / "sub")
    assert document_id("../notes.md") == document_id(tmp_path / "notes.md")


def test_read_lines(tmp_path):
    f = tmp_path / "notes.md"
    f.write_bytes(b"one\r\ntwo\n\nbad \xff byte\n")
    assert read_lines(f) == ["one", "two", "", "bad \ufffd byte"]


def test_read_lines_splits_on_newlines_only(tmp_path):
    f = tmp_path / "notes.md"
    f.write_text("page one\x0cpage two\nsecond half\n", encoding="utf-8")
    assert read_lines(f) == ["page one\x0cpage two", "second half"]


def test_read_lines_keeps_last_line_without_newline(tmp_path):
    f = tmp_path / "notes.md"
    f.write_bytes(b"one\rtwo\n\nthree")
    assert read_lines(f) == ["one", "two", "", "three"]


def test_read_lines_empty_file(tmp_path):
    f = tmp_path / "empty.md"
    f.write_text("")
    assert read_lines(f) == []
