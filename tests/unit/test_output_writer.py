"""Unit tests for sibling output file writing."""

from __future__ import annotations

from pathlib import Path

import pytest

from pdf_translator.errors import WriteError
from pdf_translator.io import output_writer
from pdf_translator.io.output_writer import OutputWriter


def test_output_path_is_sibling_of_source(tmp_path: Path) -> None:
    writer = OutputWriter()

    assert writer.output_path(tmp_path / "book.pdf") == tmp_path / "book.translated.txt"
    assert OutputWriter(".sv.txt").output_path(tmp_path / "a.b.pdf") == tmp_path / "a.b.sv.txt"


def test_write_replaces_existing_content(tmp_path: Path) -> None:
    target = tmp_path / "book.translated.txt"
    target.write_text("old", encoding="utf-8")

    written = OutputWriter().write(tmp_path / "book.pdf", "Hej världen.")

    assert written == target
    assert target.read_text(encoding="utf-8") == "Hej världen."
    assert sorted(path.name for path in tmp_path.iterdir()) == ["book.translated.txt"]


def test_write_into_missing_directory_raises_write_error(tmp_path: Path) -> None:
    with pytest.raises(WriteError, match="Failed to write translated output"):
        OutputWriter().write(tmp_path / "missing" / "book.pdf", "text")


def test_failed_replace_removes_temporary_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _broken_replace(src: str, dst: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(output_writer.os, "replace", _broken_replace)

    with pytest.raises(WriteError, match="disk full"):
        OutputWriter().write(tmp_path / "book.pdf", "text")

    assert list(tmp_path.iterdir()) == []


def test_blank_suffix_is_rejected() -> None:
    with pytest.raises(ValueError):
        OutputWriter("  ")
