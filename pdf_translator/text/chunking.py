"""Raw-text to segment splitting.

Responsibilities:
- Split extracted text into segments that fit the per-request byte budget.
- Prefer paragraph boundaries, then sentence boundaries, then whitespace.
- Keep the split lossless: segment text plus separator, in index order,
  reproduces the input exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from ..models.datatypes import Segment


def utf8_length(text: str) -> int:
    """Return the UTF-8 encoded size of `text` in bytes."""

    return len(text.encode("utf-8"))


@dataclass(frozen=True, slots=True)
class _Piece:
    """Intermediate split unit: content plus the whitespace that followed it."""

    text: str
    separator: str
    byte_length: int

    @classmethod
    def of(cls, text: str, separator: str) -> _Piece:
        return cls(text=text, separator=separator, byte_length=utf8_length(text))

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


class Chunker:
    """Create byte-bounded segments from raw text with deterministic boundaries."""

    # Two line breaks with only horizontal whitespace between them, plus any
    # whitespace run that follows.
    _PARAGRAPH_BREAK = re.compile(r"[^\S\n]*\n[^\S\n]*\n\s*")
    _SENTENCE_TERMINATORS = ".!?"
    _WIDE_SENTENCE_TERMINATORS = "。！？"
    _TRAILING_SENTENCE_CLOSERS = "\"')]}»”’」』"
    _COMMON_ABBREVIATIONS = frozenset(
        {
            "mr.",
            "mrs.",
            "ms.",
            "dr.",
            "prof.",
            "sr.",
            "jr.",
            "st.",
            "etc.",
            "e.g.",
            "i.e.",
            "vs.",
            "no.",
            "fig.",
            "al.",
        }
    )
    _ACRONYM_PATTERN = re.compile(r"(?:[A-Za-z]\.){2,}$")

    def chunk(self, raw_text: str, max_segment_bytes: int) -> list[Segment]:
        """Split raw text into ordered segments.

        Args:
            raw_text: Extracted document text.
            max_segment_bytes: Maximum UTF-8 size of one segment's text. A single
                character larger than the budget still forms its own segment.

        Returns:
            Segments indexed contiguously from 0; empty for empty input.
        """

        if max_segment_bytes < 1:
            raise ValueError("`max_segment_bytes` must be at least 1.")
        if not raw_text:
            return []

        fitted: list[_Piece] = []
        for piece in self._paragraph_pieces(raw_text):
            fitted.extend(self._fit(piece, max_segment_bytes))

        return [
            Segment(
                index=index,
                text=piece.text,
                byte_length=piece.byte_length,
                separator=piece.separator,
            )
            for index, piece in enumerate(self._pack(fitted, max_segment_bytes))
        ]

    def _paragraph_pieces(self, text: str) -> list[_Piece]:
        """Split text on blank-line paragraph breaks."""

        pieces: list[_Piece] = []
        body = text.lstrip()
        leading = text[: len(text) - len(body)]
        if leading:
            pieces.append(_Piece.of(leading, ""))
        if not body:
            return pieces

        position = 0
        for match in self._PARAGRAPH_BREAK.finditer(body):
            pieces.append(self._content_piece(body[position : match.start()], match.group(0)))
            position = match.end()
        if position < len(body):
            pieces.append(self._content_piece(body[position:], ""))
        return pieces

    @staticmethod
    def _content_piece(text: str, separator: str) -> _Piece:
        """Move trailing whitespace of `text` into the separator."""

        content = text.rstrip()
        return _Piece.of(content, text[len(content) :] + separator)

    def _fit(self, piece: _Piece, max_bytes: int) -> list[_Piece]:
        """Break one paragraph into pieces that each fit the byte budget."""

        if piece.byte_length <= max_bytes:
            return [piece]

        fitted: list[_Piece] = []
        for sentence in self._sentence_pieces(piece.text):
            if sentence.byte_length <= max_bytes:
                fitted.append(sentence)
            else:
                fitted.extend(self._hard_split(sentence, max_bytes))

        last = fitted[-1]
        fitted[-1] = _Piece(
            text=last.text,
            separator=last.separator + piece.separator,
            byte_length=last.byte_length,
        )
        return fitted

    def _sentence_pieces(self, text: str) -> list[_Piece]:
        """Split text after sentence terminators followed by whitespace."""

        pieces: list[_Piece] = []
        start = 0
        index = 0
        text_length = len(text)
        while index < text_length:
            character = text[index]
            wide = character in self._WIDE_SENTENCE_TERMINATORS
            if not wide and not (
                character in self._SENTENCE_TERMINATORS
                and self._is_sentence_boundary(text, index)
            ):
                index += 1
                continue

            end = self._consume_closers(text, index + 1)
            whitespace_end = self._consume_whitespace(text, end)
            has_gap = whitespace_end > end
            if (wide or has_gap) and whitespace_end < text_length:
                pieces.append(_Piece.of(text[start:end], text[end:whitespace_end]))
                start = whitespace_end
            index = max(whitespace_end, index + 1)

        if start < text_length:
            pieces.append(_Piece.of(text[start:], ""))
        return pieces

    def _hard_split(self, piece: _Piece, max_bytes: int) -> list[_Piece]:
        """Split at the last whitespace before the byte limit, or at a character."""

        text = piece.text
        pieces: list[_Piece] = []
        start = 0
        while start < len(text):
            end = self._byte_limit_index(text, start, max_bytes)
            if end >= len(text):
                pieces.append(_Piece.of(text[start:], ""))
                break
            word_end = self._last_word_end(text, start, end)
            if word_end is None:
                pieces.append(_Piece.of(text[start:end], ""))
                start = end
                continue
            whitespace_end = self._consume_whitespace(text, word_end)
            pieces.append(_Piece.of(text[start:word_end], text[word_end:whitespace_end]))
            start = whitespace_end

        last = pieces[-1]
        pieces[-1] = _Piece(
            text=last.text,
            separator=last.separator + piece.separator,
            byte_length=last.byte_length,
        )
        return pieces

    @staticmethod
    def _byte_limit_index(text: str, start: int, max_bytes: int) -> int:
        """Return the furthest character index keeping `text[start:i]` within budget."""

        used = 0
        index = start
        while index < len(text):
            size = utf8_length(text[index])
            if used + size > max_bytes:
                break
            used += size
            index += 1
        return max(index, start + 1)

    @staticmethod
    def _last_word_end(text: str, start: int, limit: int) -> int | None:
        """Find the last word/whitespace transition in `(start, limit]`."""

        for index in range(min(limit, len(text) - 1), start, -1):
            if text[index].isspace() and not text[index - 1].isspace():
                return index
        return None

    def _pack(self, pieces: list[_Piece], max_bytes: int) -> list[_Piece]:
        """Greedily merge adjacent pieces while the merged text fits the budget."""

        packed: list[_Piece] = []
        current: _Piece | None = None
        for piece in pieces:
            if current is None:
                current = piece
                continue
            if current.is_blank or piece.is_blank:
                packed.append(current)
                current = piece
                continue
            merged_length = (
                current.byte_length + utf8_length(current.separator) + piece.byte_length
            )
            if merged_length > max_bytes:
                packed.append(current)
                current = piece
                continue
            current = _Piece(
                text=current.text + current.separator + piece.text,
                separator=piece.separator,
                byte_length=merged_length,
            )
        if current is not None:
            packed.append(current)
        return packed

    def _is_sentence_boundary(self, text: str, punctuation_index: int) -> bool:
        """Return whether punctuation at index terminates a sentence."""

        if text[punctuation_index] != ".":
            return True
        if self._is_decimal_period(text, punctuation_index):
            return False
        if self._is_abbreviation_period(text, punctuation_index):
            return False
        return True

    @staticmethod
    def _is_decimal_period(text: str, punctuation_index: int) -> bool:
        """Return whether a period is part of a decimal number."""

        if punctuation_index <= 0 or punctuation_index + 1 >= len(text):
            return False
        return text[punctuation_index - 1].isdigit() and text[punctuation_index + 1].isdigit()

    def _is_abbreviation_period(self, text: str, punctuation_index: int) -> bool:
        """Return whether a period belongs to a likely abbreviation token."""

        start = punctuation_index
        while start > 0 and (text[start - 1].isalpha() or text[start - 1] == "."):
            start -= 1
        token = text[start : punctuation_index + 1].lower()
        if token in self._COMMON_ABBREVIATIONS:
            return True

        acronym_start = max(0, punctuation_index - 8)
        acronym_window = text[acronym_start : punctuation_index + 1]
        return bool(self._ACRONYM_PATTERN.search(acronym_window))

    def _consume_closers(self, text: str, index: int) -> int:
        adjusted = index
        while adjusted < len(text) and text[adjusted] in self._TRAILING_SENTENCE_CLOSERS:
            adjusted += 1
        return adjusted

    @staticmethod
    def _consume_whitespace(text: str, index: int) -> int:
        adjusted = index
        while adjusted < len(text) and text[adjusted].isspace():
            adjusted += 1
        return adjusted


def reassemble(segments: list[Segment], texts: dict[int, str] | None = None) -> str:
    """Join segment texts (or replacements keyed by index) with their separators."""

    ordered = sorted(segments, key=lambda segment: segment.index)
    if texts is None:
        return "".join(segment.text + segment.separator for segment in ordered)
    return "".join(texts[segment.index] + segment.separator for segment in ordered)
