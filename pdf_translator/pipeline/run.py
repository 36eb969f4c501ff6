"""Ephemeral state of one pipeline invocation."""

from __future__ import annotations

import threading

from ..errors import TranslationCancelledError
from ..models.datatypes import Segment, SegmentFailure, TranslationResult
from ..text.chunking import reassemble


class PipelineRun:
    """Ordered segments plus one result slot per segment index.

    Each slot is written once; assembly only happens after every slot is
    filled, regardless of completion order.
    """

    def __init__(self, segments: list[Segment]) -> None:
        self.segments = segments
        self.cancel_event = threading.Event()
        self._results: list[TranslationResult | None] = [None] * len(segments)

    def record(self, result: TranslationResult) -> None:
        """Store a result in its index slot."""

        if self.cancel_event.is_set():
            return
        if self._results[result.index] is not None:
            raise RuntimeError(f"Segment {result.index} already has a result.")
        self._results[result.index] = result

    def cancel(self) -> None:
        """Signal workers to abandon retries and drop collected results."""

        self.cancel_event.set()
        self._results = [None] * len(self.segments)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def complete(self) -> bool:
        """Return whether every segment has reached a terminal result."""

        return all(result is not None for result in self._results)

    def results(self) -> list[TranslationResult]:
        """Return all results in ascending index order."""

        if self.cancelled:
            raise TranslationCancelledError("Translation run was cancelled.")
        if not self.complete:
            missing = [index for index, result in enumerate(self._results) if result is None]
            raise RuntimeError(f"Segments without a result: {missing}.")
        return [result for result in self._results if result is not None]

    def failures(self) -> list[SegmentFailure]:
        """Return failed segments in ascending index order."""

        return [
            SegmentFailure(index=result.index, kind=result.error, message=result.message)
            for result in self.results()
            if result.error is not None
        ]

    def assemble(self, keep_source_for_failures: bool = False) -> str:
        """Join translated texts in index order, re-applying recorded separators."""

        texts: dict[int, str] = {}
        for result, segment in zip(self.results(), self.segments):
            if result.translated_text is not None:
                texts[segment.index] = result.translated_text
            elif keep_source_for_failures:
                texts[segment.index] = segment.text
            else:
                raise RuntimeError(f"Segment {segment.index} has no translation.")
        return reassemble(self.segments, texts)
