"""Stage execution helpers for the translation pipeline.

Responsibilities:
- Run the extract and write stages against their external collaborators.
- Map collaborator failures to stage-aware `PipelineStageError`s.
- Dispatch segments to a bounded worker pool and collect results by index.
"""

from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path

from ..errors import (
    ExtractionError,
    PipelineStageError,
    TranslationCancelledError,
    WriteError,
)
from ..io.output_writer import OutputWriter
from ..io.pdf_text_extractor import TextExtractor
from ..models.datatypes import Segment, TranslationResult
from ..translation.retry import RetryController
from .run import PipelineRun


class PipelineExecutionMixin:
    """Provide stage-level pipeline helper methods."""

    _extractor: TextExtractor

    def _extract(self, pdf_path: Path) -> str:
        """Extract raw text from the input PDF."""

        try:
            return self._extractor.extract(pdf_path)
        except ExtractionError as exc:
            raise PipelineStageError(
                stage="extract",
                detail=f"Failed to extract text from PDF `{pdf_path}`: {exc}",
                hint=(
                    "Verify the input file is a readable PDF and that `pdftotext` is "
                    "installed (`pdf-translator install`)."
                ),
            ) from exc

    @staticmethod
    def _write(writer: OutputWriter, pdf_path: Path, text: str) -> Path:
        """Write assembled output beside the source PDF."""

        try:
            return writer.write(pdf_path, text)
        except WriteError as exc:
            raise PipelineStageError(
                stage="write",
                detail=str(exc),
                hint="Check that the PDF's directory exists and is writable.",
            ) from exc

    @staticmethod
    def _translate_segment(
        controller: RetryController,
        segment: Segment,
        source_lang: str,
        target_lang: str,
    ) -> TranslationResult:
        """Translate one segment; whitespace-only segments pass through unchanged."""

        if segment.is_blank:
            return TranslationResult(index=segment.index, translated_text=segment.text)
        return controller.run(segment, source_lang, target_lang)

    def _dispatch(
        self,
        run: PipelineRun,
        controller: RetryController,
        source_lang: str,
        target_lang: str,
        concurrency: int,
    ) -> None:
        """Translate all segments with at most `concurrency` in flight.

        Segments are submitted in ascending index order; results are stored in
        their index slot as they complete. Any interruption signals every
        worker to stop retrying and discards the collected results.
        """

        executor = ThreadPoolExecutor(
            max_workers=min(concurrency, max(1, len(run.segments))),
            thread_name_prefix="translate",
        )
        pending: set[Future[TranslationResult]] = set()
        try:
            for segment in run.segments:
                pending.add(
                    executor.submit(
                        self._translate_segment,
                        controller,
                        segment,
                        source_lang,
                        target_lang,
                    )
                )
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    run.record(future.result())
        except KeyboardInterrupt as exc:
            run.cancel()
            executor.shutdown(wait=False, cancel_futures=True)
            raise TranslationCancelledError("Translation interrupted by user.") from exc
        except BaseException:
            run.cancel()
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)
