"""Unit tests for concurrent dispatch, ordered assembly, and failure atomicity."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
import io
import random
import threading

import pytest

from pdf_translator.config import TranslatorConfig
from pdf_translator.errors import (
    AuthError,
    ErrorKind,
    ExtractionError,
    PartialTranslationError,
    PermanentError,
    PipelineStageError,
    TransientError,
    TranslationCancelledError,
)
from pdf_translator.io.output_writer import OutputWriter
from pdf_translator.models.datatypes import TranslationResult
from pdf_translator.pipeline import PipelineOptions, PipelineRun, TranslationPipeline
from pdf_translator.telemetry.logger import RunLogger
from pdf_translator.text.chunking import Chunker
from pdf_translator.translation.retry import RetryPolicy
from tests.fakes import (
    FakeCredentialStore,
    FakeExtractor,
    ScriptedTranslationClient,
    no_wait,
    valid_credentials,
)

_FIVE_PARAGRAPHS = "\n\n".join(f"Paragraph number {n}." for n in range(5))


def _pipeline(
    client: ScriptedTranslationClient,
    store: FakeCredentialStore | None = None,
    extractor: FakeExtractor | None = None,
    **kwargs: object,
) -> TranslationPipeline:
    return TranslationPipeline(
        client=client,
        extractor=extractor,
        credential_store=store if store is not None else FakeCredentialStore(),
        waiter=no_wait,
        **kwargs,  # type: ignore[arg-type]
    )


def _one_paragraph_per_segment(concurrency: int = 4, **kwargs: object) -> PipelineOptions:
    return PipelineOptions(max_segment_bytes=25, concurrency=concurrency, **kwargs)  # type: ignore[arg-type]


def test_end_to_end_english_to_swedish(swedish_client: ScriptedTranslationClient) -> None:
    """The canonical sentence pair should translate exactly."""

    output = _pipeline(swedish_client).run(
        "Hello world. This is a test.", "en", "sv", valid_credentials()
    )

    assert output == "Hej världen. Det här är ett test."


def test_end_to_end_with_sentence_segments(swedish_client: ScriptedTranslationClient) -> None:
    """Sentence-level segments should reassemble with their original spacing."""

    output = _pipeline(swedish_client).run(
        "Hello world. This is a test.",
        "en",
        "sv",
        valid_credentials(),
        PipelineOptions(max_segment_bytes=15),
    )

    assert output == "Hej världen. Det här är ett test."
    assert sorted(swedish_client.texts_called()) == ["Hello world.", "This is a test."]


def test_empty_input_makes_no_requests() -> None:
    client = ScriptedTranslationClient()

    outcome = _pipeline(client).run_detailed("", "en", "sv", valid_credentials())

    assert outcome.text == ""
    assert outcome.segment_count == 0
    assert client.calls == []


def test_blank_segments_pass_through_without_requests() -> None:
    """Whitespace-only segments should be copied verbatim, not translated."""

    client = ScriptedTranslationClient()

    output = _pipeline(client).run("\n\n  hello", "en", "sv", valid_credentials())

    assert output == "\n\n  HELLO"
    assert client.texts_called() == ["hello"]


def test_output_order_matches_input_under_scrambled_latency() -> None:
    """Completion order must not affect assembly order."""

    paragraphs = [f"Paragraph number {n}." for n in range(12)]
    rng = random.Random(7)
    client = ScriptedTranslationClient(
        delays={text: rng.uniform(0.0, 0.03) for text in paragraphs}
    )

    output = _pipeline(client).run(
        "\n\n".join(paragraphs),
        "en",
        "sv",
        valid_credentials(),
        _one_paragraph_per_segment(concurrency=6),
    )

    assert output == "\n\n".join(text.upper() for text in paragraphs)
    assert len(client.calls) == 12


def test_concurrency_limit_is_respected() -> None:
    paragraphs = [f"Paragraph number {n}." for n in range(10)]
    client = ScriptedTranslationClient(delays={text: 0.02 for text in paragraphs})

    _pipeline(client).run(
        "\n\n".join(paragraphs),
        "en",
        "sv",
        valid_credentials(),
        _one_paragraph_per_segment(concurrency=3),
    )

    assert 1 <= client.max_in_flight <= 3


def test_sequential_dispatch_follows_index_order() -> None:
    """With one worker, requests should be issued in ascending index order."""

    client = ScriptedTranslationClient()

    _pipeline(client).run(
        _FIVE_PARAGRAPHS, "en", "sv", valid_credentials(), _one_paragraph_per_segment(1)
    )

    assert client.texts_called() == [f"Paragraph number {n}." for n in range(5)]


def test_permanent_failure_in_one_segment_raises_partial_error() -> None:
    """A failed segment should surface its index and kind, and no text is returned."""

    client = ScriptedTranslationClient(
        always_fail={"Paragraph number 3.": PermanentError("HTTP 400: bad request")}
    )

    with pytest.raises(PartialTranslationError) as exc_info:
        _pipeline(client).run(
            _FIVE_PARAGRAPHS, "en", "sv", valid_credentials(), _one_paragraph_per_segment()
        )

    error = exc_info.value
    assert error.failed_indices == [3]
    assert error.failures[0].kind is ErrorKind.PERMANENT
    assert error.segment_count == 5
    assert "segment 3: permanent" in str(error)


def test_all_failures_are_reported_in_index_order() -> None:
    client = ScriptedTranslationClient(
        always_fail={
            "Paragraph number 4.": TransientError("HTTP 503"),
            "Paragraph number 1.": PermanentError("HTTP 400"),
        }
    )
    options = _one_paragraph_per_segment(retry_policy=RetryPolicy(max_attempts=2))

    with pytest.raises(PartialTranslationError) as exc_info:
        _pipeline(client).run(_FIVE_PARAGRAPHS, "en", "sv", valid_credentials(), options)

    assert [(f.index, f.kind) for f in exc_info.value.failures] == [
        (1, ErrorKind.PERMANENT),
        (4, ErrorKind.TRANSIENT),
    ]


def test_best_effort_keeps_source_text_for_failed_segments() -> None:
    client = ScriptedTranslationClient(
        always_fail={"Paragraph number 3.": PermanentError("HTTP 400")}
    )

    outcome = _pipeline(client).run_detailed(
        _FIVE_PARAGRAPHS,
        "en",
        "sv",
        valid_credentials(),
        _one_paragraph_per_segment(best_effort=True),
    )

    assert not outcome.complete
    assert [failure.index for failure in outcome.failures] == [3]
    assert outcome.text.split("\n\n") == [
        "PARAGRAPH NUMBER 0.",
        "PARAGRAPH NUMBER 1.",
        "PARAGRAPH NUMBER 2.",
        "Paragraph number 3.",
        "PARAGRAPH NUMBER 4.",
    ]


def test_concurrent_auth_failures_trigger_exactly_one_refresh() -> None:
    """Every worker hitting 401 should share a single credential refresh."""

    store = FakeCredentialStore(refresh_delay_seconds=0.02)
    paragraphs = [f"Paragraph number {n}." for n in range(8)]
    client = ScriptedTranslationClient(
        valid_tokens={"fresh-token-1"},
        delays={text: 0.01 for text in paragraphs},
    )
    pipeline = _pipeline(client, store=store)

    output = pipeline.run(
        "\n\n".join(paragraphs),
        "en",
        "sv",
        valid_credentials(),
        _one_paragraph_per_segment(concurrency=8),
    )

    assert output == "\n\n".join(text.upper() for text in paragraphs)
    assert store.refresh_calls == 1
    assert pipeline.last_coordinator is not None
    assert pipeline.last_coordinator.refresh_count == 1


def test_cancellation_raises_and_discards_results() -> None:
    """A cancelled backoff should abort the run instead of returning text."""

    client = ScriptedTranslationClient(
        always_fail={"Paragraph number 2.": TransientError("HTTP 503")}
    )
    pipeline = TranslationPipeline(
        client=client,
        credential_store=FakeCredentialStore(),
        waiter=lambda _seconds: True,
    )

    with pytest.raises(TranslationCancelledError):
        pipeline.run(
            _FIVE_PARAGRAPHS, "en", "sv", valid_credentials(), _one_paragraph_per_segment()
        )


def test_pipeline_run_slots_reject_duplicate_results() -> None:
    segments = Chunker().chunk("One.\n\nTwo.", 4)
    run = PipelineRun(segments)

    run.record(TranslationResult(index=0, translated_text="Ett."))
    with pytest.raises(RuntimeError, match="already has a result"):
        run.record(TranslationResult(index=0, translated_text="Ett."))
    assert run.complete is False


def test_translate_pdf_writes_sibling_output(
    tmp_path: Path, swedish_client: ScriptedTranslationClient
) -> None:
    pdf_path = tmp_path / "doc.pdf"
    pdf_path.write_bytes(b"%PDF")
    extractor = FakeExtractor(text="Hello world. This is a test.")
    progress: list[tuple[str, int, int]] = []
    pipeline = _pipeline(
        swedish_client,
        extractor=extractor,
        stage_progress_callback=lambda stage, i, n: progress.append((stage, i, n)),
    )

    outcome = pipeline.translate_pdf(TranslatorConfig(input_pdf=pdf_path), valid_credentials())

    assert outcome.output_path == tmp_path / "doc.translated.txt"
    assert outcome.output_path.read_text(encoding="utf-8") == "Hej världen. Det här är ett test."
    assert [stage for stage, _i, _n in progress] == ["extract", "chunk", "translate", "write"]
    assert progress[-1] == ("write", 4, 4)


def test_translate_pdf_writes_nothing_on_partial_failure(tmp_path: Path) -> None:
    pdf_path = tmp_path / "doc.pdf"
    pdf_path.write_bytes(b"%PDF")
    client = ScriptedTranslationClient(
        always_fail={"Paragraph number 3.": PermanentError("HTTP 400")}
    )
    pipeline = _pipeline(client, extractor=FakeExtractor(text=_FIVE_PARAGRAPHS))
    config = TranslatorConfig(input_pdf=pdf_path, max_segment_bytes=25)

    with pytest.raises(PartialTranslationError):
        pipeline.translate_pdf(config, valid_credentials())

    assert not (tmp_path / "doc.translated.txt").exists()
    assert sorted(path.name for path in tmp_path.iterdir()) == ["doc.pdf"]


def test_translate_pdf_maps_extraction_errors_to_stage_error(tmp_path: Path) -> None:
    pipeline = _pipeline(
        ScriptedTranslationClient(),
        extractor=FakeExtractor(error=ExtractionError("pdftotext missing")),
    )

    with pytest.raises(PipelineStageError) as exc_info:
        pipeline.translate_pdf(
            TranslatorConfig(input_pdf=tmp_path / "doc.pdf"), valid_credentials()
        )

    assert exc_info.value.stage == "extract"
    assert "pdf-translator install" in exc_info.value.hint


def test_translate_pdf_maps_write_errors_to_stage_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    pdf_path = tmp_path / "doc.pdf"
    pdf_path.write_bytes(b"%PDF")
    writer = OutputWriter()

    def _broken_replace(src: str, dst: object) -> None:
        raise PermissionError("read-only directory")

    monkeypatch.setattr("pdf_translator.io.output_writer.os.replace", _broken_replace)
    pipeline = _pipeline(
        ScriptedTranslationClient(), extractor=FakeExtractor(text="hello"), writer=writer
    )

    with pytest.raises(PipelineStageError) as exc_info:
        pipeline.translate_pdf(TranslatorConfig(input_pdf=pdf_path), valid_credentials())

    assert exc_info.value.stage == "write"
    assert sorted(path.name for path in tmp_path.iterdir()) == ["doc.pdf"]


def test_expired_token_is_refreshed_before_dispatch(tmp_path: Path) -> None:
    pdf_path = tmp_path / "doc.pdf"
    pdf_path.write_bytes(b"%PDF")
    store = FakeCredentialStore()
    client = ScriptedTranslationClient(valid_tokens={"fresh-token-1"})
    pipeline = _pipeline(client, store=store, extractor=FakeExtractor(text="hello"))
    expired = valid_credentials(
        token_expiry=datetime.now(timezone.utc) - timedelta(minutes=1)
    )

    outcome = pipeline.translate_pdf(TranslatorConfig(input_pdf=pdf_path), expired)

    assert outcome.text == "HELLO"
    assert store.refresh_calls == 1
    assert [call[3] for call in client.calls] == ["fresh-token-1"]


def test_expired_token_refresh_failure_is_fatal(tmp_path: Path) -> None:
    pdf_path = tmp_path / "doc.pdf"
    pdf_path.write_bytes(b"%PDF")
    client = ScriptedTranslationClient()
    store = FakeCredentialStore(refresh_error=AuthError("no active account"))
    pipeline = _pipeline(client, store=store, extractor=FakeExtractor(text="hello"))
    expired = valid_credentials(
        token_expiry=datetime.now(timezone.utc) - timedelta(minutes=1)
    )

    with pytest.raises(PipelineStageError) as exc_info:
        pipeline.translate_pdf(TranslatorConfig(input_pdf=pdf_path), expired)

    assert exc_info.value.stage == "credentials"
    assert client.calls == []


def test_keyboard_interrupt_during_dispatch_becomes_cancellation() -> None:
    """Ctrl-C while waiting for workers should cancel the run."""

    started = threading.Event()

    class _InterruptingClient(ScriptedTranslationClient):
        def translate(self, segment_text, source_lang, target_lang, credentials):  # type: ignore[no-untyped-def]
            started.set()
            raise KeyboardInterrupt

    pipeline = _pipeline(_InterruptingClient())

    with pytest.raises((TranslationCancelledError, KeyboardInterrupt)):
        pipeline.run(_FIVE_PARAGRAPHS, "en", "sv", valid_credentials(), _one_paragraph_per_segment())
    assert started.is_set()


def test_stage_completion_logs_carry_segment_counts() -> None:
    sink = io.StringIO()
    pipeline = _pipeline(ScriptedTranslationClient(), run_logger=RunLogger(sink=sink))

    pipeline.run(_FIVE_PARAGRAPHS, "en", "sv", valid_credentials(), _one_paragraph_per_segment())

    lines = sink.getvalue().splitlines()
    assert "[phase] level=INFO stage=chunk event=complete segments=5" in lines
    assert "[phase] level=INFO stage=translate event=complete failed=0 segments=5" in lines
