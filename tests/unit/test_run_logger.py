"""Unit tests for structured run log lines."""

from __future__ import annotations

import io

from pdf_translator.telemetry.logger import RunLogger


def test_stage_and_segment_events_are_deterministic() -> None:
    sink = io.StringIO()
    logger = RunLogger(sink=sink)

    logger.log_stage_start("translate", segments=3)
    logger.log_retry(2, attempt=1, delay_seconds=0.5, error_kind="rate_limit")
    logger.log_refresh(1, "issued")
    logger.log_segment_failure(2, "permanent", attempts=1)
    logger.log_stage_failure("translate", "PartialTranslationError")

    assert sink.getvalue().splitlines() == [
        "[phase] level=INFO stage=translate event=start segments=3",
        "[phase] level=WARNING stage=translate event=retry attempt=1 delay=0.500 "
        "error_kind=rate_limit segment=2",
        "[phase] level=INFO stage=translate event=refresh outcome=issued segment=1",
        "[phase] level=ERROR stage=translate event=segment_failed attempts=1 "
        "error_kind=permanent segment=2",
        "[phase] level=ERROR stage=translate event=failure error_type=PartialTranslationError",
    ]


def test_context_values_are_sanitized() -> None:
    sink = io.StringIO()
    RunLogger(sink=sink).log_stage_complete("write", path="/tmp/my file.txt")

    assert sink.getvalue().strip() == (
        "[phase] level=INFO stage=write event=complete path=/tmp/my_file.txt"
    )


def test_level_filters_lower_events() -> None:
    sink = io.StringIO()
    logger = RunLogger(sink=sink, level="WARNING")

    logger.log_stage_start("extract")
    logger.log_stage_failure("extract", "ExtractionError")

    assert sink.getvalue().splitlines() == [
        "[phase] level=ERROR stage=extract event=failure error_type=ExtractionError"
    ]
