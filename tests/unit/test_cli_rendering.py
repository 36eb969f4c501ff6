"""Unit tests for CLI diagnostics rendering."""

from __future__ import annotations

import pytest
import typer

from pdf_translator.cli_rendering import CANCELLED_EXIT_CODE, exit_with_command_error
from pdf_translator.errors import (
    ErrorKind,
    PartialTranslationError,
    PipelineStageError,
    TranslationCancelledError,
)
from pdf_translator.models.datatypes import SegmentFailure


def test_stage_error_prints_stage_and_hint(capsys: pytest.CaptureFixture[str]) -> None:
    error = PipelineStageError(stage="extract", detail="boom", hint="install pdftotext")

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("translate", error)

    assert exc_info.value.exit_code == 1
    err = capsys.readouterr().err
    assert "translate failed at stage `extract`: boom" in err
    assert "Hint: install pdftotext" in err


def test_partial_error_lists_each_failed_segment(capsys: pytest.CaptureFixture[str]) -> None:
    error = PartialTranslationError(
        [
            SegmentFailure(index=4, kind=ErrorKind.TRANSIENT, message="HTTP 503"),
            SegmentFailure(index=1, kind=ErrorKind.PERMANENT, message="HTTP 400"),
        ],
        segment_count=6,
    )

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("translate", error)

    assert exc_info.value.exit_code == 1
    err = capsys.readouterr().err
    assert "2 of 6 segment(s) could not be translated" in err
    assert err.index("segment 1: permanent (HTTP 400)") < err.index(
        "segment 4: transient (HTTP 503)"
    )
    assert "No output was written" in err


def test_cancellation_exits_with_interrupt_code(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("translate", TranslationCancelledError("Interrupted."))

    assert exc_info.value.exit_code == CANCELLED_EXIT_CODE == 130
    assert "cancelled" in capsys.readouterr().err
