"""Key=value run logging on top of loguru.

Every line has the shape `[phase] level=.. stage=.. event=.. k=v ...` with
context keys sorted, so logs can be grepped and diffed between runs. Only
segment indices, counts and error kinds are logged, never credentials or
segment text.
"""

from __future__ import annotations

import re
import sys
import threading
from typing import TextIO

from loguru import logger as _loguru_logger


_UNSAFE_CHARACTERS = re.compile(r"[^\w.:/-]")


def _context_token(value: object) -> str:
    text = str(value).strip()
    return _UNSAFE_CHARACTERS.sub("_", text) if text else "none"


def _format_context(context: dict[str, object]) -> str:
    return "".join(f" {key}={_context_token(context[key])}" for key in sorted(context))


class RunLogger:
    """Emit deterministic log lines for CLI-observable pipeline activity."""

    _configure_lock = threading.Lock()

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Initialize logger sink and configure deterministic formatting."""

        self._sink = sink or sys.stderr
        with self._configure_lock:
            _loguru_logger.remove()
            _loguru_logger.add(self._sink, format="{message}", level=level, colorize=False)

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        _loguru_logger.log(level, line)

    def log_stage_start(self, stage: str, **context: object) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage, **context)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type)

    def log_retry(self, index: int, attempt: int, delay_seconds: float, error_kind: str) -> None:
        """Emit a segment retry event with its backoff delay."""

        self._emit(
            "WARNING",
            "retry",
            "translate",
            attempt=attempt,
            delay=f"{delay_seconds:.3f}",
            error_kind=error_kind,
            segment=index,
        )

    def log_refresh(self, index: int, outcome: str) -> None:
        """Emit a credential refresh event (`issued`, `reused`, or `failed`)."""

        self._emit("INFO", "refresh", "translate", outcome=outcome, segment=index)

    def log_segment_failure(self, index: int, error_kind: str, attempts: int) -> None:
        """Emit a terminal segment failure event."""

        self._emit(
            "ERROR",
            "segment_failed",
            "translate",
            attempts=attempts,
            error_kind=error_kind,
            segment=index,
        )
