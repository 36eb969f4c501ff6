"""Stage progress and log reporting for the translation pipeline."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TypeVar

from ..telemetry.logger import RunLogger

_StageResult = TypeVar("_StageResult")


class PipelineTelemetryMixin:
    """Report stage transitions to the progress callback and the run logger."""

    _STAGES = ("extract", "chunk", "translate", "write")

    _run_logger: RunLogger | None
    _stage_progress_callback: Callable[[str, int, int], None] | None

    def _run_stage(
        self,
        stage_name: str,
        action: Callable[[], _StageResult],
        summarize: Callable[[_StageResult], Mapping[str, object]] | None = None,
    ) -> _StageResult:
        """Run `action` as stage `stage_name`, logging start, completion, or failure.

        `summarize(result)` may supply extra context for the completion event,
        such as segment counts. Failures are logged by exception type only.
        """

        if self._stage_progress_callback is not None and stage_name in self._STAGES:
            self._stage_progress_callback(
                stage_name, self._STAGES.index(stage_name) + 1, len(self._STAGES)
            )
        if self._run_logger is not None:
            self._run_logger.log_stage_start(stage_name)
        try:
            result = action()
        except BaseException as exc:
            if self._run_logger is not None:
                self._run_logger.log_stage_failure(stage_name, type(exc).__name__)
            raise
        if self._run_logger is not None:
            context = summarize(result) if summarize is not None else {}
            self._run_logger.log_stage_complete(stage_name, **context)
        return result
