"""Per-segment retry/backoff state machine.

Each segment moves through `pending -> attempting -> {succeeded, retrying,
failed}`. Rate-limit and transient failures back off exponentially up to the
attempt budget; an auth failure triggers one shared credential refresh; a
permanent failure ends the segment immediately.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import threading
from typing import Callable

from ..credentials import CredentialCoordinator
from ..errors import (
    AuthError,
    PermanentError,
    RateLimitError,
    TransientError,
    TranslationCancelledError,
    TranslationError,
)
from ..models.datatypes import Segment, TranslationResult
from ..telemetry.logger import RunLogger
from .client import TranslationClient


class SegmentState(str, Enum):
    """Lifecycle states of one segment."""

    PENDING = "pending"
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_ALLOWED_TRANSITIONS: dict[SegmentState, frozenset[SegmentState]] = {
    SegmentState.PENDING: frozenset({SegmentState.ATTEMPTING}),
    SegmentState.ATTEMPTING: frozenset(
        {
            SegmentState.ATTEMPTING,
            SegmentState.RETRYING,
            SegmentState.SUCCEEDED,
            SegmentState.FAILED,
        }
    ),
    SegmentState.RETRYING: frozenset({SegmentState.ATTEMPTING, SegmentState.FAILED}),
    SegmentState.SUCCEEDED: frozenset(),
    SegmentState.FAILED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded exponential backoff settings.

    Attributes:
        max_attempts: Total request attempts per segment, first one included.
        base_delay_seconds: Delay before the first retry.
        max_delay_seconds: Upper bound for any single delay.
    """

    max_attempts: int = 5
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("`max_attempts` must be at least 1.")
        if self.base_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ValueError("Retry delays must not be negative.")

    def delay_for(self, retry_number: int) -> float:
        """Return `base * 2**retry_number`, capped at the maximum delay."""

        return min(self.base_delay_seconds * (2**retry_number), self.max_delay_seconds)


@dataclass(slots=True)
class SegmentLifecycle:
    """Mutable state of one segment's translation attempts."""

    index: int
    state: SegmentState = SegmentState.PENDING
    attempts: int = 0
    refreshed: bool = False
    last_error: TranslationError | None = None
    history: list[SegmentState] = field(default_factory=lambda: [SegmentState.PENDING])

    def transition(self, target: SegmentState) -> None:
        """Move to `target`, rejecting transitions the state machine forbids."""

        if target not in _ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Invalid segment transition {self.state.value} -> {target.value} "
                f"for segment {self.index}."
            )
        self.state = target
        self.history.append(target)


class RetryController:
    """Drive one segment through the client until it succeeds or fails for good."""

    def __init__(
        self,
        client: TranslationClient,
        coordinator: CredentialCoordinator,
        policy: RetryPolicy | None = None,
        cancel_event: threading.Event | None = None,
        waiter: Callable[[float], bool] | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize collaborators.

        `waiter(seconds)` blocks for the backoff delay and returns `True` when
        the run was cancelled meanwhile; it defaults to waiting on
        `cancel_event`.
        """

        self.client = client
        self.coordinator = coordinator
        self.policy = policy if policy is not None else RetryPolicy()
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self._waiter = waiter if waiter is not None else self.cancel_event.wait
        self._run_logger = run_logger

    def run(
        self,
        segment: Segment,
        source_lang: str,
        target_lang: str,
        lifecycle: SegmentLifecycle | None = None,
    ) -> TranslationResult:
        """Translate `segment`, returning a success or a classified failure."""

        state = lifecycle if lifecycle is not None else SegmentLifecycle(index=segment.index)
        credentials, generation = self.coordinator.snapshot()
        while True:
            if self.cancel_event.is_set():
                raise TranslationCancelledError(
                    f"Translation cancelled before segment {segment.index} completed."
                )
            state.transition(SegmentState.ATTEMPTING)
            state.attempts += 1
            try:
                translated = self.client.translate(
                    segment.text, source_lang, target_lang, credentials
                )
            except AuthError as exc:
                state.last_error = exc
                if state.refreshed:
                    return self._fail(state)
                state.refreshed = True
                try:
                    credentials, generation, issued = self.coordinator.refresh(generation)
                except AuthError as refresh_exc:
                    state.last_error = refresh_exc
                    self._log_refresh(segment.index, "failed")
                    return self._fail(state)
                self._log_refresh(segment.index, "issued" if issued else "reused")
                continue
            except (RateLimitError, TransientError) as exc:
                state.last_error = exc
                if state.attempts >= self.policy.max_attempts:
                    return self._fail(state)
                state.transition(SegmentState.RETRYING)
                delay = self.policy.delay_for(state.attempts - 1)
                if self._run_logger is not None:
                    self._run_logger.log_retry(segment.index, state.attempts, delay, exc.kind.value)
                if self._waiter(delay):
                    raise TranslationCancelledError(
                        f"Translation cancelled while segment {segment.index} was backing off."
                    ) from exc
                credentials, generation = self.coordinator.snapshot()
                continue
            except PermanentError as exc:
                state.last_error = exc
                return self._fail(state)

            state.transition(SegmentState.SUCCEEDED)
            return TranslationResult(
                index=segment.index,
                translated_text=translated,
                attempts=state.attempts,
            )

    def _fail(self, state: SegmentLifecycle) -> TranslationResult:
        """Move to `failed` and report the last observed error."""

        state.transition(SegmentState.FAILED)
        error = state.last_error
        if error is None:
            raise RuntimeError(f"Segment {state.index} failed without a recorded error.")
        if self._run_logger is not None:
            self._run_logger.log_segment_failure(state.index, error.kind.value, state.attempts)
        return TranslationResult(
            index=state.index,
            error=error.kind,
            message=str(error),
            attempts=state.attempts,
        )

    def _log_refresh(self, index: int, outcome: str) -> None:
        if self._run_logger is not None:
            self._run_logger.log_refresh(index, outcome)
