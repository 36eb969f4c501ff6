"""Domain exceptions for pipeline and CLI diagnostics.

Fatal stage failures (`ExtractionError`, `NotConfiguredError`, `WriteError`)
abort a run before or after translation. Per-segment failures carry an
`ErrorKind` so the retry controller can decide whether to retry, refresh
credentials, or give up.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models.datatypes import SegmentFailure


class ErrorKind(str, Enum):
    """Classification of one failed translation request."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    TRANSIENT = "transient"
    PERMANENT = "permanent"


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class TranslatorError(RuntimeError):
    """Base class for PDF Translator domain errors."""


class ExtractionError(TranslatorError):
    """Raised when text cannot be extracted from the input PDF."""


class NotConfiguredError(TranslatorError):
    """Raised when no usable credentials are stored or provided."""


class WriteError(TranslatorError):
    """Raised when the translated output file cannot be written."""


class TranslationError(TranslatorError):
    """Base class for classified failures of one translation request."""

    kind: ErrorKind = ErrorKind.PERMANENT

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialize request failure metadata."""

        super().__init__(message)
        self.status_code = status_code


class AuthError(TranslationError):
    """The service rejected the access token, or a token refresh failed."""

    kind = ErrorKind.AUTH


class RateLimitError(TranslationError):
    """The service asked the client to slow down."""

    kind = ErrorKind.RATE_LIMIT


class TransientError(TranslationError):
    """A network failure or server-side error that may succeed on retry."""

    kind = ErrorKind.TRANSIENT


class PermanentError(TranslationError):
    """A request the service will never accept as sent."""

    kind = ErrorKind.PERMANENT


class InstallError(TranslatorError):
    """Raised when Poppler cannot be detected or installed."""


class TranslationCancelledError(TranslatorError):
    """Raised when a run is cancelled while segments are in flight."""


class PartialTranslationError(TranslatorError):
    """Raised when one or more segments could not be translated."""

    def __init__(self, failures: Sequence[SegmentFailure], segment_count: int) -> None:
        """Initialize with every failed segment, ordered by index."""

        ordered = tuple(sorted(failures, key=lambda failure: failure.index))
        self.failures = ordered
        self.segment_count = segment_count
        lines = "; ".join(failure.describe() for failure in ordered)
        super().__init__(
            f"{len(ordered)} of {segment_count} segment(s) could not be translated: {lines}"
        )

    @property
    def failed_indices(self) -> list[int]:
        """Return failed segment indices in ascending order."""

        return [failure.index for failure in self.failures]
