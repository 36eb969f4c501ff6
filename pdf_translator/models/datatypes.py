"""Core datatypes shared across PDF Translator modules.

Responsibilities:
- Represent immutable records exchanged between pipeline stages.
- Keep segment ordering and reassembly metadata explicit.

Key types:
- `Segment`, `TranslationResult`, `SegmentFailure`, `Credentials`,
  and `TranslationOutcome`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path

from ..errors import ErrorKind


@dataclass(frozen=True, slots=True)
class Segment:
    """A contiguous slice of the source text sized for one translation request.

    Attributes:
        index: 0-based position; the sole ordering key for reassembly.
        text: Text sent for translation.
        byte_length: UTF-8 byte length of `text`.
        separator: Boundary whitespace that followed `text` in the source and is
            re-applied verbatim after the translated text.
    """

    index: int
    text: str
    byte_length: int
    separator: str = ""

    @property
    def is_blank(self) -> bool:
        """Return whether the segment holds whitespace only."""

        return not self.text.strip()


@dataclass(frozen=True, slots=True)
class TranslationResult:
    """Outcome for one segment; exactly one of text or error is set."""

    index: int
    translated_text: str | None = None
    error: ErrorKind | None = None
    message: str = ""
    attempts: int = 0

    def __post_init__(self) -> None:
        """Enforce the text-xor-error invariant."""

        if (self.translated_text is None) == (self.error is None):
            raise ValueError(
                "TranslationResult requires exactly one of `translated_text` or `error`."
            )

    @property
    def succeeded(self) -> bool:
        """Return whether the segment translated successfully."""

        return self.error is None


@dataclass(frozen=True, slots=True)
class SegmentFailure:
    """Failed segment position and reason reported to the user."""

    index: int
    kind: ErrorKind
    message: str

    def describe(self) -> str:
        """Return a one-line human-readable failure description."""

        detail = f" ({self.message})" if self.message else ""
        return f"segment {self.index}: {self.kind.value}{detail}"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Remote translation API credentials.

    Attributes:
        api_key: API key sent in the request body.
        access_token: OAuth-style bearer token.
        project_id: Billing/quota project sent as `x-goog-user-project`.
        token_expiry: Optional timezone-aware expiry of `access_token`.
    """

    api_key: str = field(default="", repr=False)
    access_token: str = field(default="", repr=False)
    project_id: str = ""
    token_expiry: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return whether the token has a known expiry that already passed."""

        if self.token_expiry is None:
            return False
        current = now if now is not None else datetime.now(timezone.utc)
        return current >= self.token_expiry

    def merged_with(self, previous: Credentials | None) -> Credentials:
        """Fill blank fields from previously stored credentials."""

        if previous is None:
            return self
        return Credentials(
            api_key=self.api_key or previous.api_key,
            access_token=self.access_token or previous.access_token,
            project_id=self.project_id or previous.project_id,
            token_expiry=(
                self.token_expiry
                if self.access_token
                else previous.token_expiry
            ),
        )

    def with_token(self, access_token: str, token_expiry: datetime | None) -> Credentials:
        """Return a copy carrying a new access token and expiry."""

        return replace(self, access_token=access_token, token_expiry=token_expiry)

    def missing_fields(self) -> list[str]:
        """Return names of required fields that are blank."""

        missing: list[str] = []
        if not self.api_key.strip():
            missing.append("api_key")
        if not self.access_token.strip():
            missing.append("access_token")
        return missing


@dataclass(frozen=True, slots=True)
class TranslationOutcome:
    """Result of one full document run."""

    text: str
    segment_count: int
    failures: tuple[SegmentFailure, ...] = field(default_factory=tuple)
    output_path: Path | None = None

    @property
    def complete(self) -> bool:
        """Return whether every segment translated."""

        return not self.failures
