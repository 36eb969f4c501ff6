"""Pipeline orchestration for PDF Translator.

Responsibilities:
- Define the stage order: extract, chunk, translate, write.
- Dispatch segments to a bounded worker pool and assemble results in order.
- Enforce all-or-nothing output unless best-effort mode is requested.

Key types:
- `TranslationPipeline`: orchestration facade.
- `PipelineOptions`: per-run chunking, concurrency, and retry settings.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from ..config import TranslatorConfig
from ..credentials import CredentialCoordinator, CredentialStore, FileCredentialStore
from ..errors import AuthError, PartialTranslationError, PipelineStageError
from ..io.output_writer import OutputWriter
from ..io.pdf_text_extractor import PdfTextExtractor, TextExtractor
from ..models.datatypes import Credentials, TranslationOutcome
from ..telemetry.logger import RunLogger
from ..text.chunking import Chunker
from ..translation.client import TranslationClient
from ..translation.google_client import GoogleTranslateClient
from ..translation.rate_limiter import RateLimiter
from ..translation.retry import RetryController, RetryPolicy
from .execution import PipelineExecutionMixin
from .run import PipelineRun
from .telemetry import PipelineTelemetryMixin


@dataclass(frozen=True, slots=True)
class PipelineOptions:
    """Settings that shape one translation run.

    Attributes:
        max_segment_bytes: Upper bound for one segment, in UTF-8 bytes.
        concurrency: Maximum number of in-flight segment translations.
        retry_policy: Backoff settings shared by all segments.
        best_effort: Keep source text for failed segments instead of raising.
    """

    max_segment_bytes: int = 5000
    concurrency: int = 4
    retry_policy: RetryPolicy = RetryPolicy()
    best_effort: bool = False

    def __post_init__(self) -> None:
        if self.max_segment_bytes < 1:
            raise ValueError("`max_segment_bytes` must be a positive integer.")
        if self.concurrency < 1:
            raise ValueError("`concurrency` must be a positive integer.")

    @classmethod
    def from_config(cls, config: TranslatorConfig) -> PipelineOptions:
        return cls(
            max_segment_bytes=config.max_segment_bytes,
            concurrency=config.concurrency,
            retry_policy=RetryPolicy(
                max_attempts=config.max_attempts,
                base_delay_seconds=config.retry_base_delay_seconds,
                max_delay_seconds=config.retry_max_delay_seconds,
            ),
            best_effort=config.best_effort,
        )


class TranslationPipeline(PipelineTelemetryMixin, PipelineExecutionMixin):
    """Coordinate all stages for a single translation run."""

    def __init__(
        self,
        client: TranslationClient | None = None,
        extractor: TextExtractor | None = None,
        writer: OutputWriter | None = None,
        chunker: Chunker | None = None,
        credential_store: CredentialStore | None = None,
        run_logger: RunLogger | None = None,
        stage_progress_callback: Callable[[str, int, int], None] | None = None,
        waiter: Callable[[float], bool] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize collaborators.

        Omitted collaborators default to the Google v2 client, `pdftotext`
        extraction, a sibling-file writer, and the per-user credential file.
        `waiter` replaces the cancellable backoff wait, mainly for tests.
        """

        self._client = client
        self._extractor = extractor if extractor is not None else PdfTextExtractor()
        self._writer = writer
        self._chunker = chunker if chunker is not None else Chunker()
        self._credential_store = credential_store
        self._run_logger = run_logger
        self._stage_progress_callback = stage_progress_callback
        self._waiter = waiter
        self._clock = clock if clock is not None else lambda: datetime.now(timezone.utc)
        self.last_coordinator: CredentialCoordinator | None = None

    def run(
        self,
        raw_text: str,
        source_lang: str,
        target_lang: str,
        credentials: Credentials,
        options: PipelineOptions | None = None,
    ) -> str:
        """Translate `raw_text` and return the assembled output text.

        Raises:
            PartialTranslationError: When any segment failed and best-effort
                mode is off.
            TranslationCancelledError: When the run was interrupted.
        """

        return self.run_detailed(
            raw_text, source_lang, target_lang, credentials, options
        ).text

    def run_detailed(
        self,
        raw_text: str,
        source_lang: str,
        target_lang: str,
        credentials: Credentials,
        options: PipelineOptions | None = None,
        client: TranslationClient | None = None,
    ) -> TranslationOutcome:
        """Translate `raw_text`, returning text plus per-segment failure details."""

        resolved_options = options if options is not None else PipelineOptions()
        segments = self._run_stage(
            "chunk",
            lambda: self._chunker.chunk(raw_text, resolved_options.max_segment_bytes),
            lambda chunks: {"segments": len(chunks)},
        )
        if not segments:
            return TranslationOutcome(text="", segment_count=0)

        run = PipelineRun(segments)
        resolved_client = client if client is not None else self._resolve_client()
        coordinator = CredentialCoordinator(self._resolve_store(), credentials)
        self.last_coordinator = coordinator
        controller = RetryController(
            resolved_client,
            coordinator,
            policy=resolved_options.retry_policy,
            cancel_event=run.cancel_event,
            waiter=self._waiter,
            run_logger=self._run_logger,
        )

        def _translate() -> TranslationOutcome:
            self._dispatch(
                run,
                controller,
                source_lang,
                target_lang,
                resolved_options.concurrency,
            )
            failures = run.failures()
            if failures and not resolved_options.best_effort:
                raise PartialTranslationError(failures, len(segments))
            return TranslationOutcome(
                text=run.assemble(keep_source_for_failures=True),
                segment_count=len(segments),
                failures=tuple(failures),
            )

        return self._run_stage(
            "translate",
            _translate,
            lambda outcome: {
                "segments": outcome.segment_count,
                "failed": len(outcome.failures),
            },
        )

    def translate_pdf(
        self, config: TranslatorConfig, credentials: Credentials
    ) -> TranslationOutcome:
        """Extract, translate, and write a sibling output file for `config.input_pdf`.

        No output file is written unless every segment succeeded or
        best-effort mode is enabled.
        """

        if config.input_pdf is None:
            raise PipelineStageError(
                stage="config",
                detail="No input PDF path was provided.",
                hint="Pass the PDF path as the first argument.",
            )
        config.validate()
        pdf_path = config.input_pdf
        credentials = self._ensure_fresh_token(credentials)

        raw_text = self._run_stage("extract", lambda: self._extract(pdf_path))
        client = self._resolve_client(config)
        outcome = self.run_detailed(
            raw_text,
            config.source_language,
            config.target_language,
            credentials,
            PipelineOptions.from_config(config),
            client=client,
        )
        writer = (
            self._writer if self._writer is not None else OutputWriter(config.output_suffix)
        )
        output_path = self._run_stage(
            "write",
            lambda: self._write(writer, pdf_path, outcome.text),
            lambda path: {"path": path.name},
        )
        return TranslationOutcome(
            text=outcome.text,
            segment_count=outcome.segment_count,
            failures=outcome.failures,
            output_path=output_path,
        )

    def _ensure_fresh_token(self, credentials: Credentials) -> Credentials:
        """Refresh a token already known to be expired before any dispatch."""

        if not credentials.is_expired(self._clock()):
            return credentials
        try:
            return self._resolve_store().refresh(credentials)
        except AuthError as exc:
            raise PipelineStageError(
                stage="credentials",
                detail=f"Stored access token has expired and could not be refreshed: {exc}",
                hint="Run `gcloud auth login` or set a new token with `pdf-translator config`.",
            ) from exc

    def _resolve_client(self, config: TranslatorConfig | None = None) -> TranslationClient:
        if self._client is not None:
            return self._client
        if config is None:
            return GoogleTranslateClient()
        return GoogleTranslateClient(
            endpoint=config.endpoint,
            timeout_seconds=config.request_timeout_seconds,
            rate_limiter=RateLimiter(config.min_request_interval_seconds),
        )

    def _resolve_store(self) -> CredentialStore:
        if self._credential_store is None:
            self._credential_store = FileCredentialStore()
        return self._credential_store
