"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
per-segment failure listings, run summaries, and credential status.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import PartialTranslationError, PipelineStageError, TranslationCancelledError
from .installer import InstallReport
from .languages import language_table_rows
from .models.datatypes import Credentials, SegmentFailure, TranslationOutcome

CANCELLED_EXIT_CODE = 130


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit non-zero."""

    if isinstance(exc, TranslationCancelledError):
        typer.secho(
            f"{command_name} cancelled: {exc} No output was written.",
            fg=typer.colors.YELLOW,
            err=True,
        )
        raise typer.Exit(code=CANCELLED_EXIT_CODE) from exc
    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    elif isinstance(exc, PartialTranslationError):
        typer.secho(
            f"{command_name} failed: {len(exc.failures)} of {exc.segment_count} "
            "segment(s) could not be translated. No output was written.",
            fg=typer.colors.RED,
            err=True,
        )
        echo_segment_failures(exc.failures)
        typer.secho(
            "Hint: rerun later, or pass `--best-effort` to keep source text for failed segments.",
            fg=typer.colors.YELLOW,
            err=True,
        )
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_segment_failures(failures: tuple[SegmentFailure, ...] | list[SegmentFailure]) -> None:
    """Print one line per failed segment, ordered by index."""

    for failure in sorted(failures, key=lambda item: item.index):
        typer.secho(f"  - {failure.describe()}", err=True)


def echo_translation_summary(outcome: TranslationOutcome) -> None:
    """Print output location and per-run segment totals."""

    typer.echo(f"Segments: {outcome.segment_count}")
    typer.echo(f"Output: {outcome.output_path}")
    if outcome.failures:
        typer.secho(
            f"Warning: {len(outcome.failures)} segment(s) were left untranslated.",
            fg=typer.colors.YELLOW,
            err=True,
        )
        echo_segment_failures(outcome.failures)


def echo_credential_status(credentials: Credentials | None, location: str) -> None:
    """Print which credential values are stored without revealing them."""

    typer.echo(f"Credential storage: {location}")
    stored = credentials if credentials is not None else Credentials()
    for label, value in (
        ("API key", stored.api_key),
        ("Access token", stored.access_token),
        ("Project id", stored.project_id),
    ):
        typer.echo(f"{label}: {'present' if value else 'not set'}")
    if stored.token_expiry is not None:
        typer.echo(f"Access token expiry: {stored.token_expiry.isoformat()}")


def echo_install_report(report: InstallReport) -> None:
    """Print the Poppler installation outcome."""

    if report.already_installed:
        typer.echo("Poppler is already installed.")
    else:
        typer.echo(f"Poppler installed successfully with `{report.package_manager}`.")
    if report.version_line:
        typer.echo(report.version_line)


def echo_language_table() -> None:
    for row in language_table_rows():
        typer.echo(row)
