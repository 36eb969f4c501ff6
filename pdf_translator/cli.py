"""Command-line interface for PDF Translator.

Responsibilities:
- Expose user-facing commands for translation, credential setup, and tooling.
- Convert CLI arguments into `TranslatorConfig` and run the pipeline.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from .cli_rendering import (
    CANCELLED_EXIT_CODE,
    echo_credential_status,
    echo_install_report,
    echo_language_table,
    echo_translation_summary,
    exit_with_command_error,
)
from .cli_runtime import (
    open_credential_store,
    resolve_run_credentials,
    update_stored_credentials,
)
from .config import ConfigLoader, TranslatorConfig
from .errors import NotConfiguredError, PipelineStageError
from .installer import PopplerInstaller
from .pipeline import TranslationPipeline
from .telemetry.logger import RunLogger

app = typer.Typer(
    name="pdf-translator",
    no_args_is_help=True,
    help="Translate the text of a PDF with the Google Cloud Translation API.",
)


class StageProgressIndicator:
    """Render deterministic per-stage progress lines for long-running commands."""

    def __init__(self, command_name: str) -> None:
        self._command_name = command_name

    def on_stage_start(self, stage_name: str, stage_index: int, stage_total: int) -> None:
        typer.echo(
            f"[progress] command={self._command_name} "
            f"{stage_index}/{stage_total} stage={stage_name}"
        )


def _load_base_config(config_path: Path | None) -> TranslatorConfig:
    """Load YAML config when requested, else environment defaults."""

    if config_path is None:
        try:
            return ConfigLoader.from_env()
        except ValueError as exc:
            raise PipelineStageError(
                stage="config",
                detail=f"Invalid environment configuration: {exc}",
                hint="Fix or unset the offending `PDF_TRANSLATOR_*` variable.",
            ) from exc

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except OSError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Failed to load config file `{config_path}`: {exc}",
            hint="Verify the file permissions.",
        ) from exc


def _apply_cli_overrides(base: TranslatorConfig, **overrides: object) -> TranslatorConfig:
    try:
        return base.with_overrides(**overrides)
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Check the command options and rerun.",
        ) from exc


@app.command("translate")
def translate_command(
    input_pdf: Annotated[
        Path | None,
        typer.Argument(help="Path to source PDF. Required unless provided by `--config`."),
    ] = None,
    source_language: Annotated[
        str | None,
        typer.Option("--source", "-s", help="Source language code (default `en`)."),
    ] = None,
    target_language: Annotated[
        str | None,
        typer.Option("--target", "-t", help="Target language code (default `sv`)."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with run settings."),
    ] = None,
    max_segment_bytes: Annotated[
        int | None,
        typer.Option("--max-segment-bytes", help="Upper bound for one request, in UTF-8 bytes."),
    ] = None,
    concurrency: Annotated[
        int | None,
        typer.Option("--concurrency", help="Number of segments translated in parallel."),
    ] = None,
    max_attempts: Annotated[
        int | None,
        typer.Option("--max-attempts", help="Attempts per segment before giving up."),
    ] = None,
    best_effort: Annotated[
        bool | None,
        typer.Option(
            "--best-effort/--all-or-nothing",
            help="Write output even if some segments fail, keeping their source text.",
        ),
    ] = None,
    api_key: Annotated[
        str | None, typer.Option("--api-key", help="API key override for this run.")
    ] = None,
    access_token: Annotated[
        str | None,
        typer.Option("--access-token", help="Access token override for this run."),
    ] = None,
    project_id: Annotated[
        str | None, typer.Option("--project-id", help="Project id override for this run.")
    ] = None,
) -> None:
    """Translate a PDF and write `<name>.translated.txt` beside it."""

    try:
        base_config = _load_base_config(config_file)
        config = _apply_cli_overrides(
            base_config,
            input_pdf=input_pdf,
            source_language=source_language,
            target_language=target_language,
            max_segment_bytes=max_segment_bytes,
            concurrency=concurrency,
            max_attempts=max_attempts,
            best_effort=best_effort,
        )
        if config.input_pdf is None:
            raise PipelineStageError(
                stage="config",
                detail="Input PDF path is required when `--config` does not set `input_pdf`.",
                hint="Pass `<input.pdf>` or use `--config <path.yaml>` with `input_pdf`.",
            )
        store = open_credential_store(
            config.credential_backend, refresh_command=config.refresh_command
        )
        credentials = resolve_run_credentials(
            store,
            api_key=api_key,
            access_token=access_token,
            project_id=project_id,
        )
        progress = StageProgressIndicator(command_name="translate")
        pipeline = TranslationPipeline(
            credential_store=store,
            run_logger=RunLogger(),
            stage_progress_callback=progress.on_stage_start,
        )
        outcome = pipeline.translate_pdf(config, credentials)
    except KeyboardInterrupt as exc:
        typer.secho(
            "translate cancelled by user. No output was written.",
            fg=typer.colors.YELLOW,
            err=True,
        )
        raise typer.Exit(code=CANCELLED_EXIT_CODE) from exc
    except Exception as exc:
        exit_with_command_error("translate", exc)

    echo_translation_summary(outcome)


@app.command("config")
def config_command(
    api_key: Annotated[str | None, typer.Option("--api-key", help="API key to store.")] = None,
    access_token: Annotated[
        str | None, typer.Option("--access-token", help="Access token to store.")
    ] = None,
    project_id: Annotated[
        str | None, typer.Option("--project-id", help="Project id to store.")
    ] = None,
    backend: Annotated[
        str | None,
        typer.Option(
            "--backend",
            help=(
                "Credential storage backend: `file` or `keyring`. Defaults to "
                "`PDF_TRANSLATOR_CREDENTIAL_BACKEND`, else `file`."
            ),
        ),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="YAML config file whose `credential_backend` is used."),
    ] = None,
    show: Annotated[
        bool,
        typer.Option("--show", help="Show which values are stored without revealing them."),
    ] = False,
) -> None:
    """Store API credentials; unset values keep their previous value."""

    try:
        if backend is None:
            backend = _load_base_config(config_file).credential_backend
        store = open_credential_store(backend)
        if show:
            try:
                stored = store.load_optional()
            except NotConfiguredError as exc:
                raise PipelineStageError(
                    stage="config",
                    detail=str(exc),
                    hint="Recreate the stored credentials with `pdf-translator config`.",
                ) from exc
            echo_credential_status(stored, store.describe_location())
            return
        saved = update_stored_credentials(store, api_key, access_token, project_id)
    except Exception as exc:
        exit_with_command_error("config", exc)

    typer.echo(f"Credentials saved to {store.describe_location()}.")
    missing = saved.missing_fields()
    if missing:
        typer.secho(
            f"Warning: still missing {', '.join(missing)}; translation requires them.",
            fg=typer.colors.YELLOW,
            err=True,
        )


@app.command("install")
def install_command() -> None:
    """Check for Poppler (`pdftotext`) and install it when missing."""

    typer.echo("Checking if Poppler is installed...")
    try:
        report = PopplerInstaller().run()
    except Exception as exc:
        exit_with_command_error("install", exc)

    echo_install_report(report)


@app.command("languages")
def languages_command() -> None:
    """List supported language names and codes."""

    echo_language_table()


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
