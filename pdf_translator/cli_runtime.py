"""CLI credential resolution helpers.

This module isolates runtime credential source assembly and credential
persistence from the command wiring layer.
"""

from __future__ import annotations

import os
from typing import Mapping

from .config import RuntimeConfigSources
from .credentials import (
    DEFAULT_REFRESH_COMMAND,
    CredentialStore,
    KeyringCredentialStore,
    create_credential_store,
    credentials_to_mapping,
    require_complete,
)
from .errors import NotConfiguredError, PipelineStageError, WriteError
from .models.datatypes import Credentials
from .parsing import normalize_optional_string


def _cli_values(
    api_key: str | None,
    access_token: str | None,
    project_id: str | None,
) -> dict[str, str]:
    """Collect non-blank credential values passed on the command line."""

    values: dict[str, str] = {}
    for key, value in (
        ("api_key", api_key),
        ("access_token", access_token),
        ("project_id", project_id),
    ):
        normalized = normalize_optional_string(value)
        if normalized is not None:
            values[key] = normalized
    return values


def open_credential_store(
    backend: str,
    refresh_command: str = DEFAULT_REFRESH_COMMAND,
) -> CredentialStore:
    """Create the store for `backend`, rejecting a keyring with no usable backend."""

    try:
        store = create_credential_store(backend, refresh_command=refresh_command)
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Use `--backend file` or `--backend keyring`.",
        ) from exc
    if isinstance(store, KeyringCredentialStore) and not store.is_available():
        raise PipelineStageError(
            stage="config",
            detail="No usable keyring backend is available for credential storage.",
            hint=(
                "Install and configure a keyring backend, or set "
                "`credential_backend: file` (`PDF_TRANSLATOR_CREDENTIAL_BACKEND=file`)."
            ),
        )
    return store


def resolve_run_credentials(
    store: CredentialStore,
    api_key: str | None = None,
    access_token: str | None = None,
    project_id: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Credentials:
    """Resolve credentials for a translate run as CLI > store > env.

    Raises:
        PipelineStageError: When required values are missing from every source.
    """

    cli_values = _cli_values(api_key, access_token, project_id)
    try:
        stored = store.load_optional()
    except NotConfiguredError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Fix or recreate the stored credentials with `pdf-translator config`.",
        ) from exc

    secure_values = {
        key: value
        for key, value in (credentials_to_mapping(stored).items() if stored else ())
        if key != "token_expiry" and value
    }
    sources = RuntimeConfigSources(
        cli=cli_values,
        secure=secure_values,
        env=os.environ if env is None else env,
    )
    resolved = sources.resolve_credentials()
    if (
        stored is not None
        and stored.token_expiry is not None
        and resolved.access_token == stored.access_token
    ):
        resolved = resolved.with_token(resolved.access_token, stored.token_expiry)

    try:
        return require_complete(resolved, "Credential configuration")
    except NotConfiguredError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint=(
                "Run `pdf-translator config --api-key ... --access-token ...`, pass the "
                "values as options, or set `PDF_TRANSLATOR_API_KEY` and "
                "`PDF_TRANSLATOR_ACCESS_TOKEN`."
            ),
        ) from exc


def update_stored_credentials(
    store: CredentialStore,
    api_key: str | None,
    access_token: str | None,
    project_id: str | None,
) -> Credentials:
    """Merge new values with stored ones and persist the result.

    Values left unset keep their previously stored value.
    """

    cli_values = _cli_values(api_key, access_token, project_id)
    if not cli_values:
        raise PipelineStageError(
            stage="config",
            detail="No credential values were provided.",
            hint="Pass at least one of `--api-key`, `--access-token`, or `--project-id`.",
        )
    try:
        previous = store.load_optional()
    except NotConfiguredError:
        previous = None
    merged = Credentials(**cli_values).merged_with(previous)
    try:
        store.save(merged)
    except WriteError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint=f"Check permissions for {store.describe_location()}.",
        ) from exc
    return merged
