"""Credential storage and shared token refresh for translation runs.

Responsibilities:
- Persist API key, access token, and project id in a platform config location
  (YAML file) or in the OS keyring.
- Fetch fresh access tokens by running an external token command.
- Serialize token refresh across concurrent translation workers.

Key types:
- `CredentialStore`: interface for load/save/refresh.
- `FileCredentialStore`: YAML file under the per-user app directory.
- `KeyringCredentialStore`: JSON record in the OS keyring.
- `CommandTokenRefresher`: obtains tokens from e.g. `gcloud auth print-access-token`.
- `CredentialCoordinator`: generation-guarded single-flight refresh.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import json
import os
from pathlib import Path
import shlex
import subprocess
import threading
from typing import Any, Callable, Mapping

import keyring
from keyring.backends import fail as keyring_fail
from keyring.errors import KeyringError
import typer
import yaml

from .errors import AuthError, NotConfiguredError, WriteError
from .models.datatypes import Credentials
from .parsing import normalize_optional_string, parse_optional_timestamp
from .runtime_tools import resolve_executable

APP_NAME = "pdf-translator"
DEFAULT_REFRESH_COMMAND = "gcloud auth print-access-token"
DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)
DEFAULT_REFRESH_TIMEOUT_SECONDS = 60.0
_CREDENTIALS_FILE_NAME = "credentials.yaml"
_DEFAULT_SERVICE_NAME = APP_NAME
_DEFAULT_ACCOUNT_NAME = "credentials"


def default_credentials_path() -> Path:
    """Return the per-user credentials file path for this platform."""

    return Path(typer.get_app_dir(APP_NAME)) / _CREDENTIALS_FILE_NAME


def credentials_to_mapping(credentials: Credentials) -> dict[str, str | None]:
    """Serialize credentials into a plain mapping."""

    return {
        "api_key": credentials.api_key,
        "access_token": credentials.access_token,
        "project_id": credentials.project_id,
        "token_expiry": (
            credentials.token_expiry.isoformat() if credentials.token_expiry else None
        ),
    }


def credentials_from_mapping(payload: Mapping[str, Any]) -> Credentials:
    """Build credentials from a mapping, treating missing values as blank."""

    return Credentials(
        api_key=normalize_optional_string(payload.get("api_key")) or "",
        access_token=normalize_optional_string(payload.get("access_token")) or "",
        project_id=normalize_optional_string(payload.get("project_id")) or "",
        token_expiry=parse_optional_timestamp(payload.get("token_expiry")),
    )


def require_complete(credentials: Credentials, source_label: str) -> Credentials:
    """Raise `NotConfiguredError` when required credential fields are blank."""

    missing = credentials.missing_fields()
    if missing:
        raise NotConfiguredError(
            f"{source_label} is missing required credential value(s): {', '.join(missing)}."
        )
    return credentials


@dataclass(slots=True)
class CommandTokenRefresher:
    """Obtain a fresh bearer token from an external command's stdout."""

    command: str = DEFAULT_REFRESH_COMMAND
    token_lifetime: timedelta = DEFAULT_TOKEN_LIFETIME
    timeout_seconds: float = DEFAULT_REFRESH_TIMEOUT_SECONDS
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)

    def fetch_token(self) -> tuple[str, datetime]:
        """Run the refresh command and return (token, expiry)."""

        argv = shlex.split(self.command)
        if not argv:
            raise AuthError("No token refresh command is configured.")
        argv[0] = resolve_executable(argv[0])
        try:
            result = subprocess.run(
                argv,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise AuthError(
                f"Token refresh command timed out after {self.timeout_seconds:g}s."
            ) from exc
        except OSError as exc:
            raise AuthError(f"Token refresh command could not be started: {exc}") from exc

        if result.returncode != 0:
            details = result.stderr.strip() or "unknown error"
            raise AuthError(f"Token refresh command failed: {details}")
        token = result.stdout.strip()
        if not token:
            raise AuthError("Token refresh command returned an empty token.")
        return token, self.clock() + self.token_lifetime


class CredentialStore(ABC):
    """Base class for credential persistence; `load` and `refresh` are shared."""

    refresher: CommandTokenRefresher

    def load(self) -> Credentials:
        """Load stored credentials or raise `NotConfiguredError`."""

        stored = self.load_optional()
        if stored is None:
            raise NotConfiguredError(
                "No credentials are configured. Run `pdf-translator config` first."
            )
        return require_complete(stored, "Stored configuration")

    @abstractmethod
    def load_optional(self) -> Credentials | None:
        """Load stored credentials, returning `None` when nothing is stored."""

    @abstractmethod
    def save(self, credentials: Credentials) -> None:
        """Persist credentials, replacing any previous record."""

    def refresh(self, credentials: Credentials) -> Credentials:
        """Return `credentials` carrying a newly fetched access token."""

        token, expiry = self.refresher.fetch_token()
        return credentials.with_token(token, expiry)

    @abstractmethod
    def describe_location(self) -> str:
        """Return a human-readable storage location."""


@dataclass(slots=True)
class FileCredentialStore(CredentialStore):
    """Credential store backed by a YAML file in the per-user config directory."""

    path: Path = field(default_factory=default_credentials_path)
    refresher: CommandTokenRefresher = field(default_factory=CommandTokenRefresher)

    def load_optional(self) -> Credentials | None:
        """Read the credentials file when it exists."""

        if not self.path.exists():
            return None
        try:
            payload = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise NotConfiguredError(
                f"Credentials file `{self.path}` could not be read: {exc}"
            ) from exc
        if payload is None:
            return None
        if not isinstance(payload, Mapping):
            raise NotConfiguredError(
                f"Credentials file `{self.path}` must contain a top-level mapping."
            )
        try:
            return credentials_from_mapping(payload)
        except ValueError as exc:
            raise NotConfiguredError(f"Credentials file `{self.path}`: {exc}") from exc

    def save(self, credentials: Credentials) -> None:
        """Write credentials as YAML readable only by the current user."""

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            descriptor = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
                # An existing file keeps its old mode through os.open.
                os.chmod(self.path, 0o600)
                handle.write(yaml.safe_dump(credentials_to_mapping(credentials), sort_keys=True))
        except OSError as exc:
            raise WriteError(f"Failed to save credentials to `{self.path}`: {exc}") from exc

    def describe_location(self) -> str:
        return str(self.path)


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Credential store backed by the `keyring` package."""

    service_name: str = _DEFAULT_SERVICE_NAME
    account_name: str = _DEFAULT_ACCOUNT_NAME
    refresher: CommandTokenRefresher = field(default_factory=CommandTokenRefresher)

    def _load_keyring_module(self):
        """Return the keyring module; replaced in tests."""

        return keyring

    def is_available(self) -> bool:
        """Return whether a usable (non-failing) keyring backend is configured."""

        backend = self._load_keyring_module().get_keyring()
        return not isinstance(backend, keyring_fail.Keyring)

    def load_optional(self) -> Credentials | None:
        """Load the JSON credential record from keyring."""

        try:
            value = self._load_keyring_module().get_password(
                self.service_name, self.account_name
            )
        except KeyringError as exc:
            raise NotConfiguredError(f"Failed to read credentials from keyring: {exc}") from exc
        if normalize_optional_string(value) is None:
            return None
        try:
            payload = json.loads(value)
        except json.JSONDecodeError as exc:
            raise NotConfiguredError("Stored keyring credential record is corrupt.") from exc
        if not isinstance(payload, dict):
            raise NotConfiguredError("Stored keyring credential record is corrupt.")
        return credentials_from_mapping(payload)

    def save(self, credentials: Credentials) -> None:
        """Store the credential record in keyring."""

        module = self._load_keyring_module()
        try:
            module.set_password(
                self.service_name,
                self.account_name,
                json.dumps(credentials_to_mapping(credentials), sort_keys=True),
            )
        except KeyringError as exc:
            raise WriteError(f"Failed to store credentials in keyring: {exc}") from exc

    def describe_location(self) -> str:
        return f"keyring service `{self.service_name}`"


def create_credential_store(
    backend: str = "file",
    refresh_command: str = DEFAULT_REFRESH_COMMAND,
) -> CredentialStore:
    """Create the credential store for a backend id (`file` or `keyring`)."""

    refresher = CommandTokenRefresher(command=refresh_command)
    if backend == "file":
        return FileCredentialStore(refresher=refresher)
    if backend == "keyring":
        return KeyringCredentialStore(refresher=refresher)
    raise ValueError(f"Unsupported credential backend `{backend}`; supported: file, keyring.")


class CredentialCoordinator:
    """Share one credentials snapshot across workers with single-flight refresh.

    Every snapshot carries a generation number. A worker that saw an auth
    failure passes the generation it used to `refresh`; if the generation has
    already moved on, the newer credentials are returned without calling the
    store again. A failed refresh is remembered for its generation so waiting
    workers fail the same way instead of retrying it.
    """

    def __init__(
        self,
        store: CredentialStore,
        credentials: Credentials,
    ) -> None:
        self._store = store
        self._credentials = credentials
        self._generation = 0
        self._failed_generation: int | None = None
        self._failure: AuthError | None = None
        self._lock = threading.Lock()
        self.refresh_count = 0

    def snapshot(self) -> tuple[Credentials, int]:
        """Return the current credentials and their generation."""

        with self._lock:
            return self._credentials, self._generation

    def refresh(self, stale_generation: int) -> tuple[Credentials, int, bool]:
        """Refresh credentials unless another worker already did.

        Returns:
            (credentials, generation, issued) where `issued` tells whether this
            call performed the store refresh.

        Raises:
            AuthError: When the refresh for `stale_generation` failed.
        """

        with self._lock:
            if self._generation != stale_generation:
                return self._credentials, self._generation, False
            if self._failed_generation == stale_generation and self._failure is not None:
                raise self._failure
            self.refresh_count += 1
            try:
                refreshed = self._store.refresh(self._credentials)
            except AuthError as exc:
                self._failed_generation = stale_generation
                self._failure = exc
                raise
            self._credentials = refreshed
            self._generation += 1
            return self._credentials, self._generation, True
