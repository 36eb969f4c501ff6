"""Configuration model and loaders for PDF Translator.

Responsibilities:
- Define run settings as a typed dataclass with validation.
- Load settings from YAML files and `PDF_TRANSLATOR_*` environment variables.
- Resolve credentials with deterministic CLI > store > env precedence.

Key types:
- `TranslatorConfig`: normalized settings for one translation run.
- `RuntimeConfigSources`: value sources for credential precedence.
- `ConfigLoader`: static construction helpers for `TranslatorConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .credentials import DEFAULT_REFRESH_COMMAND
from .io.output_writer import DEFAULT_OUTPUT_SUFFIX
from .languages import is_supported
from .models.datatypes import Credentials
from .parsing import normalize_optional_string, parse_permissive_boolean
from .translation.google_client import GOOGLE_TRANSLATE_ENDPOINT

_SUPPORTED_CREDENTIAL_BACKENDS = frozenset({"file", "keyring"})
_CREDENTIAL_ENV_KEYS = {
    "api_key": "PDF_TRANSLATOR_API_KEY",
    "access_token": "PDF_TRANSLATOR_ACCESS_TOKEN",
    "project_id": "PDF_TRANSLATOR_PROJECT_ID",
}


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic credential precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from the credential store.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)

    def resolve_credentials(self) -> Credentials:
        """Resolve each credential field as `cli` > `secure` > `env` > blank."""

        values: dict[str, str] = {}
        for key, env_key in _CREDENTIAL_ENV_KEYS.items():
            resolved = (
                _normalized_lookup(self.cli, key)
                or _normalized_lookup(self.secure, key)
                or _normalized_lookup(self.env, env_key)
            )
            values[key] = resolved or ""
        return Credentials(**values)


def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
    """Return a stripped mapping value for a key or `None` when missing/blank."""

    if key not in mapping:
        return None
    return normalize_optional_string(mapping.get(key))


@dataclass(slots=True)
class TranslatorConfig:
    """Settings for one translation run.

    Attributes:
        input_pdf: Path to the source PDF (may be unset until the CLI provides it).
        source_language: Source language code.
        target_language: Target language code.
        max_segment_bytes: Upper bound for one request's text, in UTF-8 bytes.
        concurrency: Number of segments translated in parallel.
        max_attempts: Attempts per segment before it is marked failed.
        retry_base_delay_seconds: First backoff delay.
        retry_max_delay_seconds: Backoff ceiling.
        request_timeout_seconds: HTTP timeout for one request.
        min_request_interval_seconds: Minimum spacing between request starts.
        best_effort: Write output even when some segments fail.
        output_suffix: Suffix of the sibling output file.
        endpoint: Translation service URL.
        refresh_command: Command printing a fresh access token.
        credential_backend: `file` or `keyring`.
    """

    input_pdf: Path | None = None
    source_language: str = "en"
    target_language: str = "sv"
    max_segment_bytes: int = 5000
    concurrency: int = 4
    max_attempts: int = 5
    retry_base_delay_seconds: float = 0.5
    retry_max_delay_seconds: float = 30.0
    request_timeout_seconds: float = 30.0
    min_request_interval_seconds: float = 0.0
    best_effort: bool = False
    output_suffix: str = DEFAULT_OUTPUT_SUFFIX
    endpoint: str = GOOGLE_TRANSLATE_ENDPOINT
    refresh_command: str = DEFAULT_REFRESH_COMMAND
    credential_backend: str = "file"

    def validate(self) -> None:
        """Validate settings before a run."""

        for field_name in ("source_language", "target_language"):
            code = getattr(self, field_name)
            if not isinstance(code, str) or not is_supported(code):
                raise ValueError(
                    f"`{field_name}` value `{code}` is not a supported language code; "
                    "run `pdf-translator languages` for the list."
                )
        if self.max_segment_bytes < 1:
            raise ValueError("`max_segment_bytes` must be a positive integer.")
        if self.concurrency < 1:
            raise ValueError("`concurrency` must be a positive integer.")
        if self.max_attempts < 1:
            raise ValueError("`max_attempts` must be a positive integer.")
        if self.retry_base_delay_seconds < 0 or self.retry_max_delay_seconds < 0:
            raise ValueError("Retry delays must not be negative.")
        if self.request_timeout_seconds <= 0:
            raise ValueError("`request_timeout_seconds` must be positive.")
        if self.min_request_interval_seconds < 0:
            raise ValueError("`min_request_interval_seconds` must not be negative.")
        if not self.output_suffix.strip():
            raise ValueError("`output_suffix` must be a non-empty string.")
        if self.credential_backend not in _SUPPORTED_CREDENTIAL_BACKENDS:
            supported = ", ".join(sorted(_SUPPORTED_CREDENTIAL_BACKENDS))
            raise ValueError(
                f"Unsupported `credential_backend` value `{self.credential_backend}`; "
                f"supported: {supported}."
            )

    def with_overrides(self, **overrides: Any) -> TranslatorConfig:
        """Return a validated copy with non-`None` overrides applied."""

        updated = replace(
            self, **{key: value for key, value in overrides.items() if value is not None}
        )
        updated.validate()
        return updated


class ConfigLoader:
    """Factory methods for creating `TranslatorConfig` from external sources."""

    _PATH_KEYS = frozenset({"input_pdf"})
    _INT_KEYS = frozenset({"max_segment_bytes", "concurrency", "max_attempts"})
    _FLOAT_KEYS = frozenset(
        {
            "retry_base_delay_seconds",
            "retry_max_delay_seconds",
            "request_timeout_seconds",
            "min_request_interval_seconds",
        }
    )
    _BOOL_KEYS = frozenset({"best_effort"})
    _SUPPORTED_KEYS = frozenset(item.name for item in fields(TranslatorConfig))
    _ENV_PREFIX = "PDF_TRANSLATOR_"

    @staticmethod
    def from_yaml(path: Path) -> TranslatorConfig:
        """Create a validated config from a YAML file."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> TranslatorConfig:
        """Create a validated config from `PDF_TRANSLATOR_<FIELD>` variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, str] = {}
        for key in ConfigLoader._SUPPORTED_KEYS:
            env_key = f"{ConfigLoader._ENV_PREFIX}{key.upper()}"
            value = normalize_optional_string(env_map.get(env_key))
            if value is not None:
                payload[key] = value
        return ConfigLoader._build_config_from_mapping(payload, source_label="Environment")

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> TranslatorConfig:
        """Build a validated config from a normalized mapping payload."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_KEYS))
        if unknown:
            raise ValueError(
                f"{source_label} includes unsupported key(s): {', '.join(unknown)}."
            )

        values: dict[str, Any] = {}
        for key, raw_value in payload.items():
            if key in ConfigLoader._PATH_KEYS:
                text = normalize_optional_string(raw_value)
                if text is not None:
                    values[key] = Path(text)
            elif key in ConfigLoader._INT_KEYS:
                values[key] = ConfigLoader._positive_int(raw_value, key, source_label)
            elif key in ConfigLoader._FLOAT_KEYS:
                values[key] = ConfigLoader._non_negative_float(raw_value, key, source_label)
            elif key in ConfigLoader._BOOL_KEYS:
                parsed = parse_permissive_boolean(raw_value)
                if parsed is None:
                    raise ValueError(
                        f"{source_label} field `{key}` must be a boolean value "
                        "(`true`/`false`, `1`/`0`, `yes`/`no`)."
                    )
                values[key] = parsed
            else:
                text = normalize_optional_string(raw_value)
                if text is None:
                    raise ValueError(f"{source_label} field `{key}` must not be blank.")
                values[key] = text

        config = TranslatorConfig(**values)
        config.validate()
        return config

    @staticmethod
    def _positive_int(raw_value: object, key: str, source_label: str) -> int:
        """Parse and validate a positive integer field."""

        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.")
        try:
            parsed = int(str(raw_value).strip()) if not isinstance(raw_value, int) else raw_value
        except ValueError as exc:
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.") from exc
        if parsed <= 0:
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.")
        return parsed

    @staticmethod
    def _non_negative_float(raw_value: object, key: str, source_label: str) -> float:
        """Parse and validate a non-negative number field."""

        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a number.")
        try:
            parsed = float(str(raw_value).strip())
        except ValueError as exc:
            raise ValueError(f"{source_label} field `{key}` must be a number.") from exc
        if parsed < 0:
            raise ValueError(f"{source_label} field `{key}` must not be negative.")
        return parsed
