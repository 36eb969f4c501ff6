"""Google Cloud Translation (v2) HTTP client.

Responsibilities:
- Send one translation request per segment to the v2 REST endpoint.
- Classify every failure into the auth/rate-limit/transient/permanent taxonomy.
- Redact secrets from provider messages before they reach diagnostics.
"""

from __future__ import annotations

import json
import re
import socket
from typing import Any

import requests

from ..errors import (
    AuthError,
    PermanentError,
    RateLimitError,
    TransientError,
    TranslationError,
)
from ..models.datatypes import Credentials
from .rate_limiter import RateLimiter

GOOGLE_TRANSLATE_ENDPOINT = "https://translation.googleapis.com/language/translate/v2"

_RATE_LIMIT_REASONS = frozenset(
    {"ratelimitexceeded", "userratelimitexceeded", "quotaexceeded", "resource_exhausted"}
)
_AUTH_STATUSES = frozenset({"unauthenticated"})


class GoogleTranslateClient:
    """Minimal requests-based client for `translate/v2`."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        endpoint: str = GOOGLE_TRANSLATE_ENDPOINT,
        timeout_seconds: float = 30.0,
        rate_limiter: RateLimiter | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize HTTP settings."""

        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self._session = session

    def translate(
        self,
        segment_text: str,
        source_lang: str,
        target_lang: str,
        credentials: Credentials,
    ) -> str:
        """Translate one segment and return the translated text."""

        payload = {
            "q": segment_text,
            "source": source_lang,
            "target": target_lang,
            "format": "text",
            "key": credentials.api_key,
        }
        headers = {
            "Authorization": f"Bearer {credentials.access_token}",
            "Content-Type": "application/json; charset=utf-8",
        }
        if credentials.project_id:
            headers["x-goog-user-project"] = credentials.project_id

        self.rate_limiter.acquire(f"google:translate:{source_lang}:{target_lang}")
        try:
            post = self._session.post if self._session is not None else requests.post
            response = post(
                self.endpoint,
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            body = bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_translation_error(exc) from exc
        except requests.RequestException as exc:
            if self._is_timeout(exc):
                raise TransientError("Translation request timed out.") from exc
            raise TransientError(
                f"Translation request transport error: {self._short_message(str(exc))}"
            ) from exc
        except (TimeoutError, socket.timeout) as exc:
            raise TransientError("Translation request timed out.") from exc

        return self._extract_translated_text(body)

    @staticmethod
    def _is_timeout(reason: object) -> bool:
        return isinstance(reason, (TimeoutError, socket.timeout, requests.Timeout))

    @classmethod
    def _extract_translated_text(cls, body: bytes) -> str:
        """Extract `data.translations[0].translatedText` from a success body."""

        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise TransientError("Translation service returned invalid JSON payload.") from exc

        data = payload.get("data") if isinstance(payload, dict) else None
        translations = data.get("translations") if isinstance(data, dict) else None
        if not isinstance(translations, list) or not translations:
            raise TransientError("Translation response missing non-empty `translations` list.")
        first = translations[0]
        text = first.get("translatedText") if isinstance(first, dict) else None
        if not isinstance(text, str):
            raise TransientError("Translation response missing `translatedText`.")
        return text

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        return bytes(response.content).decode("utf-8", errors="replace").strip()

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like and bearer tokens from provider error content."""

        redacted = re.sub(r"\bAIza[0-9A-Za-z_-]{20,}\b", "[redacted-key]", text)
        redacted = re.sub(r"\bya29\.[0-9A-Za-z._-]+", "[redacted-token]", redacted)
        redacted = re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )
        return redacted

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize, redact, and cap user-facing provider message length."""

        compact = " ".join(cls._redact_sensitive_tokens(text).split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _parse_error_payload(cls, body: str) -> tuple[str, str, set[str]]:
        """Return (message, status, reasons) from a Google error envelope."""

        if not body:
            return "", "", set()
        try:
            payload: Any = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(body), "", set()

        error = payload.get("error") if isinstance(payload, dict) else None
        if not isinstance(error, dict):
            return cls._short_message(body), "", set()

        message = error.get("message")
        status = error.get("status")
        reasons: set[str] = set()
        details = error.get("errors")
        if isinstance(details, list):
            for item in details:
                if isinstance(item, dict) and isinstance(item.get("reason"), str):
                    reasons.add(item["reason"].lower())
        return (
            cls._short_message(message) if isinstance(message, str) else "",
            status.lower() if isinstance(status, str) else "",
            reasons,
        )

    @classmethod
    def classify(cls, status_code: int, status: str, reasons: set[str]) -> type[TranslationError]:
        """Map an HTTP failure onto the translation error taxonomy."""

        if status_code == 401 or status in _AUTH_STATUSES:
            return AuthError
        if status_code == 429 or (
            status_code == 403 and (reasons & _RATE_LIMIT_REASONS or status in _RATE_LIMIT_REASONS)
        ):
            return RateLimitError
        if status_code == 408 or status_code >= 500:
            return TransientError
        return PermanentError

    @classmethod
    def _http_error_to_translation_error(cls, exc: requests.HTTPError) -> TranslationError:
        """Convert HTTP errors into classified translation errors."""

        status_code = exc.response.status_code if exc.response is not None else 0
        message, status, reasons = cls._parse_error_payload(cls._decode_error_body(exc))
        error_type = cls.classify(status_code, status, reasons)

        headline = {
            AuthError: "Translation service rejected the access token",
            RateLimitError: "Translation service is throttling requests",
            TransientError: "Translation service is temporarily unavailable",
        }.get(error_type, "Translation service rejected the request")
        if message:
            detail = f"{headline} (HTTP {status_code}): {message}"
        else:
            detail = f"{headline} (HTTP {status_code})."
        return error_type(detail, status_code=status_code)
