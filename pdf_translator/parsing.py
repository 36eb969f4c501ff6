"""Value normalization shared by config loading and credential storage."""

from __future__ import annotations

from datetime import datetime, timezone

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


def normalize_optional_string(value: object) -> str | None:
    """Return `value` as a stripped string, or `None` when it is missing or blank."""

    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_permissive_boolean(value: object) -> bool | None:
    """Parse `true/false`, `yes/no`, `on/off`, `1/0` in any case.

    Returns `None` for anything else so callers can word their own error.
    """

    if isinstance(value, bool):
        return value
    token = normalize_optional_string(value)
    if token is None:
        return None
    lowered = token.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    return None


def parse_optional_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is given.

    Raises:
        ValueError: When a non-blank value is not a valid timestamp.
    """

    if isinstance(value, datetime):
        parsed = value
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            return None
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError as exc:
            raise ValueError(f"Invalid ISO-8601 timestamp: `{normalized}`.") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
