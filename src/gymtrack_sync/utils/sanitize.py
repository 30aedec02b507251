"""
Sanitizing utilities for documents coming from the remote store.

Remote documents are untrusted: strings may carry stray whitespace or control
characters, credentials must never reach local storage, and timestamps arrive
in several representations. ``sanitize_document`` normalizes all of that into
plain JSON-safe data with canonical UTC ISO-8601 timestamp strings.
"""

import re
from datetime import datetime, timezone
from typing import Any

# A key is dropped when one of its word segments is a credential word
SENSITIVE_SEGMENTS = frozenset(
    {"password", "passwd", "token", "tokens", "secret", "secrets", "credential", "credentials", "apikey"}
)

# Only sensitive as the leading segment ("authToken", not "useBiometricAuth")
SENSITIVE_LEADING_SEGMENTS = frozenset({"auth", "authorization", "oauth", "oauth2"})

_KEY_SEGMENT = re.compile(r"[A-Z]?[a-z0-9]+|[A-Z]+(?![a-z])")

# Fields where a bare number is an epoch timestamp
TIMESTAMP_FIELDS = frozenset(
    {
        "createdAt",
        "updatedAt",
        "deletedAt",
        "sentAt",
        "joinDate",
        "lastActive",
        "lastSyncedAt",
    }
)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")

# Epoch values above this are milliseconds
_MILLISECOND_THRESHOLD = 1e11


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as a canonical UTC ISO-8601 string.

    Naive datetimes are taken to be UTC.

    Example:
        ```python
        format_timestamp(datetime(2024, 1, 1, tzinfo=timezone.utc))
        # "2024-01-01T00:00:00.000Z"
        ```
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse any supported timestamp representation.

    Returns:
        An aware UTC datetime, or None if the value is not a timestamp
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            return datetime.fromtimestamp(seconds + (nanos or 0) / 1e9, tz=timezone.utc)
        return None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        epoch = value / 1000 if value > _MILLISECOND_THRESHOLD else value
        return datetime.fromtimestamp(epoch, tz=timezone.utc)

    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return None


def key_segments(key: str) -> list[str]:
    """Split a camelCase, snake_case or kebab-case key into lower-case words."""
    return [segment.lower() for segment in _KEY_SEGMENT.findall(key)]


def is_sensitive_key(key: str) -> bool:
    """Check whether a key names a credential-like field.

    Matching works on whole word segments, so ``apiKey``, ``api_key``,
    ``authToken`` and ``password`` are sensitive while settings such as
    ``useBiometricAuth`` are not.
    """
    segments = key_segments(key)
    if not segments:
        return False
    if segments[0] in SENSITIVE_LEADING_SEGMENTS:
        return True
    if any(segment in SENSITIVE_SEGMENTS for segment in segments):
        return True
    return any(pair == ("api", "key") for pair in zip(segments, segments[1:]))


def _is_timestamp_map(value: dict[str, Any]) -> bool:
    keys = set(value)
    return keys in ({"seconds", "nanoseconds"}, {"_seconds", "_nanoseconds"})


def sanitize_string(value: str) -> str:
    """Trim whitespace and remove control characters."""
    return _CONTROL_CHARS.sub("", value).strip()


def sanitize_document(value: Any, field_name: str | None = None) -> Any:
    """Recursively sanitize an untrusted document.

    Args:
        value: A document, list or scalar
        field_name: Name of the field holding ``value`` (used to recognize
            epoch-number timestamps)

    Returns:
        A sanitized copy; applying the function twice gives the same result
    """
    if isinstance(value, datetime):
        return format_timestamp(value)

    if isinstance(value, dict):
        if _is_timestamp_map(value):
            parsed = parse_timestamp(value)
            return format_timestamp(parsed) if parsed else value
        return {
            key: sanitize_document(item, key)
            for key, item in value.items()
            if not (isinstance(key, str) and is_sensitive_key(key))
        }

    if isinstance(value, (list, tuple)):
        return [sanitize_document(item) for item in value]

    if isinstance(value, str):
        return sanitize_string(value)

    if field_name in TIMESTAMP_FIELDS and isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_timestamp(parse_timestamp(value))

    return value
