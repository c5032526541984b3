"""Shared utilities for mentormatch."""

import re
from datetime import UTC, datetime

from mentormatch.config import MAX_TAGS


class MentorMatchError(Exception):
    """Base class for errors surfaced to callers of the ranking engine."""

    status_code = 500


class RankingValidationError(MentorMatchError):
    """Raised for bad input: missing seeker id or a malformed factor order."""

    status_code = 400


class TransientBackendError(MentorMatchError):
    """Raised by the store for timeouts and rate limiting. Safe to retry."""

    status_code = 503


class BackendUnavailableError(MentorMatchError):
    """Raised when a transient backend failure persists after all retries."""

    status_code = 503


class SchemaError(MentorMatchError):
    """Raised when the store rejects a field name. Not retryable."""

    status_code = 422


_TAG_SEPARATORS = re.compile(r"[,;]+")


def normalize_tags(raw: str | list | None, limit: int = MAX_TAGS) -> list[str]:
    """Normalize free-text tags into a deduplicated, capped list.

    Accepts a single comma/semicolon separated string or a (possibly nested)
    list of strings. Duplicates are detected case-insensitively and the
    first spelling is kept.

    Args:
        raw: Raw tag value from a profile record.
        limit: Maximum number of tags to keep.

    Returns:
        List of cleaned tag labels in their original order.
    """
    if not raw:
        return []

    values = raw if isinstance(raw, list | tuple | set) else [raw]

    labels: list[str] = []
    for value in values:
        if isinstance(value, list | tuple | set):
            labels.extend(normalize_tags(list(value), limit=limit))
            continue
        if value is None:
            continue
        labels.extend(part.strip() for part in _TAG_SEPARATORS.split(str(value)))

    seen: set[str] = set()
    result: list[str] = []
    for label in labels:
        key = label.lower()
        if not label or key in seen:
            continue
        seen.add(key)
        result.append(label)

    return result[:limit]


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)
