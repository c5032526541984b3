"""Retry policy for ranking-store calls.

Backend calls are wrapped in run_with_retry, which never raises: it returns
a Success, TransientFailure or PermanentFailure outcome. Callers decide what
to do with a failure, usually by passing the outcome to unwrap().
"""

import logging
import sqlite3
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2 import errors as pg_errors

from mentormatch.config import RETRY_ATTEMPTS, RETRY_BACKOFF_SECONDS
from mentormatch.utils import BackendUnavailableError, SchemaError, TransientBackendError

logger = logging.getLogger(__name__)

TRANSIENT = "transient"
SCHEMA = "schema"
PERMANENT = "permanent"

_TRANSIENT_MARKERS = (
    "timeout",
    "timed out",
    "database is locked",
    "database table is locked",
    "connection",
    "too many requests",
    "rate limit",
    "429",
    "503",
    "service unavailable",
)

_SCHEMA_MARKERS = (
    "unknown field name",
    "no column named",
    "has no column",
    "no such column",
)


@dataclass
class Success:
    value: Any


@dataclass
class TransientFailure:
    error: Exception
    attempts: int


@dataclass
class PermanentFailure:
    error: Exception
    schema: bool = False


Outcome = Success | TransientFailure | PermanentFailure


def classify_error(exc: Exception) -> str:
    """Classify a backend exception as transient, schema or permanent.

    Args:
        exc: Exception raised by a store call.

    Returns:
        One of TRANSIENT, SCHEMA or PERMANENT.
    """
    if isinstance(exc, SchemaError):
        return SCHEMA
    if isinstance(exc, TransientBackendError | TimeoutError | ConnectionError):
        return TRANSIENT
    if isinstance(exc, pg_errors.UndefinedColumn):
        return SCHEMA
    if isinstance(exc, psycopg2.OperationalError):
        return TRANSIENT

    message = str(exc).lower()
    if any(marker in message for marker in _SCHEMA_MARKERS):
        return SCHEMA
    if isinstance(exc, sqlite3.OperationalError) or isinstance(exc, psycopg2.Error):
        if any(marker in message for marker in _TRANSIENT_MARKERS):
            return TRANSIENT
        return PERMANENT

    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if status in (429, 503):
        return TRANSIENT
    return PERMANENT


def run_with_retry(
    label: str,
    fn: Callable[[], Any],
    attempts: int = RETRY_ATTEMPTS,
    backoff: float = RETRY_BACKOFF_SECONDS,
) -> Outcome:
    """Call fn, retrying transient failures with linear backoff.

    Sleeps attempt * backoff seconds after each failed attempt
    (0.3s, then 0.6s with the defaults).

    Args:
        label: Short description used in log messages.
        fn: Zero-argument callable performing the backend call.
        attempts: Maximum number of calls.
        backoff: Base delay in seconds.

    Returns:
        Outcome of the last attempt.
    """
    for attempt in range(1, attempts + 1):
        try:
            return Success(fn())
        except Exception as e:
            kind = classify_error(e)
            if kind != TRANSIENT:
                logger.error(f"{label} failed: {e}")
                return PermanentFailure(e, schema=kind == SCHEMA)

            if attempt == attempts:
                logger.error(f"{label} failed after {attempts} attempts: {e}")
                return TransientFailure(e, attempts)

            delay = attempt * backoff
            logger.warning(f"{label} attempt {attempt} failed ({e}), retrying in {delay:.1f}s")
            time.sleep(delay)

    raise ValueError("attempts must be at least 1")


def unwrap(outcome: Outcome) -> Any:
    """Return a successful value or raise the matching error.

    Raises:
        BackendUnavailableError: Transient failure persisted after all retries.
        SchemaError: The store rejected a field name.
        Exception: Any other permanent failure, re-raised unchanged.
    """
    if isinstance(outcome, Success):
        return outcome.value
    if isinstance(outcome, TransientFailure):
        raise BackendUnavailableError(
            f"Ranking store unavailable after {outcome.attempts} attempts: {outcome.error}"
        ) from outcome.error
    if outcome.schema:
        raise SchemaError(f"Ranking store schema mismatch: {outcome.error}") from outcome.error
    raise outcome.error
