"""
Retry logic with exponential backoff for SQLite lock contention.

Only read paths are wrapped. A write that fails is reported to the caller
as-is: the trustee never re-applies a grant, unlock or revoke on its own.
"""

import sqlite3
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from vesting_trustee.kernel.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def retry_on_sqlite_lock(
    max_attempts: int = 3,
    min_wait_ms: int = 100,
    max_wait_ms: int = 1000,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry decorator for SQLite lock contention (OperationalError).

    SQLite uses file-based locking and can report "database is locked"
    while another process holds the write lock. Reads are safe to repeat,
    so they are retried with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts (default: 3)
        min_wait_ms: Minimum wait time in milliseconds (default: 100)
        max_wait_ms: Maximum wait time in milliseconds (default: 1000)

    Returns:
        Decorated function that retries on sqlite3.OperationalError

    Example:
        @retry_on_sqlite_lock()
        def load_stream(self, stream_id):
            ...
    """
    return retry(
        retry=retry_if_exception_type(sqlite3.OperationalError),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=min_wait_ms / 1000.0,
            max=max_wait_ms / 1000.0,
        ),
        before_sleep=lambda retry_state: logger.warning(
            "SQLite lock detected, retrying",
            attempt=retry_state.attempt_number,
            exception=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        ),
        reraise=True,
    )


def retry_projection_rebuild(
    max_attempts: int = 3,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry decorator for replaying the event log into projections.

    A rebuild only reads, so lock contention and transient I/O errors are
    retried with a longer backoff than single reads.
    """
    return retry(
        retry=retry_if_exception_type((sqlite3.OperationalError, OSError)),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=0.5, max=5.0),
        before_sleep=lambda retry_state: logger.warning(
            "Projection rebuild failed, retrying",
            attempt=retry_state.attempt_number,
            exception=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        ),
        reraise=True,
    )
