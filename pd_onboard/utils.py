"""Utilities: retry/backoff, request IDs, timestamps, rounding."""

from __future__ import annotations

import itertools
import math
import time
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_request_id() -> str:
    """Generate a short UUID4 hex string for X-Request-ID."""
    return uuid.uuid4().hex[:12]


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (``round`` is banker's)."""
    return int(math.floor(value + 0.5))


class RowIdGenerator:
    """Monotonic row-id source: ``<prefix>-<epoch ms>-<counter>``.

    The counter never resets for the lifetime of the generator, so ids stay
    unique even when the clock stalls or goes backwards.
    """

    def __init__(self, prefix: str = "row", clock=time.time) -> None:
        self._prefix = prefix
        self._clock = clock
        self._counter = itertools.count(1)

    def __call__(self, prefix: Optional[str] = None) -> str:
        millis = int(self._clock() * 1000)
        return f"{prefix or self._prefix}-{millis}-{next(self._counter)}"


RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def retry_with_backoff(
    fn,
    *,
    retries: int = 2,
    backoff_base: float = 0.5,
    retryable_statuses: frozenset = RETRYABLE_STATUS_CODES,
):
    """Call fn() with exponential backoff on retryable HTTP status codes.

    fn must return an httpx.Response.
    Raises the last exception if all retries are exhausted.
    """
    last_exc: Optional[Exception] = None
    for attempt in range(retries + 1):
        try:
            resp = fn()
            if resp.status_code not in retryable_statuses:
                return resp
            if attempt < retries:
                time.sleep(backoff_base * (2 ** attempt))
                continue
            return resp
        except Exception as e:
            last_exc = e
            if attempt < retries:
                time.sleep(backoff_base * (2 ** attempt))
                continue
            raise
    raise last_exc  # type: ignore[misc]
