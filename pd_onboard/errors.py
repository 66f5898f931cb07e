"""Structured exceptions for pd-onboard."""

from __future__ import annotations

from typing import Any, Optional


class OnboardError(Exception):
    """Base error for all pd-onboard operations."""


class FetchError(OnboardError):
    """A directory page request failed.

    ``status_code`` is 0 when no HTTP response was received (network error,
    timeout, undecodable body).
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        detail: Any = None,
        request_id: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.detail = detail
        self.request_id = request_id
        super().__init__(f"[{status_code}] {message}")


class AuthError(FetchError):
    """401 Unauthorized: missing or invalid API token."""
    pass


class ForbiddenError(FetchError):
    """403 Forbidden: token lacks access to the resource."""
    pass


class NotFoundError(FetchError):
    """404 Not Found."""
    pass


class RateLimitError(FetchError):
    """429 Too Many Requests."""
    pass


class ServerError(FetchError):
    """500+: server-side error."""
    pass


class CodecError(OnboardError):
    """Spreadsheet bytes could not be decoded or rows could not be encoded."""


class LoadError(OnboardError):
    """Spreadsheet bytes could not be parsed into the row schema."""


class SaveError(OnboardError):
    """Serialization or write of the working set failed."""


class ConfigError(OnboardError):
    """Invalid or missing configuration."""
