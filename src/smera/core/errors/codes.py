"""Error kinds, default retry behavior and user-facing messages.

Error Kind Taxonomy
===================

| Kind | Retriable | Typical source |
|------|-----------|----------------|
| network | Yes | connection refused/reset, DNS, "fetch failed" |
| timeout | Yes | attempt exceeded its timeout |
| rate_limit | Yes | HTTP 429, "too many requests" |
| server | Yes | HTTP 5xx, "service unavailable" |
| invalid_input | No | bad request, invalid/missing API key, 401/403 |
| unknown | No | anything unrecognized |

Callers show ``get_user_friendly_message(kind)`` instead of the raw error.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """High-level failure kinds that drive retry decisions."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    INVALID_INPUT = "invalid_input"
    SERVER = "server"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        """Default retryability of this kind."""
        return self in _RETRYABLE_KINDS


_RETRYABLE_KINDS = frozenset({
    ErrorKind.NETWORK,
    ErrorKind.TIMEOUT,
    ErrorKind.RATE_LIMIT,
    ErrorKind.SERVER,
})


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: "Connection problem. Check your network and try again.",
    ErrorKind.RATE_LIMIT: "The service is busy. Please try again shortly.",
    ErrorKind.TIMEOUT: "The request took too long. Please try again.",
    ErrorKind.INVALID_INPUT: "Please check your input or credentials.",
    ErrorKind.SERVER: "The service is temporarily unavailable. Please try again in a few moments.",
    ErrorKind.UNKNOWN: "An unexpected error occurred. Please try again.",
}


def get_user_friendly_message(kind: ErrorKind) -> str:
    """Map an error kind to the message shown to end users."""
    return USER_MESSAGES.get(kind, USER_MESSAGES[ErrorKind.UNKNOWN])


def kind_for_status(status_code: int) -> ErrorKind | None:
    """Classify an HTTP status code, or None when it carries no signal."""
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    if 500 <= status_code <= 599:
        return ErrorKind.SERVER
    if status_code == 408:
        return ErrorKind.TIMEOUT
    if status_code in (400, 401, 403, 404, 409, 422):
        return ErrorKind.INVALID_INPUT
    return None
