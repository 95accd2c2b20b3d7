"""ErrorClassifier: turns raw failures into ClassifiedError instances.

Classification is decided once, where a failure is first observed.
Errors that already carry a kind (``AIError``, ``BackendError``) keep it;
exception types and numeric statuses come next; message keywords are the
last resort and are checked in a fixed order (timeout, rate limit,
server, network, invalid input).
"""

from __future__ import annotations

import re

import httpx

from smera.core.logging import get_logger

from .codes import ErrorKind, kind_for_status
from .exceptions import AIError, BackendError
from .models import ClassifiedError

_logger = get_logger("errors")


# =============================================================================
# Default message patterns, in evaluation order.
# =============================================================================

_DEFAULT_TIMEOUT_PATTERNS: list[str] = [
    r"timeout",
    r"timed.?out",
    r"deadline.?exceeded",
]

_DEFAULT_RATE_LIMIT_PATTERNS: list[str] = [
    r"\b429\b",
    r"too many requests",
    r"rate.?limit",
]

_DEFAULT_SERVER_PATTERNS: list[str] = [
    r"\b5\d{2}\b",
    r"unavailable",
    r"internal server error",
    r"bad gateway",
    r"overloaded",
]

_DEFAULT_NETWORK_PATTERNS: list[str] = [
    r"network",
    r"fetch failed",
    r"connection.?(reset|refused|aborted|closed|error|lost)",
    r"ECONNRESET",
    r"ECONNREFUSED",
    r"ENOTFOUND",
    r"socket hang up",
    r"getaddrinfo",
]

_DEFAULT_INVALID_INPUT_PATTERNS: list[str] = [
    r"api.?key",
    r"invalid",
    r"\b401\b",
    r"\b403\b",
    r"\b400\b",
    r"unauthori[sz]ed",
    r"forbidden",
    r"authentication",
    r"bad request",
]


def _combine(patterns: list[str]) -> re.Pattern[str]:
    """Merge a pattern list into one case-insensitive alternation."""
    return re.compile("|".join(f"(?:{p})" for p in patterns), re.IGNORECASE)


def _describe(error: BaseException) -> str:
    text = str(error).strip()
    return text or type(error).__name__


def _extract_status(error: BaseException) -> int | None:
    """Pull a numeric HTTP-style status off an exception, if it has one."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


class ErrorClassifier:
    """Classifies failures by tag, type, status and message keywords."""

    def __init__(
        self,
        timeout_patterns: list[str] | None = None,
        rate_limit_patterns: list[str] | None = None,
        server_patterns: list[str] | None = None,
        network_patterns: list[str] | None = None,
        invalid_input_patterns: list[str] | None = None,
    ) -> None:
        self._rules: list[tuple[ErrorKind, re.Pattern[str]]] = [
            (ErrorKind.TIMEOUT, _combine(timeout_patterns or _DEFAULT_TIMEOUT_PATTERNS)),
            (ErrorKind.RATE_LIMIT, _combine(rate_limit_patterns or _DEFAULT_RATE_LIMIT_PATTERNS)),
            (ErrorKind.SERVER, _combine(server_patterns or _DEFAULT_SERVER_PATTERNS)),
            (ErrorKind.NETWORK, _combine(network_patterns or _DEFAULT_NETWORK_PATTERNS)),
            (
                ErrorKind.INVALID_INPUT,
                _combine(invalid_input_patterns or _DEFAULT_INVALID_INPUT_PATTERNS),
            ),
        ]

    def classify_message(self, text: str) -> ErrorKind:
        """Classify free text using the keyword rules only."""
        for kind, pattern in self._rules:
            if pattern.search(text):
                return kind
        return ErrorKind.UNKNOWN

    def classify(self, error: BaseException | str) -> ClassifiedError:
        """Classify a raw failure.

        Args:
            error: The exception raised by an operation, or a bare message.

        Returns:
            ClassifiedError with the kind and its default retryability.
        """
        if isinstance(error, str):
            kind = self.classify_message(error)
            return ClassifiedError(kind=kind, message=error, retryable=kind.retryable)

        if isinstance(error, AIError):
            return ClassifiedError(
                kind=error.kind,
                message=error.message,
                retryable=error.retryable,
                original_error=error.original_error or error,
            )

        message = _describe(error)
        status = _extract_status(error)

        if isinstance(error, BackendError):
            kind = error.kind
        elif isinstance(error, (TimeoutError, httpx.TimeoutException)):
            kind = ErrorKind.TIMEOUT
        elif isinstance(error, (ConnectionError, httpx.TransportError)):
            kind = ErrorKind.NETWORK
        else:
            kind = (kind_for_status(status) if status is not None else None) or (
                self.classify_message(message)
            )

        classified = ClassifiedError(
            kind=kind,
            message=message,
            retryable=kind.retryable,
            original_error=error,
            status_code=status,
        )
        _logger.debug("error_classified", **classified.to_dict())
        return classified


__all__ = ["ErrorClassifier"]
