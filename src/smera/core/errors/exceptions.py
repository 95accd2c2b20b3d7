"""Exception hierarchy for Smera.

Three flat families:

- ``AIError``: raised by the retry executor, carries the classified kind.
- ``QueueError``: offline queue and queue-store failures.
- ``BackendError``: task-write API failures, tagged with a kind at the
  HTTP boundary so nothing downstream re-parses their messages.
"""

from __future__ import annotations

from .codes import ErrorKind, get_user_friendly_message, kind_for_status
from .models import ClassifiedError


class AIError(Exception):
    """Typed failure of an operation run through the retry executor.

    Attributes:
        kind: Classified error kind.
        message: Description of the final underlying failure.
        retryable: Whether the kind is transient. Stays True on exhaustion.
        attempts: Number of attempts made before raising.
        exhausted: True when every allowed attempt failed.
        original_error: The last underlying exception.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        retryable: bool = False,
        attempts: int = 1,
        exhausted: bool = False,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.retryable = retryable
        self.attempts = attempts
        self.exhausted = exhausted
        self.original_error = original_error

    @classmethod
    def from_classified(
        cls,
        error: ClassifiedError,
        *,
        attempts: int,
        exhausted: bool = False,
        message: str | None = None,
    ) -> AIError:
        return cls(
            error.kind,
            message or error.message,
            retryable=error.retryable,
            attempts=attempts,
            exhausted=exhausted,
            original_error=error.original_error,
        )

    @property
    def user_message(self) -> str:
        return get_user_friendly_message(self.kind)

    def __repr__(self) -> str:
        return (
            f"AIError(kind={self.kind.value!r}, retryable={self.retryable}, "
            f"attempts={self.attempts}, message={self.message!r})"
        )


class QueueError(Exception):
    """Base exception for offline queue failures."""


class StoreUnavailableError(QueueError):
    """Raised when the persistent queue store cannot be opened, read or written.

    Callers must treat this like an unrecoverable write failure: there is
    no fallback persistence.
    """


class OperationNotFoundError(QueueError):
    """Raised when a queued operation id is not present in the store."""

    def __init__(self, operation_id: str) -> None:
        super().__init__(f"Queued operation not found: {operation_id}")
        self.operation_id = operation_id


class BackendError(Exception):
    """Base exception for task-write API failures."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class BackendConnectionError(BackendError):
    """The task API could not be reached."""

    kind = ErrorKind.NETWORK


class BackendTimeoutError(BackendError):
    """The task API did not answer in time."""

    kind = ErrorKind.TIMEOUT


class BackendResponseError(BackendError):
    """The task API answered with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.kind = kind_for_status(status_code) or ErrorKind.UNKNOWN
