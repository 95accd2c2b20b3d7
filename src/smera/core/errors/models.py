"""Data models for error classification."""

from __future__ import annotations

from dataclasses import dataclass

from .codes import ErrorKind, get_user_friendly_message


@dataclass
class ClassifiedError:
    """A raw failure normalized to a kind and a retry decision.

    Attributes:
        kind: Classified error kind.
        message: Description of the underlying failure.
        retryable: Whether another attempt may succeed.
        original_error: The exception that was classified, if any.
        status_code: HTTP-style status observed on the failure, if any.
    """

    kind: ErrorKind
    message: str
    retryable: bool
    original_error: BaseException | None = None
    status_code: int | None = None

    @property
    def user_message(self) -> str:
        return get_user_friendly_message(self.kind)

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for logging."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            "status_code": self.status_code,
        }
