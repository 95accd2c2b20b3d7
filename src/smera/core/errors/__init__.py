"""Error classification and exception types."""

from smera.core.errors.codes import (
    USER_MESSAGES,
    ErrorKind,
    get_user_friendly_message,
    kind_for_status,
)
from smera.core.errors.exceptions import (
    AIError,
    BackendConnectionError,
    BackendError,
    BackendResponseError,
    BackendTimeoutError,
    OperationNotFoundError,
    QueueError,
    StoreUnavailableError,
)
from smera.core.errors.models import ClassifiedError
from smera.core.errors.classifier import ErrorClassifier

__all__ = [
    "USER_MESSAGES",
    "AIError",
    "BackendConnectionError",
    "BackendError",
    "BackendResponseError",
    "BackendTimeoutError",
    "ClassifiedError",
    "ErrorClassifier",
    "ErrorKind",
    "OperationNotFoundError",
    "QueueError",
    "StoreUnavailableError",
    "get_user_friendly_message",
    "kind_for_status",
]
