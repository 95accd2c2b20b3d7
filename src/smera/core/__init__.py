"""Core domain models, configuration and error taxonomy."""

from smera.core.config import (
    ApiConfig,
    LogConfig,
    QueueConfig,
    RetryConfig,
    SmeraConfig,
    SyncConfig,
)
from smera.core.errors import AIError, ClassifiedError, ErrorClassifier, ErrorKind
from smera.core.models import (
    OfflineOperation,
    QueuedOperation,
    Task,
    TaskDraft,
    TaskPatch,
    TaskUpdateDraft,
)

__all__ = [
    "AIError",
    "ApiConfig",
    "ClassifiedError",
    "ErrorClassifier",
    "ErrorKind",
    "LogConfig",
    "OfflineOperation",
    "QueueConfig",
    "QueuedOperation",
    "RetryConfig",
    "SmeraConfig",
    "SyncConfig",
    "Task",
    "TaskDraft",
    "TaskPatch",
    "TaskUpdateDraft",
]
