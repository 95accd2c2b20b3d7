"""Execution helpers for calls to the AI backend."""

from smera.execution.parsing import parse_ai_response
from smera.execution.retry import RetryExecutor, calculate_backoff_delay, retry_with_backoff

__all__ = [
    "RetryExecutor",
    "calculate_backoff_delay",
    "parse_ai_response",
    "retry_with_backoff",
]
