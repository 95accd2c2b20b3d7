"""Retry executor: exponential backoff with jitter and per-attempt timeouts.

Wraps a zero-argument coroutine factory (typically an AI API call) and
runs it up to ``max_retries + 1`` times:

- each attempt is bounded by ``timeout_seconds``; exceeding it counts as
  a timeout failure and is retried like any transient failure;
- every failure is classified once by ``ErrorClassifier``;
- non-retryable kinds raise ``AIError`` immediately, without sleeping;
- retryable kinds sleep ``min(max_delay, initial * multiplier ** (n - 1))``
  times a uniform factor in [0.8, 1.2] before retry n;
- after the last retryable failure, ``AIError(exhausted=True)`` is raised.

Cancelling the awaiting task cancels the in-flight attempt or backoff
sleep; ``asyncio.CancelledError`` is never classified or retried.

Example usage:
    from smera.execution.retry import retry_with_backoff

    summary = await retry_with_backoff(
        lambda: client.generate(prompt),
        RetryConfig(max_retries=2, initial_delay_seconds=0.5),
        "generate_description",
    )
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from smera.core.config import RetryConfig
from smera.core.constants import JITTER_MAX_FACTOR, JITTER_MIN_FACTOR
from smera.core.errors import AIError, ClassifiedError, ErrorClassifier, ErrorKind
from smera.core.logging import get_logger

_logger = get_logger("retry")

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
SleepFunc = Callable[[float], Awaitable[None]]


def calculate_backoff_delay(
    retry_number: int,
    config: RetryConfig,
    rng: random.Random | None = None,
) -> float:
    """Delay in seconds before retry ``retry_number`` (1-based).

    Args:
        retry_number: 1 for the first retry (second attempt), 2 for the next...
        config: Retry settings.
        rng: Random source for jitter. Uses the module RNG when omitted.

    Returns:
        Jittered delay in seconds.
    """
    if retry_number < 1:
        raise ValueError(f"retry_number must be >= 1, got {retry_number}")
    base = min(
        config.max_delay_seconds,
        config.initial_delay_seconds * config.backoff_multiplier ** (retry_number - 1),
    )
    factor = (rng or random).uniform(JITTER_MIN_FACTOR, JITTER_MAX_FACTOR)
    return base * factor


class RetryExecutor:
    """Runs operations with classification, timeouts and backoff.

    Stateless between calls: the executor only holds its defaults and
    collaborators, so one instance can be shared by concurrent callers.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        classifier: ErrorClassifier | None = None,
        sleep: SleepFunc | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            config: Default settings for calls that do not pass their own.
            classifier: Error classifier. A default one is created if omitted.
            sleep: Backoff sleep coroutine, ``asyncio.sleep`` by default.
            rng: Random source used for jitter.
        """
        self.config = config or RetryConfig()
        self._classifier = classifier or ErrorClassifier()
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()

    async def execute(
        self,
        operation: Operation[T],
        config: RetryConfig | None = None,
        label: str = "AI operation",
    ) -> T:
        """Run ``operation`` until it succeeds or retrying stops.

        Args:
            operation: Zero-argument callable returning an awaitable.
            config: Settings for this call; the executor default otherwise.
            label: Name used in logs and error messages.

        Returns:
            The result of the first successful attempt.

        Raises:
            AIError: On a non-retryable failure, or once every attempt failed.
        """
        cfg = config or self.config
        max_attempts = cfg.max_attempts
        log = _logger.bind(label=label, max_attempts=max_attempts)
        last_error: ClassifiedError | None = None

        for attempt in range(1, max_attempts + 1):
            log.debug("retry_attempt", attempt=attempt)
            try:
                result = await self._run_attempt(operation, cfg, label)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                last_error = self._classifier.classify(exc)
            else:
                if attempt > 1:
                    log.info("retry_succeeded", attempts=attempt)
                return result

            log.warning(
                "retry_attempt_failed",
                attempt=attempt,
                kind=last_error.kind.value,
                retryable=last_error.retryable,
                error=last_error.message,
            )

            if not last_error.retryable:
                log.error("retry_aborted_not_retryable", attempt=attempt)
                raise AIError.from_classified(last_error, attempts=attempt)

            if attempt == max_attempts:
                break

            delay = calculate_backoff_delay(attempt, cfg, self._rng)
            log.info("retry_scheduled", attempt=attempt, delay_seconds=round(delay, 3))
            await self._sleep(delay)

        assert last_error is not None
        log.error("retry_exhausted", attempts=max_attempts, kind=last_error.kind.value)
        raise AIError.from_classified(
            last_error,
            attempts=max_attempts,
            exhausted=True,
            message=f"{label} failed after {max_attempts} attempts: {last_error.message}",
        )

    async def _run_attempt(self, operation: Operation[T], cfg: RetryConfig, label: str) -> T:
        """Run one attempt, converting an expired deadline into a tagged timeout error.

        A ``TimeoutError`` raised by the operation itself is left to the
        classifier so its message survives.
        """
        deadline = asyncio.timeout(cfg.timeout_seconds)
        try:
            async with deadline:
                return await operation()
        except TimeoutError as exc:
            if not deadline.expired():
                raise
            raise AIError(
                ErrorKind.TIMEOUT,
                f"{label} timed out after {cfg.timeout_seconds}s",
                retryable=True,
                original_error=exc,
            ) from exc


_default_executor: RetryExecutor | None = None


def _get_default_executor() -> RetryExecutor:
    global _default_executor
    if _default_executor is None:
        _default_executor = RetryExecutor()
    return _default_executor


async def retry_with_backoff(
    operation: Operation[T],
    config: RetryConfig | None = None,
    label: str = "AI operation",
) -> T:
    """Run ``operation`` through a shared default ``RetryExecutor``."""
    return await _get_default_executor().execute(operation, config, label)


__all__ = [
    "RetryExecutor",
    "calculate_backoff_delay",
    "retry_with_backoff",
]
