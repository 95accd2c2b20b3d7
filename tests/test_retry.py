"""Tests for the retry executor.

Sleeping and jitter are injected, so backoff delays are asserted exactly
without waiting on the wall clock (except for one end-to-end timing check).
"""

from __future__ import annotations

import asyncio
import random
import time

import pytest
from pydantic import ValidationError

from smera.core.config import RetryConfig
from smera.core.errors import AIError, BackendResponseError, ErrorKind
from smera.execution.retry import RetryExecutor, calculate_backoff_delay, retry_with_backoff
from tests.helpers import FixedRandom, RecordingSleep, scripted_operation


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def executor(sleep: RecordingSleep) -> RetryExecutor:
    return RetryExecutor(sleep=sleep, rng=random.Random(1234))


# =============================================================================
# calculate_backoff_delay()
# =============================================================================


class TestCalculateBackoffDelay:
    def test_without_jitter_grows_geometrically_until_cap(self) -> None:
        config = RetryConfig(
            initial_delay_seconds=1.0, backoff_multiplier=2.0, max_delay_seconds=5.0
        )
        rng = FixedRandom(1.0)
        delays = [calculate_backoff_delay(n, config, rng) for n in range(1, 6)]
        assert delays == [1.0, 2.0, 4.0, 5.0, 5.0]

    @pytest.mark.parametrize("factor", [0.8, 1.2])
    def test_jitter_factor_is_multiplicative(self, factor: float) -> None:
        config = RetryConfig(initial_delay_seconds=0.5)
        assert calculate_backoff_delay(1, config, FixedRandom(factor)) == pytest.approx(
            0.5 * factor
        )

    def test_jittered_delays_stay_within_bounds(self) -> None:
        config = RetryConfig(
            initial_delay_seconds=0.25, backoff_multiplier=3.0, max_delay_seconds=4.0
        )
        rng = random.Random(7)
        for n in range(1, 8):
            base = min(4.0, 0.25 * 3.0 ** (n - 1))
            for _ in range(50):
                delay = calculate_backoff_delay(n, config, rng)
                assert 0.8 * base <= delay <= 1.2 * base

    def test_retry_number_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="retry_number"):
            calculate_backoff_delay(0, RetryConfig())


# =============================================================================
# RetryExecutor.execute()
# =============================================================================


class TestExecuteSuccess:
    async def test_first_attempt_success_does_not_sleep(
        self, executor: RetryExecutor, sleep: RecordingSleep
    ) -> None:
        operation, calls = scripted_operation(["ok"])
        assert await executor.execute(operation, RetryConfig(), "label") == "ok"
        assert calls[0] == 1
        assert sleep.delays == []

    async def test_timeout_message_then_success_retries_once(
        self, executor: RetryExecutor, sleep: RecordingSleep
    ) -> None:
        """Error("timeout") on attempt 1, "ok" on attempt 2."""
        operation, calls = scripted_operation([Exception("timeout"), "ok"])
        config = RetryConfig(max_retries=2, initial_delay_seconds=0.5)

        result = await executor.execute(operation, config, "label")

        assert result == "ok"
        assert calls[0] == 2
        assert len(sleep.delays) == 1
        assert 0.4 <= sleep.delays[0] <= 0.6

    @pytest.mark.parametrize("succeed_on", [1, 2, 3, 4])
    async def test_stops_at_first_success(
        self, executor: RetryExecutor, succeed_on: int
    ) -> None:
        failures: list[object] = [ConnectionError("connection reset")] * (succeed_on - 1)
        operation, calls = scripted_operation([*failures, "done", "unexpected"])
        result = await executor.execute(operation, RetryConfig(max_retries=3))
        assert result == "done"
        assert calls[0] == succeed_on

    async def test_wall_clock_delay_matches_jitter_window(self) -> None:
        executor = RetryExecutor()
        operation, calls = scripted_operation([Exception("timeout"), "ok"])
        config = RetryConfig(max_retries=2, initial_delay_seconds=0.5)

        started = time.monotonic()
        result = await executor.execute(operation, config, "label")
        elapsed = time.monotonic() - started

        assert result == "ok"
        assert calls[0] == 2
        assert 0.4 <= elapsed <= 0.75


class TestExecuteNonRetryable:
    async def test_invalid_api_key_fails_after_one_attempt(
        self, executor: RetryExecutor, sleep: RecordingSleep
    ) -> None:
        operation, calls = scripted_operation([Exception("API key invalid")])

        with pytest.raises(AIError) as exc_info:
            await executor.execute(operation, RetryConfig(max_retries=2), "label")

        error = exc_info.value
        assert error.kind == ErrorKind.INVALID_INPUT
        assert error.retryable is False
        assert error.attempts == 1
        assert error.exhausted is False
        assert calls[0] == 1
        assert sleep.delays == []

    @pytest.mark.parametrize(
        "failure",
        [
            Exception("401 Unauthorized"),
            Exception("403 Forbidden"),
            Exception("something odd happened"),
            BackendResponseError(422, "title is required"),
            ValueError("invalid date format"),
        ],
        ids=["401", "403", "unknown", "backend-422", "invalid-value"],
    )
    async def test_no_backoff_for_non_retryable(
        self, executor: RetryExecutor, sleep: RecordingSleep, failure: Exception
    ) -> None:
        operation, calls = scripted_operation([failure, "never"])
        with pytest.raises(AIError) as exc_info:
            await executor.execute(operation, RetryConfig(max_retries=5))
        assert exc_info.value.retryable is False
        assert calls[0] == 1
        assert sleep.delays == []

    async def test_tagged_ai_error_keeps_its_kind(self, executor: RetryExecutor) -> None:
        original = AIError(ErrorKind.INVALID_INPUT, "prompt too long")
        operation, _ = scripted_operation([original])
        with pytest.raises(AIError) as exc_info:
            await executor.execute(operation)
        assert exc_info.value.kind == ErrorKind.INVALID_INPUT
        assert exc_info.value.message == "prompt too long"


class TestExecuteExhaustion:
    async def test_all_attempts_fail_raises_exhausted(
        self, executor: RetryExecutor, sleep: RecordingSleep
    ) -> None:
        operation, calls = scripted_operation([Exception("503 Service Unavailable")])
        config = RetryConfig(max_retries=3, initial_delay_seconds=0.1, max_delay_seconds=1.0)

        with pytest.raises(AIError) as exc_info:
            await executor.execute(operation, config, "summarize")

        error = exc_info.value
        assert calls[0] == 4
        assert error.attempts == 4
        assert error.exhausted is True
        assert error.retryable is True
        assert error.kind == ErrorKind.SERVER
        assert "summarize failed after 4 attempts" in error.message
        assert "503" in error.message
        assert len(sleep.delays) == 3

    async def test_delays_before_each_retry_follow_schedule(self, sleep: RecordingSleep) -> None:
        executor = RetryExecutor(sleep=sleep, rng=random.Random(99))
        operation, _ = scripted_operation([Exception("429 Too Many Requests")])
        config = RetryConfig(
            max_retries=4,
            initial_delay_seconds=1.0,
            backoff_multiplier=2.0,
            max_delay_seconds=5.0,
        )

        with pytest.raises(AIError):
            await executor.execute(operation, config)

        assert len(sleep.delays) == 4
        for k, delay in enumerate(sleep.delays, start=2):
            base = min(5.0, 1.0 * 2.0 ** (k - 2))
            assert 0.8 * base <= delay <= 1.2 * base

    async def test_zero_retries_means_single_attempt(
        self, executor: RetryExecutor, sleep: RecordingSleep
    ) -> None:
        operation, calls = scripted_operation([Exception("network error")])
        with pytest.raises(AIError) as exc_info:
            await executor.execute(operation, RetryConfig(max_retries=0))
        assert calls[0] == 1
        assert exc_info.value.exhausted is True
        assert exc_info.value.kind == ErrorKind.NETWORK
        assert sleep.delays == []

    async def test_last_underlying_error_is_embedded(self, executor: RetryExecutor) -> None:
        last = Exception("fetch failed: socket hang up")
        operation, _ = scripted_operation([Exception("timeout"), last])
        with pytest.raises(AIError) as exc_info:
            await executor.execute(operation, RetryConfig(max_retries=1))
        assert exc_info.value.original_error is last
        assert exc_info.value.kind == ErrorKind.NETWORK


class TestExecuteTimeout:
    async def test_slow_attempt_is_treated_as_timeout_and_retried(
        self, executor: RetryExecutor, sleep: RecordingSleep
    ) -> None:
        calls = 0

        async def operation() -> str:
            nonlocal calls
            calls += 1
            if calls == 1:
                await asyncio.sleep(5)
            return "fast"

        config = RetryConfig(max_retries=1, timeout_seconds=0.05)
        assert await executor.execute(operation, config) == "fast"
        assert calls == 2
        assert len(sleep.delays) == 1

    async def test_every_attempt_timing_out_exhausts_as_timeout(
        self, executor: RetryExecutor
    ) -> None:
        async def operation() -> str:
            await asyncio.sleep(5)
            return "never"

        config = RetryConfig(max_retries=2, timeout_seconds=0.02)
        with pytest.raises(AIError) as exc_info:
            await executor.execute(operation, config, "generate")

        assert exc_info.value.kind == ErrorKind.TIMEOUT
        assert exc_info.value.attempts == 3
        assert exc_info.value.exhausted is True

    async def test_timeout_raised_by_operation_keeps_its_message(
        self, executor: RetryExecutor
    ) -> None:
        async def operation() -> str:
            raise TimeoutError("upstream gateway deadline from proxy")

        config = RetryConfig(max_retries=0, timeout_seconds=30.0)
        with pytest.raises(AIError) as exc_info:
            await executor.execute(operation, config, "gen")

        error = exc_info.value
        assert error.kind == ErrorKind.TIMEOUT
        assert "upstream gateway deadline from proxy" in error.message
        assert "timed out after" not in error.message
        assert isinstance(error.original_error, TimeoutError)


class TestExecuteCancellation:
    async def test_cancel_during_attempt_propagates(self, executor: RetryExecutor) -> None:
        started = asyncio.Event()

        async def operation() -> str:
            started.set()
            await asyncio.Event().wait()
            return "never"

        task = asyncio.create_task(executor.execute(operation))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_cancel_during_backoff_stops_retrying(self) -> None:
        sleeping = asyncio.Event()

        async def blocking_sleep(delay: float) -> None:
            sleeping.set()
            await asyncio.Event().wait()

        executor = RetryExecutor(sleep=blocking_sleep)
        operation, calls = scripted_operation([Exception("network error"), "ok"])

        task = asyncio.create_task(executor.execute(operation, RetryConfig(max_retries=3)))
        await sleeping.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert calls[0] == 1

    async def test_cancelled_error_from_operation_is_not_retried(
        self, executor: RetryExecutor, sleep: RecordingSleep
    ) -> None:
        operation, calls = scripted_operation([asyncio.CancelledError()])
        with pytest.raises(asyncio.CancelledError):
            await executor.execute(operation, RetryConfig(max_retries=3))
        assert calls[0] == 1
        assert sleep.delays == []


# =============================================================================
# Module-level helper and config
# =============================================================================


async def test_retry_with_backoff_uses_shared_executor() -> None:
    operation, calls = scripted_operation([Exception("overloaded"), {"title": "x"}])
    config = RetryConfig(max_retries=1, initial_delay_seconds=0.0, max_delay_seconds=0.0)
    assert await retry_with_backoff(operation, config, "parse") == {"title": "x"}
    assert calls[0] == 2


def test_ai_error_user_message() -> None:
    error = AIError(ErrorKind.RATE_LIMIT, "429")
    assert "busy" in error.user_message


class TestRetryConfig:
    def test_defaults(self) -> None:
        config = RetryConfig()
        assert config.max_retries == 3
        assert config.max_attempts == 4
        assert config.initial_delay_seconds == 1.0
        assert config.max_delay_seconds == 10.0
        assert config.timeout_seconds == 30.0

    def test_initial_delay_above_max_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must not exceed"):
            RetryConfig(initial_delay_seconds=20.0, max_delay_seconds=10.0)

    def test_is_immutable(self) -> None:
        config = RetryConfig()
        with pytest.raises(ValidationError):
            config.max_retries = 10  # type: ignore[misc]
