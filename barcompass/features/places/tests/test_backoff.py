"""Tests for exponential backoff and the retrying executor."""

import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from barcompass.features.places.backoff import BackoffExecutor, BackoffPolicy


class TestBackoffPolicy:
    """Tests for BackoffPolicy validation."""

    def test_defaults(self):
        policy = BackoffPolicy()
        assert policy.base_delay == 1.0
        assert policy.max_delay == 30.0
        assert policy.max_retries == 3
        assert policy.factor == 2.0
        assert policy.jitter == 0.25

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"base_delay": 0},
            {"base_delay": 5.0, "max_delay": 1.0},
            {"max_retries": -1},
        ],
    )
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            BackoffPolicy(**kwargs)

    def test_is_immutable(self):
        policy = BackoffPolicy()
        with pytest.raises(AttributeError):
            policy.max_retries = 10  # type: ignore[misc]


class TestDelays:
    """Tests for delay calculation."""

    def test_calculate_delay_doubles_until_cap(self):
        executor = BackoffExecutor(BackoffPolicy(base_delay=1.0, max_delay=30.0))

        delays = [executor.calculate_delay(attempt) for attempt in range(7)]

        assert delays == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]

    def test_calculate_delay_is_monotonic(self):
        executor = BackoffExecutor(BackoffPolicy(base_delay=0.5, max_delay=10.0, factor=3.0))

        delays = [executor.calculate_delay(attempt) for attempt in range(10)]

        assert delays == sorted(delays)
        assert max(delays) == 10.0

    def test_jittered_delay_stays_within_bounds(self):
        executor = BackoffExecutor(BackoffPolicy(), rng=random.Random(42))

        for attempt in range(6):
            base = executor.calculate_delay(attempt)
            for _ in range(200):
                delay = executor.jittered_delay(attempt)
                assert 0.75 * base <= delay <= 1.25 * base

    def test_jittered_delay_never_negative(self):
        executor = BackoffExecutor(BackoffPolicy(jitter=3.0), rng=random.Random(7))

        assert all(executor.jittered_delay(0) >= 0 for _ in range(500))


class TestExecute:
    """Tests for BackoffExecutor.execute."""

    @pytest.mark.asyncio
    async def test_returns_first_success_without_sleeping(self, clock):
        executor = BackoffExecutor(BackoffPolicy(), sleep=clock.sleep)
        operation = AsyncMock(return_value="ok")

        assert await executor.execute(operation) == "ok"
        operation.assert_awaited_once()
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self, clock):
        executor = BackoffExecutor(BackoffPolicy(), sleep=clock.sleep)
        operation = AsyncMock(side_effect=[ConnectionError("reset"), TimeoutError(), "ok"])

        assert await executor.execute(operation) == "ok"
        assert operation.await_count == 3
        assert len(clock.sleeps) == 2

    @pytest.mark.asyncio
    async def test_exhaustion_reraises_original_error(self, clock):
        executor = BackoffExecutor(BackoffPolicy(max_retries=3), sleep=clock.sleep)
        error = RuntimeError("permanent")
        operation = AsyncMock(side_effect=error)

        with pytest.raises(RuntimeError) as exc_info:
            await executor.execute(operation)

        assert exc_info.value is error
        assert operation.await_count == 4
        assert len(clock.sleeps) == 3

    @pytest.mark.asyncio
    async def test_on_retry_receives_one_based_attempts(self, clock):
        executor = BackoffExecutor(BackoffPolicy(max_retries=2), sleep=clock.sleep)
        error = ValueError("bad")
        on_retry = MagicMock()

        with pytest.raises(ValueError):
            await executor.execute(AsyncMock(side_effect=error), on_retry=on_retry)

        assert [c.args for c in on_retry.call_args_list] == [(1, error), (2, error)]

    @pytest.mark.asyncio
    async def test_zero_retries_calls_once(self, clock):
        executor = BackoffExecutor(BackoffPolicy(max_retries=0), sleep=clock.sleep)
        operation = AsyncMock(side_effect=KeyError("x"))

        with pytest.raises(KeyError):
            await executor.execute(operation)

        operation.assert_awaited_once()
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_sleeps_follow_jittered_schedule(self, clock):
        policy = BackoffPolicy(base_delay=1.0, max_delay=30.0, max_retries=3, jitter=0.0)
        executor = BackoffExecutor(policy, sleep=clock.sleep)

        with pytest.raises(OSError):
            await executor.execute(AsyncMock(side_effect=OSError("down")))

        assert clock.sleeps == [1.0, 2.0, 4.0]
