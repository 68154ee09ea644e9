"""Exponential backoff with jitter for retrying places-directory calls."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from barcompass.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

RetryCallback = Callable[[int, Exception], None]


@dataclass(frozen=True)
class BackoffPolicy:
    """Immutable retry configuration.

    Attributes:
        base_delay: Delay before the first retry, in seconds.
        max_delay: Ceiling for any single delay, in seconds.
        max_retries: Retries after the first attempt (0 disables retrying).
        factor: Growth factor per attempt.
        jitter: Relative jitter amplitude (0.25 means +/-25%).
    """

    base_delay: float = 1.0
    max_delay: float = 30.0
    max_retries: int = 3
    factor: float = 2.0
    jitter: float = 0.25

    def __post_init__(self) -> None:
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")


class BackoffExecutor:
    """Run an async operation, retrying on failure per a ``BackoffPolicy``.

    Every exception is treated as retryable; callers validate inputs before
    handing the operation over so permanent errors fail fast.
    """

    def __init__(
        self,
        policy: BackoffPolicy,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.policy = policy
        self._sleep = sleep
        self._rng = rng or random.Random()

    def calculate_delay(self, attempt: int) -> float:
        """Un-jittered delay for a zero-based retry attempt."""
        delay = self.policy.base_delay * (self.policy.factor**attempt)
        return min(delay, self.policy.max_delay)

    def jittered_delay(self, attempt: int) -> float:
        """Delay for ``attempt`` with symmetric jitter applied, never negative."""
        delay = self.calculate_delay(attempt)
        jitter = delay * self.policy.jitter * self._rng.uniform(-1.0, 1.0)
        return max(0.0, delay + jitter)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        on_retry: RetryCallback | None = None,
    ) -> T:
        """Invoke ``operation`` until it succeeds or retries are exhausted.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt.
            on_retry: Called with the 1-based retry number and the error before
                each backoff sleep.

        Returns:
            The operation's result.

        Raises:
            Exception: The last error raised by ``operation``, unmodified.
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                if attempt >= self.policy.max_retries:
                    logger.warning(
                        "places.retries_exhausted",
                        attempts=attempt + 1,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise
                delay = self.jittered_delay(attempt)
                attempt += 1
                if on_retry is not None:
                    on_retry(attempt, e)
                logger.info(
                    "places.request_retry",
                    attempt=attempt,
                    max_retries=self.policy.max_retries,
                    delay_seconds=round(delay, 3),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self._sleep(delay)
