"""Sliding-window rate limiter for outbound places-directory requests.

One limiter instance is owned by one ``PlacesClient``; admissions are
serialized by the single control flow of an ingestion run, so no lock is held.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Awaitable, Callable

from barcompass.core.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Admit at most ``max_requests`` calls in any trailing window.

    Args:
        max_requests: Quota per window. Must be positive.
        window_seconds: Window length in seconds. Must be positive.
        buffer_seconds: Extra wait added when sleeping for the oldest entry
            to expire, absorbing clock granularity.
        clock: Monotonic clock returning seconds.
        sleep: Awaitable sleep used when the window is full.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 1.0,
        buffer_seconds: float = 0.01,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_requests <= 0:
            raise ValueError(f"max_requests must be positive, got {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.buffer_seconds = buffer_seconds
        self._clock = clock
        self._sleep = sleep
        self._timestamps: deque[float] = deque()

    def _evict(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window_seconds:
            self._timestamps.popleft()

    async def admit(self) -> None:
        """Wait until a request may be issued, then record it."""
        self._evict(self._clock())

        while len(self._timestamps) >= self.max_requests:
            now = self._clock()
            wait = self.window_seconds - (now - self._timestamps[0]) + self.buffer_seconds
            logger.debug(
                "places.rate_limit_wait",
                wait_seconds=round(wait, 4),
                window_count=len(self._timestamps),
                max_requests=self.max_requests,
            )
            await self._sleep(max(wait, 0.0))
            self._evict(self._clock())

        self._timestamps.append(self._clock())

    def current_count(self) -> int:
        """Number of admissions inside the live window."""
        self._evict(self._clock())
        return len(self._timestamps)

    def time_until_next(self) -> float:
        """Seconds until another admission would go through without waiting."""
        now = self._clock()
        self._evict(now)
        if len(self._timestamps) < self.max_requests:
            return 0.0
        return max(self.window_seconds - (now - self._timestamps[0]), 0.0)

    def reset(self) -> None:
        """Forget all recorded admissions."""
        self._timestamps.clear()
