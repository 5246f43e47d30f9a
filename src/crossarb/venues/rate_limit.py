"""Async token bucket for venue REST calls, and the delay schedule after a 429."""

from __future__ import annotations

import asyncio
import time

MAX_RETRY_DELAY = 30.0


class TokenBucket:
    """Refills `rate` tokens per second up to `capacity`. Waiters are served in arrival order."""

    def __init__(self, rate: float = 10.0, capacity: int | None = None) -> None:
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        self.rate = rate
        self.capacity = max(int(rate * 2), 1) if capacity is None else capacity
        if self.capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {self.capacity}")
        self.tokens = float(self.capacity)
        self._stamp = time.monotonic()
        self._waiters = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        self.tokens = min(float(self.capacity), self.tokens + (now - self._stamp) * self.rate)
        self._stamp = now

    def try_take(self, n: int = 1) -> bool:
        self._refill()
        if self.tokens < n:
            return False
        self.tokens -= n
        return True

    def shortfall_sec(self, n: int = 1) -> float:
        """Seconds until n tokens will be available (0 if they already are)."""
        self._refill()
        return max(n - self.tokens, 0.0) / self.rate

    async def acquire(self, n: int = 1) -> None:
        async with self._waiters:
            while not self.try_take(n):
                await asyncio.sleep(self.shortfall_sec(n))


def backoff_on_429(attempt: int, base_delay: float = 1.0) -> float:
    """Exponential delay for retry number `attempt` (0-based), capped at MAX_RETRY_DELAY."""
    return min(base_delay * (2 ** attempt), MAX_RETRY_DELAY)
