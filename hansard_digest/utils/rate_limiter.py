"""
Request pacing for the Hansard API.

Debate, division and overview lookups all hit the same host, so every
request the adapter makes draws from one token bucket. Callers that find
the bucket empty wait for the next token instead of failing.
"""

import asyncio
import time


class RateLimiter:
    """
    Token bucket shared by every coroutine of one adapter.

    ``delays`` and ``delayed_seconds`` record how often callers had to wait
    and for how long, so a run can report throttling it imposed on itself.
    """

    def __init__(self, rate: float, burst: int = 1):
        if rate <= 0:
            raise ValueError("Rate must be positive")
        if burst < 1:
            raise ValueError("Burst must be at least 1")

        self.rate = rate
        self.burst = burst
        self.delays = 0
        self.delayed_seconds = 0.0
        self._available = float(burst)
        self._stamp = time.monotonic()
        self._lock = asyncio.Lock()

    def _top_up(self) -> None:
        now = time.monotonic()
        earned = (now - self._stamp) * self.rate
        self._available = min(float(self.burst), self._available + earned)
        self._stamp = now

    async def acquire(self) -> None:
        async with self._lock:
            self._top_up()
            if self._available < 1:
                pause = (1 - self._available) / self.rate
                self.delays += 1
                self.delayed_seconds += pause
                await asyncio.sleep(pause)
                self._top_up()
            self._available = max(0.0, self._available - 1)
