"""
Process-wide rate limiter for outbound embedding calls during bulk import.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from blockgraph.config import ImportConfig

T = TypeVar("T")


class RateLimiter:
    """
    Bounded concurrency plus a minimum spacing between call starts.

    The spacing is ``period_seconds / requests_per_period``; with the default
    500 requests per 60 s a new call starts at most every 0.12 s.
    """

    def __init__(
        self,
        requests_per_period: int = 500,
        period_seconds: float = 60.0,
        max_concurrency: int = 500,
    ):
        if requests_per_period <= 0 or period_seconds <= 0 or max_concurrency <= 0:
            raise ValueError("Rate limiter settings must be positive")

        self.requests_per_period = requests_per_period
        self.period_seconds = period_seconds
        self.max_concurrency = max_concurrency

        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._spacing_lock = asyncio.Lock()
        self._next_start = 0.0

    @classmethod
    def from_config(cls, config: ImportConfig) -> "RateLimiter":
        return cls(
            requests_per_period=config.requests_per_period,
            period_seconds=config.period_seconds,
            max_concurrency=config.max_concurrency,
        )

    @property
    def spacing(self) -> float:
        """Minimum seconds between two call starts."""
        return self.period_seconds / self.requests_per_period

    async def _wait_for_slot(self) -> None:
        async with self._spacing_lock:
            now = time.monotonic()
            wait = self._next_start - now
            self._next_start = max(now, self._next_start) + self.spacing
        if wait > 0:
            await asyncio.sleep(wait)

    async def run(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """
        Call ``func(*args, **kwargs)`` once a concurrency slot and a start slot are free.
        """
        async with self._semaphore:
            await self._wait_for_slot()
            return await func(*args, **kwargs)
