"""Outbound request limits: per-host request budgets and a concurrency gate."""

import asyncio
import time
from typing import Dict


class HostBucket:
    """Request budget for one upstream host.

    Holds up to ``burst`` requests and earns ``rpm / 60`` more every second.
    A caller that finds the bucket empty sleeps until a request has been
    earned; callers queue behind the bucket's lock in arrival order.
    """

    def __init__(self, rpm: int):
        """
        Args:
            rpm: Sustained requests per minute for the host
        """
        self.per_second = rpm / 60.0
        self.burst = max(2.0, rpm / 10.0)
        self.available = self.burst
        self._updated = time.monotonic()
        self._lock = asyncio.Lock()

    def _earn(self) -> None:
        now = time.monotonic()
        self.available = min(self.burst, self.available + (now - self._updated) * self.per_second)
        self._updated = now

    async def take(self) -> None:
        async with self._lock:
            self._earn()
            while self.available < 1.0:
                await asyncio.sleep((1.0 - self.available) / self.per_second)
                self._earn()
            self.available -= 1.0


class DomainRateLimiter:
    """One HostBucket per upstream host.

    The search index and the storefront get separate budgets, so a slow
    storefront never starves index lookups.
    """

    def __init__(self, default_rpm: int = 120):
        if default_rpm < 1:
            raise ValueError("default_rpm must be at least 1")
        self.default_rpm = default_rpm
        self._buckets: Dict[str, HostBucket] = {}

    def bucket_for(self, host: str) -> HostBucket:
        bucket = self._buckets.get(host)
        if bucket is None:
            bucket = self._buckets[host] = HostBucket(self.default_rpm)
        return bucket

    async def acquire(self, host: str) -> None:
        """Wait until ``host`` may receive another request."""
        await self.bucket_for(host).take()


class ConcurrencyGate:
    """Caps the number of operations running at once.

    Callers beyond the limit wait in arrival order and start as soon as a
    slot frees. ``in_flight`` and ``peak`` record the current and highest
    number of holders.
    """

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self.in_flight = 0
        self.peak = 0

    async def __aenter__(self) -> "ConcurrencyGate":
        await self._semaphore.acquire()
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.in_flight -= 1
        self._semaphore.release()
