"""Fixed-window rate limiting.

``FixedWindowRateLimiter`` keeps its counters in process memory: they reset on
restart and are not shared between instances. ``RedisRateLimiter`` keeps the
same semantics on a shared Redis counter for multi-instance deployments.
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

from redis import asyncio as aioredis


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single hit against the limiter."""

    allowed: bool
    count: int
    remaining: int
    reset_at: float


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """Permit up to ``max_requests`` per identifier per window."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def hit(self, identifier: str) -> RateLimitResult:
        """Count one request for ``identifier`` and report whether it is allowed."""
        with self._lock:
            now = self._clock()
            # Sweep at most once per window so idle identifiers do not pile up
            if now - self._last_sweep >= self.window_seconds:
                self._purge(now)

            window = self._windows.get(identifier)

            if window is None or now > window.reset_at:
                window = _Window(count=1, reset_at=now + self.window_seconds)
                self._windows[identifier] = window
                return self._result(True, window)

            if window.count >= self.max_requests:
                return self._result(False, window)

            window.count += 1
            return self._result(True, window)

    def is_allowed(self, identifier: str) -> bool:
        return self.hit(identifier).allowed

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._windows.pop(identifier, None)

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()

    def purge_expired(self) -> int:
        """Drop windows whose deadline has passed; returns how many were dropped."""
        with self._lock:
            return self._purge(self._clock())

    def _purge(self, now: float) -> int:
        expired = [key for key, w in self._windows.items() if now > w.reset_at]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now
        return len(expired)

    async def close(self) -> None:
        self.clear()

    def _result(self, allowed: bool, window: _Window) -> RateLimitResult:
        return RateLimitResult(
            allowed=allowed,
            count=window.count,
            remaining=max(self.max_requests - window.count, 0),
            reset_at=window.reset_at,
        )


class RedisRateLimiter:
    """Fixed-window limiter backed by a shared Redis counter.

    ``INCR`` is atomic per key; the key's TTL is set on the first hit of a
    window so the counter disappears when the window ends.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        max_requests: int,
        window_seconds: float,
        prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.max_requests = max_requests
        self.window_ms = int(window_seconds * 1000)
        self.prefix = prefix
        self._clock = clock

    @classmethod
    def from_url(cls, url: str, max_requests: int, window_seconds: float) -> "RedisRateLimiter":
        client = aioredis.from_url(url, decode_responses=True)
        return cls(client, max_requests, window_seconds)

    async def hit(self, identifier: str) -> RateLimitResult:
        key = f"{self.prefix}:{identifier}"
        count = await self.client.incr(key)
        if count == 1:
            await self.client.pexpire(key, self.window_ms)
            ttl_ms = self.window_ms
        else:
            ttl_ms = await self.client.pttl(key)
            if ttl_ms < 0:
                # Counter lost its expiry; restart the window
                await self.client.pexpire(key, self.window_ms)
                ttl_ms = self.window_ms

        reset_at = self._clock() + ttl_ms / 1000
        # Denied hits still increment in Redis; report the capped count
        allowed = count <= self.max_requests
        shown = min(count, self.max_requests)
        return RateLimitResult(
            allowed=allowed,
            count=shown,
            remaining=max(self.max_requests - shown, 0),
            reset_at=reset_at,
        )

    async def reset(self, identifier: str) -> None:
        await self.client.delete(f"{self.prefix}:{identifier}")

    async def close(self) -> None:
        await self.client.aclose()
