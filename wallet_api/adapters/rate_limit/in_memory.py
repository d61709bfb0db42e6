"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: check-and-record runs under a lock, so it is atomic per key.
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from typing import Callable

from wallet_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting admitted requests in the trailing window.

    Each key keeps a log of the timestamps of its admitted requests. A request
    is admitted when fewer than ``limit`` of them fall inside
    ``(now - window_seconds, now]``. Capacity is restored one request at a time
    as each logged timestamp ages out, so there is no boundary at which a
    caller can burst twice the limit.

    Rejected requests are not logged and do not extend the wait.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of admitted units per trailing window.
            window_seconds: Size of the sliding window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._hits_by_key: dict[str, deque[float]] = {}
        self._next_sweep_at = 0.0

    def _evict_expired_locked(self, key: str, now: float) -> deque[float]:
        """Drop timestamps that fell out of the window and return the key's log.

        Keys whose log empties are forgotten; the returned deque is only
        stored again when a request is admitted.
        """
        hits = self._hits_by_key.get(key)
        if hits is None:
            return deque()
        cutoff = now - self._window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits_by_key[key]
        return hits

    def _sweep_idle_keys_locked(self, now: float) -> None:
        """Forget every key whose newest hit has left the window.

        Runs at most once per window so the map holds only recently active
        identifiers.
        """
        if now < self._next_sweep_at:
            return
        cutoff = now - self._window_seconds
        idle = [key for key, hits in self._hits_by_key.items() if not hits or hits[-1] <= cutoff]
        for key in idle:
            del self._hits_by_key[key]
        self._next_sweep_at = now + self._window_seconds

    def _reset_at(self, hits: deque[float], now: float) -> int:
        if not hits:
            return int(math.ceil(now + self._window_seconds))
        return int(math.ceil(hits[0] + self._window_seconds))

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        Args:
            key: Unique identifier for rate limiting (e.g., client IP).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if cost > self._limit:
            raise ValueError("cost must not exceed limit")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            self._sweep_idle_keys_locked(now)
            hits = self._evict_expired_locked(key, now)

            if len(hits) + cost <= self._limit:
                hits.extend([now] * cost)
                self._hits_by_key[key] = hits
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=self._limit - len(hits),
                    reset_at=self._reset_at(hits, now),
                    retry_after_seconds=None,
                )

            # The request fits once enough of the oldest hits have aged out
            freeing_hit = hits[len(hits) + cost - self._limit - 1]
            retry_after = max(1, int(math.ceil(freeing_hit + self._window_seconds - now)))
            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=max(0, self._limit - len(hits)),
                reset_at=self._reset_at(hits, now),
                retry_after_seconds=retry_after,
            )

    def reset(self, key: str | None = None) -> None:
        """Forget recorded hits for one key, or for all keys when None."""
        with self._lock:
            if key is None:
                self._hits_by_key.clear()
            else:
                self._hits_by_key.pop(key, None)

    def stats(self) -> dict[str, int]:
        """Return limiter configuration and the number of tracked keys."""
        with self._lock:
            return {
                "limit": self._limit,
                "window_seconds": self._window_seconds,
                "tracked_keys": len(self._hits_by_key),
            }
