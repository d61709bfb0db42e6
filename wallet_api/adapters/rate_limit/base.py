"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
counter store can move to a shared backend (e.g., Redis with a Lua script)
without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class RateLimitBackendError(Exception):
    """Raised by a limiter when its counter store cannot be reached."""


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check/consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Requests still available in the trailing window (0 when blocked).
        reset_at: UNIX epoch seconds when the oldest counted request leaves the window.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters.

    Implementations must perform the check and the increment as one atomic
    step per key, so concurrent requests cannot both take the last slot.
    """

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for a given key.

        Args:
            key: Unique identifier (e.g., client IP address).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.

        Raises:
            RateLimitBackendError: If the counter store is unavailable.
        """
        raise NotImplementedError
