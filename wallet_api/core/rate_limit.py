"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: the counter store sits behind AbstractRateLimiter.
- Explicit failure policy: when the counter store is down, requests are
  admitted (fail-open, default) or rejected with 503 (fail-closed) according
  to APP_RATE_LIMIT_FAIL_OPEN.

Rate limiting strategy:
- Sliding window per client identifier (IP address, or the first
  X-Forwarded-For hop when the deployment sits behind a trusted proxy).
"""

from __future__ import annotations

import hashlib
import logging
import threading
from typing import Annotated

from fastapi import Depends, Request

from wallet_api.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitBackendError,
    RateLimitResult,
)
from wallet_api.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from wallet_api.core.config import settings
from wallet_api.core.errors import RateLimitExceededAppError, StoreUnavailableAppError

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int] | None = None
_limiter_lock = threading.Lock()


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.
    Sync dependencies run in a thread pool, so the check-and-build is locked
    to keep concurrent first requests on a single instance.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
    )

    with _limiter_lock:
        if _limiter is None or _limiter_config != config:
            _limiter = InMemorySlidingWindowRateLimiter(
                limit=config[0],
                window_seconds=config[1],
            )
            _limiter_config = config
        return _limiter


def _build_rate_limit_key(request: Request) -> str:
    """Build the namespaced limiter key for the current request."""

    if settings.app.rate_limit_trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return f"ip:{first_hop}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _build_headers(result: RateLimitResult) -> dict[str, str]:
    if not settings.app.rate_limit_include_headers:
        return {}
    return {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }


def check_admission(limiter: AbstractRateLimiter, key: str) -> RateLimitResult | None:
    """Consume one unit for ``key`` and translate the decision.

    Args:
        limiter: Counter store adapter.
        key: Namespaced rate limit key.

    Returns:
        The limiter decision when admitted, or None when the counter store
        was unavailable and the fail-open policy admitted the request.

    Raises:
        RateLimitExceededAppError: When the key has no budget left.
        StoreUnavailableAppError: When the counter store is unavailable and
            the fail-closed policy is configured.
    """

    key_hash = _hash_limiter_key(key)

    try:
        result = limiter.consume(key)
    except RateLimitBackendError as exc:
        fail_open = settings.app.rate_limit_fail_open
        logger.warning(
            "rate_limit.backend_unavailable",
            extra={
                "key_hash": key_hash,
                "fail_open": fail_open,
                "error_msg": str(exc),
            },
        )
        if fail_open:
            return None
        raise StoreUnavailableAppError(
            code="rate_limiter_unavailable",
            message="Service temporarily unavailable. Try again later.",
            http_status=503,
        ) from exc

    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": settings.app.rate_limit_window_seconds,
            },
        )
        return result

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": settings.app.rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    raise RateLimitExceededAppError(
        code="rate_limit_exceeded",
        message="Rate limit exceeded. Try again later.",
        details={
            "retry_after": retry_after,
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
        },
        headers=_build_headers(result) or None,
    )


async def enforce_rate_limit(
    request: Request,
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
) -> None:
    """FastAPI dependency enforcing rate limits.

    When enabled, consumes 1 unit from the requester's budget. If the requester
    exceeds the configured rate, the request is rejected with HTTP 429 before
    the route runs.

    Raises:
        RateLimitExceededAppError: 429 Too Many Requests when rate limit is exceeded.
        StoreUnavailableAppError: 503 when the counter store is down and fail-closed.
    """

    if not settings.app.rate_limit_enabled:
        return

    check_admission(limiter, _build_rate_limit_key(request))
