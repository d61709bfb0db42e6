"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep the shape flexible while encouraging
    consistent keys across the codebase.
    """

    code: str
    message: str
    hint: str
    fields: list[str]
    transaction_id: int
    http_status: int
    retry_after: int
    limit: int
    remaining: int
    reset_at: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails."""


class NotFoundAppError(AppError):
    """Raised when a referenced record does not exist."""


@dataclass
class RateLimitExceededAppError(AppError):
    """Raised when a caller has used up its request budget.

    Attributes:
        headers: Response headers telling the client when to retry.
    """

    headers: dict[str, str] | None = None


@dataclass
class StoreUnavailableAppError(AppError):
    """Raised when the ledger store or the rate limit counter store fails.

    Attributes:
        http_status: Status reported to the client (500 for the ledger,
            503 when the rate limiter fails closed).
    """

    http_status: int = 500
