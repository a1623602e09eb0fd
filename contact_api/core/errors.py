"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context returned to clients."""

    fields: list[dict[str, Any]]


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
    """Raised when input/config validation fails."""


class MailRelayAppError(AppError):
    """Raised when the outbound mail relay fails to deliver a message."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when a caller is over its admission quota.

    Attributes:
        headers: Throttling headers (Retry-After, X-RateLimit-*) for the response.
    """

    headers: dict[str, str] = field(default_factory=dict)
