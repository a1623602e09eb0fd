"""Rate limiting gate for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Rate limiting strategy:
- Sliding window of 5 admitted requests per 24 hours per caller address.
- The limiter instance is owned by the application (``app.state``) and
  handed to routes through ``get_rate_limiter``.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request

from contact_api.adapters.rate_limit.base import AbstractRateLimiter
from contact_api.core.client_ip import resolve_client_ip
from contact_api.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again after 24 hours."


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """FastAPI dependency returning the application's limiter instance."""

    return request.app.state.rate_limiter


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def enforce_rate_limit(request: Request, limiter: AbstractRateLimiter) -> None:
    """Run the admission check for the calling client.

    Consumes one slot from the caller's budget when admitted. Call only after
    the submission has been validated so malformed requests never spend quota.

    Args:
        request: FastAPI request.
        limiter: Limiter owning the per-client request history.

    Raises:
        RateLimitAppError: 429 Too Many Requests when the caller is over quota.
    """

    key = resolve_client_ip(request, request.app.state.trusted_proxies)
    key_hash = _hash_limiter_key(key)

    result = limiter.consume(key)
    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "retry_after_s": retry_after,
        },
    )

    raise RateLimitAppError(
        code="rate_limited",
        message=RATE_LIMIT_MESSAGE,
        headers={
            "Retry-After": str(retry_after),
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(result.reset_at),
        },
    )
