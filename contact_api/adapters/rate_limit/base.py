"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
storage backend can be swapped later with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of an admission check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Requests still available in the trailing window after this check.
        reset_at: UNIX epoch seconds when the oldest tracked request leaves the window.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Run the admission check for a given key.

        Args:
            key: Unique identifier (e.g., client IP address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    def allow(self, key: str) -> bool:
        """Return True when a request for ``key`` is admitted."""
        return self.consume(key).allowed
