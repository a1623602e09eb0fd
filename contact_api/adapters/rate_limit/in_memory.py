"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: one lock covers the whole admission check.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable

from contact_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 24 * 60 * 60
DEFAULT_QUOTA = 5
DEFAULT_SWEEP_THRESHOLD = 10_000


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter admitting at most ``limit`` requests per key in any trailing window.

    Each key keeps the timestamps of its admitted requests. Every admission
    check first rewrites the key's history without the entries that left the
    trailing window, then admits only if fewer than ``limit`` remain. Rejected
    checks are not recorded, so sustained rejected traffic cannot grow a
    history past ``limit`` entries.

    Keys whose history has fully aged out are dropped lazily once the number
    of tracked keys exceeds ``sweep_threshold``.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int = DEFAULT_QUOTA,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
        sweep_threshold: int | None = DEFAULT_SWEEP_THRESHOLD,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of admitted requests per trailing window.
            window_seconds: Length of the trailing window in seconds.
            clock: Time source function returning UNIX time in seconds.
            sweep_threshold: Tracked-key count above which expired keys are
                purged during an admission check (None disables the sweep).

        Raises:
            ValueError: If limit, window_seconds or sweep_threshold are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if sweep_threshold is not None and sweep_threshold < 1:
            raise ValueError("sweep_threshold must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._sweep_threshold = sweep_threshold
        self._lock = threading.Lock()
        self._history_by_key: dict[str, list[float]] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def consume(self, key: str) -> RateLimitResult:
        """Run the admission check for ``key``.

        Prunes the key's history, then either records ``now`` and admits, or
        rejects leaving the pruned history stored.

        Args:
            key: Unique identifier for rate limiting (e.g., client IP).

        Returns:
            RateLimitResult with the admission decision and metadata.
        """
        with self._lock:
            now = self._clock()
            window_start = now - self._window_seconds

            history = [ts for ts in self._history_by_key.get(key, ()) if ts > window_start]

            if len(history) >= self._limit:
                self._history_by_key[key] = history
                return self._build_blocked_result(now=now, history=history)

            history.append(now)
            self._history_by_key[key] = history
            self._maybe_sweep_locked(window_start)
            return self._build_allowed_result(history=history)

    def purge_expired(self) -> int:
        """Drop every key whose whole history has left the trailing window.

        Returns:
            Number of keys removed.
        """
        with self._lock:
            return self._purge_expired_locked(self._clock() - self._window_seconds)

    def tracked_keys(self) -> int:
        """Return the number of keys currently holding a history entry."""
        with self._lock:
            return len(self._history_by_key)

    def _maybe_sweep_locked(self, window_start: float) -> None:
        if self._sweep_threshold is None:
            return
        if len(self._history_by_key) <= self._sweep_threshold:
            return

        removed = self._purge_expired_locked(window_start)
        logger.debug(
            "rate_limit.sweep",
            extra={
                "removed_keys": removed,
                "tracked_keys": len(self._history_by_key),
            },
        )

    def _purge_expired_locked(self, window_start: float) -> int:
        # Histories are chronological, so the newest entry decides expiry
        expired = [
            key
            for key, history in self._history_by_key.items()
            if not history or history[-1] <= window_start
        ]
        for key in expired:
            del self._history_by_key[key]
        return len(expired)

    def _reset_at(self, history: list[float]) -> float:
        return history[0] + self._window_seconds

    def _build_allowed_result(self, *, history: list[float]) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - len(history)),
            reset_at=int(math.ceil(self._reset_at(history))),
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, *, now: float, history: list[float]) -> RateLimitResult:
        reset_at = self._reset_at(history)
        retry_after = max(0, int(math.ceil(reset_at - now)))
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=retry_after,
        )
