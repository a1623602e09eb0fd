"""Unit tests for the in-memory sliding-window rate limiter."""

import threading
from unittest.mock import Mock

import pytest

from contact_api.adapters.rate_limit.in_memory import (
    DEFAULT_QUOTA,
    DEFAULT_WINDOW_SECONDS,
    InMemorySlidingWindowRateLimiter,
)

HOUR = 60 * 60
T0 = 1_700_000_000.0


def _limiter(clock: Mock, **kwargs) -> InMemorySlidingWindowRateLimiter:
    return InMemorySlidingWindowRateLimiter(clock=clock, **kwargs)


def test_defaults_are_five_per_day() -> None:
    limiter = InMemorySlidingWindowRateLimiter()

    assert DEFAULT_QUOTA == 5
    assert DEFAULT_WINDOW_SECONDS == 24 * HOUR
    assert limiter.limit == 5
    assert limiter.window_seconds == 24 * HOUR


def test_admits_quota_then_rejects_next() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock)

    for i in range(DEFAULT_QUOTA):
        clock.return_value = T0 + i * 60
        assert limiter.allow("10.0.0.1") is True

    clock.return_value = T0 + 10 * 60
    assert limiter.allow("10.0.0.1") is False


def test_remaining_counts_down() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock, limit=3)

    assert [limiter.consume("k").remaining for _ in range(3)] == [2, 1, 0]


def test_burst_then_request_just_inside_window_is_rejected() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock)

    for _ in range(DEFAULT_QUOTA):
        assert limiter.allow("k") is True

    clock.return_value = T0 + 23 * HOUR + 59 * 60
    assert limiter.allow("k") is False


def test_full_expiry_admits_and_consumes_new_slot() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock)

    for _ in range(DEFAULT_QUOTA):
        assert limiter.allow("k") is True

    # A timestamp exactly window_seconds old is no longer strictly inside
    clock.return_value = T0 + DEFAULT_WINDOW_SECONDS
    result = limiter.consume("k")
    assert result.allowed is True
    assert result.remaining == DEFAULT_QUOTA - 1


def test_partial_expiry_frees_exactly_one_slot() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock)

    for i in range(DEFAULT_QUOTA):
        clock.return_value = T0 + i * HOUR
        assert limiter.allow("k") is True

    # Only the request made at T0 has left the window
    clock.return_value = T0 + DEFAULT_WINDOW_SECONDS + 30 * 60
    assert limiter.allow("k") is True
    assert limiter.allow("k") is False


def test_identifiers_are_independent() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock)

    for _ in range(DEFAULT_QUOTA):
        limiter.allow("a")
    assert limiter.allow("a") is False

    assert limiter.allow("b") is True


def test_rejections_do_not_extend_history() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock, limit=2, window_seconds=100)

    assert limiter.allow("k") is True
    assert limiter.allow("k") is True
    for offset in range(1, 50):
        clock.return_value = T0 + offset
        assert limiter.allow("k") is False

    # Window measured from the admitted requests, not from the rejected ones
    clock.return_value = T0 + 100
    assert limiter.allow("k") is True


def test_blocked_result_reports_retry_after_oldest_entry() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock, limit=2, window_seconds=100)

    limiter.consume("k")
    clock.return_value = T0 + 40
    limiter.consume("k")

    clock.return_value = T0 + 70
    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds == 30
    assert blocked.reset_at == int(T0 + 100)


def test_concurrent_checks_never_exceed_quota() -> None:
    limiter = InMemorySlidingWindowRateLimiter()
    extra = 15
    workers = DEFAULT_QUOTA + extra
    barrier = threading.Barrier(workers)
    results: list[bool] = []
    results_lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        allowed = limiter.allow("198.51.100.7")
        with results_lock:
            results.append(allowed)

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == DEFAULT_QUOTA
    assert results.count(False) == extra


def test_purge_expired_drops_aged_out_keys() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock, window_seconds=100)

    limiter.allow("old")
    clock.return_value = T0 + 50
    limiter.allow("recent")

    clock.return_value = T0 + 120
    assert limiter.purge_expired() == 1
    assert limiter.tracked_keys() == 1

    # A purged key starts fresh, same as one never seen
    assert limiter.consume("old").remaining == DEFAULT_QUOTA - 1


def test_lazy_sweep_runs_past_threshold() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock, window_seconds=100, sweep_threshold=3)

    for key in ("a", "b", "c"):
        limiter.allow(key)
    assert limiter.tracked_keys() == 3

    clock.return_value = T0 + 200
    limiter.allow("d")

    assert limiter.tracked_keys() == 1


def test_sweep_disabled_keeps_all_keys() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock, window_seconds=100, sweep_threshold=None)

    for key in ("a", "b", "c"):
        limiter.allow(key)
    clock.return_value = T0 + 200
    limiter.allow("d")

    assert limiter.tracked_keys() == 4


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0},
        {"window_seconds": 0},
        {"sweep_threshold": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemorySlidingWindowRateLimiter(**kwargs)


def test_empty_key_is_an_ordinary_identifier() -> None:
    clock = Mock(return_value=T0)
    limiter = _limiter(clock)

    assert [limiter.allow("") for _ in range(DEFAULT_QUOTA + 1)] == [True] * DEFAULT_QUOTA + [False]
    assert limiter.allow("10.0.0.1") is True
