"""Tests for the token bucket rate limiter."""

import pytest

from src.service.rate_limiter import RateLimiter


@pytest.fixture
def sleeper(fake_clock):
    """Sleep that advances the fake clock instead of blocking."""
    slept = []

    def sleep(seconds):
        slept.append(seconds)
        fake_clock.advance(seconds)

    sleep.calls = slept
    return sleep


def test_burst_up_to_capacity(fake_clock):
    limiter = RateLimiter(max_requests=3, window_seconds=60, clock=fake_clock)
    assert [limiter.try_acquire() for _ in range(4)] == [True, True, True, False]


def test_refills_over_time(fake_clock):
    limiter = RateLimiter(max_requests=10, window_seconds=60, clock=fake_clock)
    for _ in range(10):
        assert limiter.try_acquire()
    assert not limiter.try_acquire()

    fake_clock.advance(6.0)  # one token per 6 seconds
    assert limiter.try_acquire()
    assert not limiter.try_acquire()


def test_refill_capped_at_capacity(fake_clock):
    limiter = RateLimiter(max_requests=2, window_seconds=10, clock=fake_clock)
    fake_clock.advance(3600)
    assert limiter.get_stats()["tokens"] == 2.0


def test_acquire_without_waiting(fake_clock, sleeper):
    limiter = RateLimiter(max_requests=2, window_seconds=60, clock=fake_clock, sleep=sleeper)
    assert limiter.acquire() == 0.0
    assert sleeper.calls == []


def test_acquire_waits_for_token(fake_clock, sleeper):
    """An exhausted bucket waits instead of failing."""
    limiter = RateLimiter(max_requests=2, window_seconds=60, clock=fake_clock, sleep=sleeper)
    limiter.acquire()
    limiter.acquire()

    waited = limiter.acquire()
    assert waited == pytest.approx(30.0)
    assert sum(sleeper.calls) == pytest.approx(30.0)
    assert limiter.get_stats()["total_wait"] == pytest.approx(30.0)


def test_stats(fake_clock):
    limiter = RateLimiter(max_requests=10, window_seconds=60, clock=fake_clock)
    limiter.try_acquire()
    stats = limiter.get_stats()
    assert stats["capacity"] == 10.0
    assert stats["tokens"] == pytest.approx(9.0)
    assert stats["rate_per_second"] == pytest.approx(10 / 60)


@pytest.mark.parametrize("kwargs", [{"max_requests": 0}, {"window_seconds": 0}, {"window_seconds": -1}])
def test_invalid_arguments(kwargs):
    with pytest.raises(ValueError):
        RateLimiter(**kwargs)
