"""Tests for the token bucket used to pace press sends."""

import pytest

from imc_distribution.press import PressAdapter, PressConfig
from imc_distribution.rate_limiter import RateLimiter, RateLimiterConfig, RateLimitExceeded

from conftest import ScriptedSession


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def _limiter(clock, **kwargs):
    return RateLimiter(RateLimiterConfig(**kwargs), clock=clock, sleep_func=clock.sleep)


class TestRateLimiter:
    def test_burst_up_to_capacity(self):
        clock = FakeClock()
        rl = _limiter(clock, tokens_per_second=1.0, max_tokens=2.0)
        assert rl.acquire()
        assert rl.acquire()
        with pytest.raises(RateLimitExceeded) as exc_info:
            rl.acquire(block=False)
        assert exc_info.value.retry_after == pytest.approx(1.0)
        assert clock.sleeps == []

    def test_refill_is_capped(self):
        clock = FakeClock()
        rl = _limiter(clock, tokens_per_second=50.0, max_tokens=4.0, initial_tokens=0.0)
        clock.now += 60
        assert rl.available_tokens == pytest.approx(4.0)

    def test_blocking_acquire_sleeps_once_for_deficit(self):
        clock = FakeClock()
        rl = _limiter(clock, tokens_per_second=2.0, max_tokens=1.0, initial_tokens=0.0)
        assert rl.acquire(block=True)
        assert clock.sleeps == [pytest.approx(0.5)]

    def test_waiting_callers_queue_behind_reservation(self):
        clock = FakeClock()
        rl = RateLimiter(
            RateLimiterConfig(tokens_per_second=1.0, max_tokens=1.0, initial_tokens=0.0),
            clock=clock, sleep_func=clock.sleeps.append,
        )
        rl.acquire()
        rl.acquire()
        # The clock never advanced, so the second caller waits for both tokens.
        assert clock.sleeps == [pytest.approx(1.0), pytest.approx(2.0)]

    def test_rate_must_be_positive(self):
        with pytest.raises(ValueError):
            RateLimiter(RateLimiterConfig(tokens_per_second=0))


class TestPressPacing:
    def test_one_token_per_batch(self, event, venue):
        clock = FakeClock()
        rl = _limiter(clock, tokens_per_second=2.0, max_tokens=1.0)
        cfg = PressConfig(
            api_key="k", from_email="events@example.org",
            recipients=[f"r{i}@example.com" for i in range(101)],
        )
        result = PressAdapter(cfg, ScriptedSession(), rate_limiter=rl).distribute(event, venue)

        assert result.success
        # Three batches: the first uses the initial token, the others wait.
        assert clock.sleeps == [pytest.approx(0.5), pytest.approx(0.5)]
