"""Unit tests for the fixed-window rate limiter."""

from __future__ import annotations

import time

import pytest

from personapass.exceptions import RateLimitError
from personapass.ratelimit import RateLimiter


@pytest.fixture
def limiter():
    lim = RateLimiter("100/minute", key_prefix="unit")
    yield lim
    lim.reset()


class TestFixedWindow:
    def test_hundredth_request_allowed(self, limiter):
        for _ in range(100):
            limiter.consume("10.0.0.1")
        assert limiter.remaining("10.0.0.1") == 0

    def test_hundred_and_first_request_rejected(self, limiter):
        for _ in range(100):
            limiter.consume("10.0.0.1")
        with pytest.raises(RateLimitError) as exc_info:
            limiter.consume("10.0.0.1")
        assert exc_info.value.status_code == 429
        assert 1 <= exc_info.value.retry_after <= 60

    def test_clients_counted_separately(self, limiter):
        for _ in range(100):
            limiter.consume("10.0.0.1")
        limiter.consume("10.0.0.2")
        assert limiter.remaining("10.0.0.2") == 99

    def test_window_expiry_restores_budget(self):
        lim = RateLimiter("2/second", key_prefix="expiry")
        lim.consume("10.0.0.3")
        lim.consume("10.0.0.3")
        with pytest.raises(RateLimitError):
            lim.consume("10.0.0.3")
        time.sleep(1.1)
        lim.consume("10.0.0.3")

    def test_rejections_do_not_extend_window(self):
        lim = RateLimiter("1/second", key_prefix="reject")
        lim.consume("10.0.0.4")
        for _ in range(5):
            with pytest.raises(RateLimitError):
                lim.consume("10.0.0.4")
        time.sleep(1.1)
        lim.consume("10.0.0.4")


class TestControls:
    def test_disabled_limiter_never_rejects(self):
        lim = RateLimiter("1/minute", key_prefix="off", enabled=False)
        for _ in range(10):
            lim.consume("10.0.0.5")

    def test_reset_clears_counters(self, limiter):
        for _ in range(100):
            limiter.consume("10.0.0.6")
        limiter.reset()
        limiter.consume("10.0.0.6")
        assert limiter.remaining("10.0.0.6") == 99

    def test_set_limit_replaces_budget(self, limiter):
        limiter.set_limit("3/minute")
        assert limiter.limit.amount == 3
        for _ in range(3):
            limiter.consume("10.0.0.7")
        with pytest.raises(RateLimitError):
            limiter.consume("10.0.0.7")

    def test_default_message(self):
        assert str(RateLimitError()) == "Too many requests, please try again later."
