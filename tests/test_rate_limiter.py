"""Tests for the per-kiosk rate limiter."""

import pytest

from marathon_photobooth.services.rate_limiter import UNKNOWN_KIOSK, RateLimiter


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(max_requests=5, window_seconds=60.0, clock=clock)


class TestRateLimiterAdmission:
    """Tests for admitting and refusing requests."""

    def test_admits_up_to_limit(self, limiter: RateLimiter) -> None:
        """The first five requests in a window should be admitted."""
        decisions = [limiter.check("kiosk-1") for _ in range(5)]
        assert all(d.allowed for d in decisions)
        assert [d.remaining for d in decisions] == [4, 3, 2, 1, 0]

    def test_refuses_sixth_request(self, limiter: RateLimiter, clock: FakeClock) -> None:
        """The sixth request inside the window should be refused."""
        for _ in range(5):
            limiter.check("kiosk-1")
            clock.now += 1.0
        decision = limiter.check("kiosk-1")
        assert decision.allowed is False
        assert decision.remaining == 0
        assert decision.retry_after == pytest.approx(55.0)

    def test_keys_are_independent(self, limiter: RateLimiter) -> None:
        """Exhausting one kiosk should not affect another."""
        for _ in range(5):
            limiter.check("kiosk-1")
        assert limiter.check("kiosk-1").allowed is False
        assert limiter.check("kiosk-2").allowed is True

    def test_missing_key_uses_unknown(self, limiter: RateLimiter) -> None:
        """A missing kiosk id should share the 'unknown' bucket."""
        for _ in range(5):
            assert limiter.check(None).allowed is True
        decision = limiter.check("")
        assert decision.allowed is False
        assert decision.key == UNKNOWN_KIOSK

    def test_refusals_are_not_recorded(self, limiter: RateLimiter, clock: FakeClock) -> None:
        """Refused requests should not extend the wait."""
        for _ in range(5):
            limiter.check("kiosk-1")
        for _ in range(10):
            clock.now += 1.0
            assert limiter.check("kiosk-1").allowed is False
        clock.now = 1000.0 + 60.0
        assert limiter.check("kiosk-1").allowed is True


class TestRateLimiterWindow:
    """Tests for the trailing window."""

    def test_request_admitted_after_window_passes(
        self, limiter: RateLimiter, clock: FakeClock
    ) -> None:
        """A request exactly one window after the oldest should be admitted."""
        for _ in range(5):
            limiter.check("kiosk-1")
        clock.now += 59.9
        assert limiter.check("kiosk-1").allowed is False
        clock.now = 1060.0
        assert limiter.check("kiosk-1").allowed is True

    def test_sliding_window_releases_one_slot_at_a_time(
        self, limiter: RateLimiter, clock: FakeClock
    ) -> None:
        """Only requests older than the window should free capacity."""
        for offset in range(5):
            clock.now = 1000.0 + offset * 10
            limiter.check("kiosk-1")
        clock.now = 1061.0
        assert limiter.check("kiosk-1").allowed is True
        assert limiter.check("kiosk-1").allowed is False

    def test_idle_keys_are_dropped(self, limiter: RateLimiter, clock: FakeClock) -> None:
        """Keys without requests in the window should no longer be tracked."""
        limiter.check("kiosk-1")
        limiter.check("kiosk-2")
        clock.now += 30.0
        limiter.check("kiosk-2")
        clock.now += 31.0
        assert limiter.tracked_keys() == ["kiosk-2"]

    def test_one_off_keys_do_not_accumulate(
        self, limiter: RateLimiter, clock: FakeClock
    ) -> None:
        """Keys seen once should be swept after a window without further calls."""
        for index in range(1000):
            limiter.check(f"rotating-{index}")
        clock.now += 3600.0
        limiter.check("kiosk-1")
        assert len(limiter._windows) == 1
        assert "kiosk-1" in limiter._windows

    def test_prune_reports_removed_keys(self, limiter: RateLimiter, clock: FakeClock) -> None:
        """Prune should drop every expired key and return how many went."""
        limiter.check("kiosk-1")
        limiter.check("kiosk-2")
        clock.now += 30.0
        limiter.check("kiosk-3")
        clock.now += 31.0
        assert limiter.prune() == 2
        assert list(limiter._windows) == ["kiosk-3"]

    def test_reset_clears_all_keys(self, limiter: RateLimiter) -> None:
        """Reset should forget every key."""
        for _ in range(5):
            limiter.check("kiosk-1")
        limiter.reset()
        assert limiter.tracked_keys() == []
        assert limiter.check("kiosk-1").allowed is True


class TestRateLimiterValidation:
    """Tests for constructor validation."""

    def test_rejects_zero_requests(self) -> None:
        """A limit below one request should be rejected."""
        with pytest.raises(ValueError):
            RateLimiter(max_requests=0)

    def test_rejects_non_positive_window(self) -> None:
        """A zero window should be rejected."""
        with pytest.raises(ValueError):
            RateLimiter(window_seconds=0)
