"""Unit tests for the sliding-window rate limiter."""

from security.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_limit_per_window():
    """Test that the limit applies per user within the window."""
    clock = FakeClock()
    limiter = RateLimiter(max_messages=2, window_seconds=60, clock=clock)

    assert limiter.hit(1) is True
    assert limiter.hit(1) is True
    assert limiter.hit(1) is False
    assert limiter.hit(2) is True


def test_window_slides():
    """Test that old hits expire."""
    clock = FakeClock()
    limiter = RateLimiter(max_messages=1, window_seconds=60, clock=clock)

    assert limiter.hit(1) is True
    clock.now += 61
    assert limiter.hit(1) is True


def test_zero_disables_limit():
    """Test that a limit of 0 lets everything through."""
    limiter = RateLimiter(max_messages=0)

    assert all(limiter.hit(1) for _ in range(100))
