import pytest

from feedsweep.pacing import NoPacing, RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_first_wait_is_free_then_fixed_interval():
    fc = FakeClock()
    limiter = RateLimiter(2.0, clock=fc.clock, sleep=fc.sleep)

    assert limiter.wait() == 0.0
    assert limiter.wait() == 2.0
    assert limiter.wait() == 2.0
    assert fc.sleeps == [2.0, 2.0]


def test_time_already_spent_counts_toward_interval():
    fc = FakeClock()
    limiter = RateLimiter(2.0, clock=fc.clock, sleep=fc.sleep)

    limiter.wait()
    fc.now += 1.5  # slow fetch
    assert limiter.wait() == pytest.approx(0.5)
    fc.now += 5.0
    assert limiter.wait() == 0.0


def test_no_pacing_never_sleeps():
    limiter = NoPacing()
    assert [limiter.wait() for _ in range(5)] == [0.0] * 5


def test_negative_interval_rejected():
    with pytest.raises(ValueError):
        RateLimiter(-1.0)
