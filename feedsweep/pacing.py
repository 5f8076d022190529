from __future__ import annotations

import threading
import time
from typing import Callable


class RateLimiter:
    """
    Enforces a minimum interval between outbound feed requests.

    The first wait() returns immediately; each later call blocks until
    `min_interval_s` has passed since the previous one was granted. Shared by
    all workers of a sweep, so with N workers the overall request rate is
    still one per interval.

    `clock` and `sleep` are injectable so tests never touch the wall clock.
    """

    def __init__(
        self,
        min_interval_s: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval_s < 0:
            raise ValueError("min_interval_s must be >= 0")
        self.min_interval_s = min_interval_s
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_allowed: float | None = None

    def wait(self) -> float:
        """Block until a request may go out. Returns the seconds slept."""
        with self._lock:
            now = self._clock()
            if self._next_allowed is None or now >= self._next_allowed:
                delay = 0.0
                granted = now
            else:
                delay = self._next_allowed - now
                granted = self._next_allowed
            self._next_allowed = granted + self.min_interval_s

        if delay > 0:
            self._sleep(delay)
        return delay


class NoPacing(RateLimiter):
    def __init__(self):
        super().__init__(0.0)
