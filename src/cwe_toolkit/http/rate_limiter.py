"""
Minimum-interval rate limiter shared by HTTP transports.
"""

import logging
import threading
import time

from ..shared.models import DEFAULT_RATE_LIMIT_INTERVAL

logger = logging.getLogger(__name__)


class RateLimiter:
    """Releases callers no closer together than ``interval`` seconds.

    Concurrent waiters each reserve their own slot, so they are released
    one interval apart. An interval of zero or less disables pacing.
    """

    def __init__(self, interval: float = DEFAULT_RATE_LIMIT_INTERVAL):
        self._interval = max(float(interval), 0.0)
        self._lock = threading.Lock()
        # The first wait() after construction must not sleep
        self._last_release = time.monotonic() - self._interval

    @classmethod
    def from_requests_per_second(cls, requests_per_second: float) -> "RateLimiter":
        """Create a limiter allowing ``requests_per_second`` releases per second."""
        if requests_per_second <= 0:
            return cls(0.0)
        return cls(1.0 / requests_per_second)

    @property
    def interval(self) -> float:
        with self._lock:
            return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        with self._lock:
            self._interval = max(float(value), 0.0)

    def wait(self) -> None:
        """Block until the caller may issue its request.

        Each caller reserves the next release slot under the lock and sleeps
        after releasing it, so concurrent callers keep their spacing without
        blocking readers of ``interval``.
        """
        with self._lock:
            now = time.monotonic()
            release = now
            if self._interval > 0:
                release = max(now, self._last_release + self._interval)
            self._last_release = release

        delay = release - now
        if delay > 0:
            logger.debug(f"Rate limiter sleeping {delay:.3f}s")
            time.sleep(delay)

    def reset(self) -> None:
        """Let the next wait() return immediately."""
        with self._lock:
            self._last_release = time.monotonic() - self._interval


DEFAULT_RATE_LIMITER = RateLimiter(DEFAULT_RATE_LIMIT_INTERVAL)
