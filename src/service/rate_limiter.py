"""Rate limiter for odds provider requests.

Token bucket held in process memory. Callers block until a token is
available instead of failing, so a burst of lookups is spread over the
window rather than rejected.
Default: 10 requests per 60 seconds.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Token bucket rate limiter.

    ``capacity`` tokens refill continuously over ``window_seconds``. The
    clock and sleep functions are injectable so tests never wait.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the rate limiter.

        Args:
            max_requests: Requests allowed per window (also the burst size)
            window_seconds: Length of the window in seconds
            clock: Monotonic time source
            sleep: Blocking sleep used while waiting for a token
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.capacity = float(max_requests)
        self.rate = max_requests / window_seconds  # tokens per second
        self._clock = clock
        self._sleep = sleep
        self._tokens = self.capacity
        self._last_update = clock()
        self._lock = threading.Lock()
        self.total_wait = 0.0

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_update)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._last_update = now

    def try_acquire(self) -> bool:
        """Take a token if one is available, without waiting."""
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False

    def acquire(self) -> float:
        """
        Block until a token is available.

        Returns:
            Seconds spent waiting
        """
        waited = 0.0
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    self.total_wait += waited
                    return waited
                wait_time = (1 - self._tokens) / self.rate

            logger.debug("Rate limited, waiting %.2fs", wait_time)
            self._sleep(wait_time)
            waited += wait_time

    def get_stats(self) -> Dict[str, Any]:
        """Current limiter state."""
        with self._lock:
            self._refill()
            return {
                "tokens": self._tokens,
                "capacity": self.capacity,
                "rate_per_second": self.rate,
                "total_wait": self.total_wait,
            }
