"""Token bucket rate limiter shared by scrapers and API clients."""

import threading
import time
import logging
from typing import Callable, Optional

from .exceptions import RateLimitError

logger = logging.getLogger(__name__)


class TokenBucket:
    """Token bucket allowing ``requests_per_minute`` calls with short bursts.

    The bucket starts full. Each call to :meth:`acquire` takes one token and
    blocks until a token is available. Clock and sleep functions are
    injectable so the limiter can be driven without real waiting.
    """

    def __init__(self, requests_per_minute: int, capacity: Optional[int] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        """Initialize the bucket.

        Args:
            requests_per_minute: Sustained refill rate
            capacity: Maximum burst size, defaults to one
            clock: Monotonic time source in seconds
            sleep: Function used to wait for tokens
        """
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")

        self.rate = requests_per_minute / 60.0  # tokens per second
        self.capacity = float(capacity if capacity and capacity > 0 else 1)
        self._clock = clock
        self._sleep = sleep
        self._tokens = self.capacity
        self._last_refill = clock()
        self._lock = threading.Lock()

    @property
    def tokens(self) -> float:
        """Tokens currently available."""
        with self._lock:
            self._refill()
            return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._last_refill = now

    def try_acquire(self) -> bool:
        """Take a token if one is available without waiting."""
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False

    def acquire(self, timeout: Optional[float] = None) -> float:
        """Take a token, waiting for the bucket to refill if needed.

        Args:
            timeout: Maximum seconds to wait, None waits as long as needed

        Returns:
            float: Seconds spent waiting

        Raises:
            RateLimitError: If the wait would exceed ``timeout``
        """
        waited = 0.0
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    return waited
                wait_time = (1 - self._tokens) / self.rate

            if timeout is not None and waited + wait_time > timeout:
                raise RateLimitError(f"Token not available within {timeout:.2f}s")

            logger.debug(f"Rate limit reached, sleeping for {wait_time:.2f} seconds")
            self._sleep(wait_time)
            waited += wait_time
