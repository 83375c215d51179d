"""Implementation of a request pacer.

Enforces a fixed minimum interval between consecutive network sends so the
client stays under the API's rate limit. Every physical send is paced,
retries included.
"""

import time
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL_SECONDS = 1.0


class RateLimiter:
    """Minimum-interval rate limiter.

    clock and sleep are injectable so tests can drive time without sleeping.
    """

    def __init__(
        self,
        min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initializes the rate limiter.

        Args:
            min_interval: Minimum seconds between two sends.
            enabled: When False, never sleeps (offline/test mode).
            clock: Monotonic time source.
            sleep: Blocking sleep function.
        """
        self.min_interval = min_interval
        self.enabled = enabled
        self._clock = clock
        self._sleep = sleep
        self._last_request_time: Optional[float] = None
        self._lock = threading.Lock()
        logger.info(f"RateLimiter initialized: min_interval={min_interval}s, enabled={enabled}")

    @property
    def last_request_time(self) -> Optional[float]:
        return self._last_request_time

    def get_wait_time(self) -> float:
        """Estimates the time needed before the next request can be sent."""
        if not self.enabled or self._last_request_time is None:
            return 0.0
        elapsed = self._clock() - self._last_request_time
        return max(0.0, self.min_interval - elapsed)

    def wait_for_permission(self) -> float:
        """Blocks until a send is permitted.

        Returns:
            The number of seconds slept.
        """
        wait_time = self.get_wait_time()
        if wait_time > 0:
            logger.debug(f"Pacing request. Waiting for {wait_time:.2f} seconds.")
            self._sleep(wait_time)
        return wait_time

    def record_request(self) -> None:
        """Marks that a request was just sent."""
        self._last_request_time = self._clock()

    @contextmanager
    def paced(self) -> Iterator[float]:
        """Wraps one network send: waits on entry, records the send on exit.

        The lock is held for the whole send so concurrent callers are spaced
        one after another instead of sharing a slot. The send time is
        recorded even if the request raises.
        """
        with self._lock:
            waited = self.wait_for_permission()
            try:
                yield waited
            finally:
                self.record_request()
