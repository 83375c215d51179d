"""Service for executing authenticated API calls with pacing and retries.

Every physical send goes through the RateLimiter. HTTP 429 responses are
retried with exponential backoff (2s, 4s, 8s, 16s, 32s); any other status
is handed back to the caller untouched.
"""

import logging
import time
from enum import Enum
from typing import Any, Callable, Optional

import httpx

from asmcli.domain.events.api_events import (
    ApiCallDeferred, ApiCallFailed, ApiCallInitiated, ApiCallSucceeded,
    DomainEvent, RetryScheduled,
)
from asmcli.domain.exceptions import APIError
from asmcli.domain.models.common import AccessToken
from asmcli.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

RATE_LIMITED_STATUS = 429
DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_BACKOFF_SECONDS = 2.0
DEFAULT_BACKOFF_FACTOR = 2.0


class RetryState(Enum):
    """States of a single logical request."""
    SENDING = "sending"
    BACKING_OFF = "backing_off"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


def _log_event(event: DomainEvent) -> None:
    logger.debug(f"EVENT: {event}")


class ApiRetryService:
    """Executes bearer-authenticated requests with pacing and 429 backoff."""

    def __init__(
        self,
        http_client: httpx.Client,
        rate_limiter: RateLimiter,
        token_provider: Callable[[], Optional[AccessToken]],
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_backoff_s: float = DEFAULT_INITIAL_BACKOFF_SECONDS,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        sleep: Callable[[float], None] = time.sleep,
        event_listener: Optional[Callable[[DomainEvent], None]] = None,
    ):
        """Initializes the ApiRetryService.

        Args:
            http_client: The httpx client used for every send.
            rate_limiter: Pacer shared by all sends of this client.
            token_provider: Returns the currently held access token. This
                service never authenticates on its own.
            max_retries: Maximum number of retries after a 429.
            initial_backoff_s: Delay before the first retry.
            backoff_factor: Multiplier applied per retry.
            sleep: Blocking sleep used for backoff.
            event_listener: Receives domain events; defaults to debug logging.
        """
        self.http_client = http_client
        self.rate_limiter = rate_limiter
        self.token_provider = token_provider
        self.max_retries = max_retries
        self.initial_backoff_s = initial_backoff_s
        self.backoff_factor = backoff_factor
        self._sleep = sleep
        self._dispatch_event = event_listener or _log_event

        logger.info(
            f"ApiRetryService initialized: max_retries={max_retries}, "
            f"initial_backoff={initial_backoff_s}s, factor={backoff_factor}"
        )

    def backoff_delay(self, retry_index: int) -> float:
        """Delay before retry number retry_index (0-indexed)."""
        return self.initial_backoff_s * (self.backoff_factor ** retry_index)

    def get(self, url: str) -> httpx.Response:
        """Performs one logical authenticated GET."""
        return self.execute_with_retry("GET", url)

    def execute_with_retry(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Sends a request, backing off and resending while it is throttled.

        Returns:
            The first non-429 response, whatever its status.

        Raises:
            APIError: If the response is still 429 after max_retries retries.
        """
        state = RetryState.SENDING
        retries = 0
        response: Optional[httpx.Response] = None

        while True:
            if state is RetryState.SENDING:
                response = self._send(method, url, attempt_number=retries + 1, **kwargs)
                if response.status_code != RATE_LIMITED_STATUS:
                    state = RetryState.SUCCEEDED
                elif retries < self.max_retries:
                    state = RetryState.BACKING_OFF
                else:
                    state = RetryState.EXHAUSTED

            elif state is RetryState.BACKING_OFF:
                delay = self.backoff_delay(retries)
                logger.warning(
                    f"Rate limited (429). Retrying in {delay:g} seconds... "
                    f"(attempt {retries + 1}/{self.max_retries})"
                )
                self._dispatch_event(RetryScheduled(
                    url=url, attempt_number=retries + 1,
                    max_retries=self.max_retries, delay_seconds=delay,
                ))
                self._sleep(delay)
                retries += 1
                state = RetryState.SENDING

            elif state is RetryState.SUCCEEDED:
                return response

            else:
                message = f"Rate limit exceeded after {self.max_retries} retries: {response.text}"
                logger.error(f"Giving up on {method} {url}: {message}")
                self._dispatch_event(ApiCallFailed(
                    method=method, url=url,
                    error_type=APIError.__name__, error_message=message,
                ))
                raise APIError(message)

    def _send(self, method: str, url: str, attempt_number: int, **kwargs: Any) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning(f"Sending {method} {url} without an access token.")

        with self.rate_limiter.paced() as waited:
            if waited > 0:
                self._dispatch_event(ApiCallDeferred(url=url, wait_time_seconds=waited))
            self._dispatch_event(ApiCallInitiated(method=method, url=url, attempt_number=attempt_number))
            start_time = time.perf_counter()
            response = self.http_client.request(method, url, headers=headers, **kwargs)
            latency_ms = (time.perf_counter() - start_time) * 1000

        logger.debug(f"{method} {url} -> {response.status_code} ({latency_ms:.0f} ms)")
        if response.status_code != RATE_LIMITED_STATUS:
            self._dispatch_event(ApiCallSucceeded(
                method=method, url=url,
                status_code=response.status_code, latency_ms=latency_ms,
            ))
        return response
