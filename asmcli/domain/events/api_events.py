"""Domain Events related to API calls and resilience.

Emitted by the retrying executor when calls are sent, deferred by pacing,
retried after a 429, or given up on.
"""

from dataclasses import dataclass, field
import time
from typing import Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an API request is about to be sent."""
    method: str
    url: str
    attempt_number: int = 1
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when a request completes without being throttled.

    "Succeeded" here means the executor is done with it; the status may
    still be 404 or 5xx for the caller to interpret.
    """
    method: str
    url: str
    status_code: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a request is abandoned after exhausting retries."""
    method: str
    url: str
    error_type: str
    error_message: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when pacing holds a request back."""
    url: str
    wait_time_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a 429 response schedules a retry."""
    url: str
    attempt_number: int
    max_retries: int
    delay_seconds: float
    request_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
