"""Domain Events related to API calls and resilience.

Emitted by the API client for every attempt so a run can be traced
without reading log output.
"""

from dataclasses import dataclass, field
import time
from typing import Callable, Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class ApiCallInitiated(DomainEvent):
    """An attempt is about to be sent."""
    method: str
    path: str
    attempt_number: int  # 1-based
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallSucceeded(DomainEvent):
    """An attempt returned a 2xx JSON response."""
    method: str
    path: str
    attempt_number: int
    status: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallFailed(DomainEvent):
    """The call failed definitively (non-retryable or retries exhausted)."""
    method: str
    path: str
    attempt_number: int
    error_kind: str
    error_message: str
    status: Optional[int] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """A retryable failure occurred and another attempt will follow."""
    method: str
    path: str
    attempt_number: int
    delay_seconds: float
    status: Optional[int] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallDeferred(DomainEvent):
    """The rate ledger refused or delayed a call."""
    tier: str
    wait_time_seconds: float
    timestamp: float = field(default_factory=time.time)


EventListener = Callable[[DomainEvent], None]
