"""Domain models for talking to the Gather.Town HTTP API.

Includes the request descriptor, the retry policy and the client
configuration. All three are immutable once built.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from guestlist.domain.errors import GatherApiError

DEFAULT_BASE_URL = "https://gather.town/api/v2"
DEFAULT_USER_AGENT = "FC-GuestList-POC/1.0"
DEFAULT_TIMEOUT_SECONDS = 30.0


def is_retryable(error: GatherApiError) -> bool:
    """Default retry predicate: 429/5xx and network failures."""
    return error.retryable


@dataclass(frozen=True)
class ApiRequest:
    """A single API call: method, path relative to the base URL, optional body."""
    method: str
    path: str
    body: Optional[Any] = None

    def __post_init__(self):
        if not self.path.startswith("/"):
            raise ValueError(f"Request path must start with '/': {self.path!r}")
        object.__setattr__(self, "method", self.method.upper())

    def url_for(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}{self.path}"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    Attempt k (0-based) that fails with a retryable error waits
    `initial_backoff_s * backoff_factor ** k` before attempt k + 1.
    """
    max_retries: int = 3
    initial_backoff_s: float = 1.0
    backoff_factor: float = 2.0
    retry_on: Callable[[GatherApiError], bool] = field(default=is_retryable, compare=False)

    def delay_for(self, attempt: int) -> float:
        return self.initial_backoff_s * (self.backoff_factor ** attempt)


@dataclass(frozen=True)
class ClientConfig:
    """Everything the API client needs; built by the config layer."""
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    timeout_s: float = DEFAULT_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT

    def __repr__(self) -> str:
        # Keep the key out of logs
        return (
            f"ClientConfig(api_key='***', base_url={self.base_url!r}, "
            f"retry={self.retry!r}, timeout_s={self.timeout_s})"
        )
