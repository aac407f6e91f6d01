"""Domain errors for the guest-list toolkit.

HTTP failures are represented by a single exception type, `GatherApiError`,
tagged with an `ErrorKind` from a closed enumeration. Callers branch on the
kind instead of on a per-status class hierarchy.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Classification of a failed API call."""
    VALIDATION = "validation"            # 400, request payload rejected
    PERMISSION = "permission"            # 403
    CONFLICT = "conflict"                # 409, e.g. duplicate guest
    TRANSIENT = "transient"              # 429 or 5xx
    CLIENT = "client"                    # any other 4xx
    NETWORK = "network"                  # no response received
    INVALID_RESPONSE = "invalid_response"  # undecodable or non-JSON 2xx body

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.TRANSIENT, ErrorKind.NETWORK)


def classify_status(status: int) -> ErrorKind:
    """Maps a non-2xx HTTP status code onto an ErrorKind."""
    if status == 400:
        return ErrorKind.VALIDATION
    if status == 403:
        return ErrorKind.PERMISSION
    if status == 409:
        return ErrorKind.CONFLICT
    if status == 429 or status >= 500:
        return ErrorKind.TRANSIENT
    return ErrorKind.CLIENT


class GuestListError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(GuestListError):
    """Raised when the client or application is set up incorrectly."""


class VerificationError(GuestListError):
    """Raised when a provisioned space does not match what was requested."""


class GatherApiError(GuestListError):
    """A classified failure from the Gather.Town HTTP API.

    Attributes:
        kind: The ErrorKind this failure was classified as.
        status: Last HTTP status seen, or None when no response arrived.
        message: Server-provided message or transport error text.
        payload: The rejected request body (VALIDATION only).
        attempts: Number of attempts made before giving up.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status: Optional[int] = None,
        payload: Any = None,
        attempts: int = 1,
    ):
        self.kind = kind
        self.status = status
        self.message = message
        self.payload = payload
        self.attempts = attempts
        status_text = status if status is not None else "no response"
        super().__init__(f"{kind.value} error ({status_text}): {message}")

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class RateLimitExceeded(GuestListError):
    """Raised by the client-side rate ledger when a tier's quota is used up."""

    def __init__(self, tier: str, retry_after_s: float):
        self.tier = tier
        self.retry_after_s = retry_after_s
        super().__init__(
            f"Rate limit exceeded for tier '{tier}'. Reset in {retry_after_s * 1000:.0f}ms"
        )
