"""Service for executing API calls with automatic retries.

Implements exponential backoff for transient errors such as server-side
rate limits (429), temporary server issues (5xx) and network failures.
Non-retryable failures are propagated on the first attempt.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Tuple

from guestlist.domain.errors import GatherApiError
from guestlist.domain.events.api_events import (
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
    DomainEvent,
    EventListener,
    RetryScheduled,
)
from guestlist.domain.models.api import ApiRequest, RetryPolicy

logger = logging.getLogger(__name__)

# One attempt: returns (status, decoded body) or raises GatherApiError
Attempt = Callable[[], Awaitable[Tuple[int, Any]]]
Sleep = Callable[[float], Awaitable[Any]]


class ApiRetryService:
    """Runs a single-attempt coroutine under a RetryPolicy."""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Optional[Sleep] = None,
        listener: Optional[EventListener] = None,
    ):
        """Initializes the ApiRetryService.

        Args:
            policy: Retry policy; defaults to 3 retries, 1s base, factor 2.
            sleep: Coroutine function used to wait between attempts.
            listener: Optional callable receiving every DomainEvent.
        """
        self.policy = policy or RetryPolicy()
        self._sleep = sleep or asyncio.sleep
        self._listener = listener

        logger.debug(
            f"ApiRetryService initialized: max_retries={self.policy.max_retries}, "
            f"initial_backoff={self.policy.initial_backoff_s}s, factor={self.policy.backoff_factor}"
        )

    def _dispatch(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        if self._listener is not None:
            self._listener(event)

    async def execute_with_retry(self, request: ApiRequest, attempt_fn: Attempt) -> Any:
        """Executes `attempt_fn` until it succeeds or the policy gives up.

        Args:
            request: The request being sent (for logging and events).
            attempt_fn: Coroutine function performing exactly one attempt.

        Returns:
            The decoded response body of the first successful attempt.

        Raises:
            GatherApiError: The last classified failure, with `attempts` set.
        """
        total_attempts = self.policy.max_retries + 1

        for attempt in range(total_attempts):
            attempt_number = attempt + 1
            logger.info(f"API Request: {request.method} {request.path} (attempt {attempt_number})")
            self._dispatch(ApiCallInitiated(request.method, request.path, attempt_number))
            start_time = time.perf_counter()
            try:
                status, body = await attempt_fn()
            except GatherApiError as e:
                e.attempts = attempt_number
                logger.warning(f"API Error on {request.method} {request.path}: {e}")

                if attempt_number >= total_attempts or not self.policy.retry_on(e):
                    if attempt_number >= total_attempts and self.policy.retry_on(e):
                        logger.error(
                            f"Max retries ({self.policy.max_retries}) reached for "
                            f"{request.method} {request.path}. Last error: {e}"
                        )
                    self._dispatch(ApiCallFailed(
                        request.method, request.path, attempt_number,
                        error_kind=e.kind.value, error_message=e.message, status=e.status,
                    ))
                    raise

                delay = self.policy.delay_for(attempt)
                logger.info(f"Retrying in {delay * 1000:.0f}ms...")
                self._dispatch(RetryScheduled(
                    request.method, request.path, attempt_number, delay_seconds=delay, status=e.status,
                ))
                await self._sleep(delay)
                continue

            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.info(f"API Success: {request.method} {request.path} ({status}, {latency_ms:.0f}ms)")
            self._dispatch(ApiCallSucceeded(request.method, request.path, attempt_number, status, latency_ms))
            return body

        # range() always ends in return or raise; kept for type checkers
        raise RuntimeError("retry loop exited without a result")
