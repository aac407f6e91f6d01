"""Client-side rate ledger.

Tracks request timestamps per named tier inside a rolling window and
refuses requests that would exceed the tier's quota. Nothing consults the
ledger implicitly: wrap a client in `RateLimitedClient` to opt in.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, Iterable, Optional

from guestlist.domain.errors import ConfigurationError, RateLimitExceeded
from guestlist.domain.events.api_events import ApiCallDeferred, EventListener
from guestlist.domain.interfaces.gather_api import GatherApi
from guestlist.domain.models.api import ApiRequest

logger = logging.getLogger(__name__)

DEFAULT_TIER = "standard"


@dataclass(frozen=True)
class RateTier:
    """A named quota: at most `max_requests` per rolling `window_s` seconds."""
    name: str
    max_requests: int
    window_s: float


DEFAULT_TIERS = (
    RateTier("standard", 1000, 3600),  # 1000/hour
    RateTier("premium", 5000, 3600),   # 5000/hour
    RateTier("burst", 100, 60),        # 100/minute
)


class RateLimiter:
    """Sliding window rate ledger with one window per tier."""

    def __init__(
        self,
        tiers: Iterable[RateTier] = DEFAULT_TIERS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        """Initializes the rate ledger.

        Args:
            tiers: Quotas the ledger knows about.
            clock: Monotonic clock in seconds.
            sleep: Coroutine function used by `wait_for_permission`.
        """
        self.tiers: Dict[str, RateTier] = {tier.name: tier for tier in tiers}
        for tier in self.tiers.values():
            if tier.max_requests < 1 or tier.window_s <= 0:
                raise ConfigurationError(f"Invalid rate tier: {tier}")
        self._clock = clock
        self._sleep = sleep or asyncio.sleep
        self._timestamps: Dict[str, Deque[float]] = {name: deque() for name in self.tiers}
        self._lock = asyncio.Lock()
        logger.info(
            "RateLimiter initialized: "
            + ", ".join(f"{t.name}={t.max_requests}/{t.window_s:g}s" for t in self.tiers.values())
        )

    def get_tier(self, name: str) -> RateTier:
        try:
            return self.tiers[name]
        except KeyError:
            raise ConfigurationError(f"Unknown rate tier: {name!r}") from None

    def _cleanup_timestamps(self, tier: RateTier, now: float) -> Deque[float]:
        """Removes timestamps whose age has reached the tier's window."""
        timestamps = self._timestamps[tier.name]
        while timestamps and now - timestamps[0] >= tier.window_s:
            timestamps.popleft()
        return timestamps

    def usage(self, tier: str = DEFAULT_TIER) -> int:
        """Number of requests currently recorded for `tier` (not pruned)."""
        return len(self._timestamps[self.get_tier(tier).name])

    async def check(self, tier: str = DEFAULT_TIER) -> None:
        """Records a request against `tier` or refuses it.

        Raises:
            RateLimitExceeded: With the time until the oldest entry expires.
            ConfigurationError: If `tier` is unknown.
        """
        quota = self.get_tier(tier)
        async with self._lock:
            now = self._clock()
            timestamps = self._cleanup_timestamps(quota, now)
            if len(timestamps) >= quota.max_requests:
                wait_time = max(0.0, timestamps[0] + quota.window_s - now)
                logger.debug(f"Rate limit reached for tier '{tier}'. Reset in {wait_time:.2f}s")
                raise RateLimitExceeded(tier, wait_time)
            timestamps.append(now)
            logger.debug(f"Rate limit permission granted for tier '{tier}' ({len(timestamps)}/{quota.max_requests}).")

    async def wait_for_permission(self, tier: str = DEFAULT_TIER) -> None:
        """Waits until a request is permitted, then records it."""
        while True:
            try:
                await self.check(tier)
                return
            except RateLimitExceeded as e:
                logger.debug(f"Rate limit reached. Waiting for {e.retry_after_s:.2f} seconds.")
                await self._sleep(e.retry_after_s)

    async def get_wait_time(self, tier: str = DEFAULT_TIER) -> float:
        """Estimates the time needed before the next request can be made."""
        quota = self.get_tier(tier)
        async with self._lock:
            now = self._clock()
            timestamps = self._cleanup_timestamps(quota, now)
            if len(timestamps) < quota.max_requests:
                return 0.0
            return max(0.0, timestamps[0] + quota.window_s - now)


class RateLimitedClient(GatherApi):
    """Consults a RateLimiter before every call to the wrapped API.

    With `block=False` a refused call raises RateLimitExceeded; with
    `block=True` it waits for the window to free up instead.
    """

    def __init__(
        self,
        api: GatherApi,
        rate_limiter: RateLimiter,
        tier: str = DEFAULT_TIER,
        block: bool = False,
        listener: Optional[EventListener] = None,
    ):
        rate_limiter.get_tier(tier)
        self.api = api
        self.rate_limiter = rate_limiter
        self.tier = tier
        self.block = block
        self._listener = listener

    async def send(self, request: ApiRequest) -> Any:
        if self.block:
            wait_time = await self.rate_limiter.get_wait_time(self.tier)
            if wait_time > 0 and self._listener is not None:
                self._listener(ApiCallDeferred(self.tier, wait_time))
            await self.rate_limiter.wait_for_permission(self.tier)
        else:
            try:
                await self.rate_limiter.check(self.tier)
            except RateLimitExceeded as e:
                if self._listener is not None:
                    self._listener(ApiCallDeferred(self.tier, e.retry_after_s))
                raise
        return await self.api.send(request)

    async def aclose(self) -> None:
        await self.api.aclose()
