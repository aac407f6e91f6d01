"""Concrete implementation of the GatherApi interface over httpx.

Attaches authentication and client headers, classifies every failure into
an ErrorKind and delegates the attempt loop to ApiRetryService. Holds no
mutable state after construction, so concurrent `send` calls are safe.
"""

import logging
from typing import Any, Optional, Tuple
from urllib.parse import urlparse

import httpx

from guestlist.domain.errors import ConfigurationError, ErrorKind, GatherApiError, classify_status
from guestlist.domain.events.api_events import EventListener
from guestlist.domain.interfaces.gather_api import GatherApi
from guestlist.domain.models.api import ApiRequest, ClientConfig
from guestlist.infrastructure.resilience.api_retry import ApiRetryService, Sleep

logger = logging.getLogger(__name__)


def validate_config(config: ClientConfig) -> None:
    """Fails fast on a configuration no request could succeed with."""
    if not isinstance(config.api_key, str) or not config.api_key.strip():
        raise ConfigurationError("Gather.Town API key is required")
    parsed = urlparse(config.base_url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"Invalid Gather.Town base URL: {config.base_url!r}")
    if config.retry.max_retries < 0 or config.retry.initial_backoff_s < 0:
        raise ConfigurationError(f"Invalid retry policy: {config.retry!r}")
    if config.timeout_s <= 0:
        raise ConfigurationError(f"Request timeout must be positive, got {config.timeout_s}")


def build_async_client(
    config: ClientConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Creates an `httpx.AsyncClient` carrying the Gather.Town headers."""
    headers = {
        "Authorization": f"Bearer {config.api_key}",
        "Content-Type": "application/json",
        "User-Agent": config.user_agent,
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.timeout_s),
        headers=headers,
        transport=transport,
    )


def _error_message(response: httpx.Response, body: Any) -> str:
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


class GatherApiClient(GatherApi):
    """Gather.Town API client with bounded retry and error classification."""

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Sleep] = None,
        listener: Optional[EventListener] = None,
    ):
        """Initializes the client. No network activity happens here.

        Args:
            config: API key, base URL, retry policy and timeout.
            transport: Optional httpx transport (tests, demo mode).
            sleep: Coroutine function used for backoff waits.
            listener: Optional callable receiving every DomainEvent.

        Raises:
            ConfigurationError: If the configuration is unusable.
        """
        validate_config(config)
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._retry = ApiRetryService(config.retry, sleep=sleep, listener=listener)
        self._http = build_async_client(config, transport)
        logger.info(f"GatherApiClient initialized for {self.base_url}")

    async def __aenter__(self) -> "GatherApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def send(self, request: ApiRequest) -> Any:
        """Sends `request`, retrying transient failures per the retry policy."""
        return await self._retry.execute_with_retry(request, lambda: self._send_once(request))

    async def _send_once(self, request: ApiRequest) -> Tuple[int, Any]:
        url = request.url_for(self.base_url)
        try:
            response = await self._http.request(request.method, url, json=request.body)
        except httpx.TransportError as e:
            raise GatherApiError(ErrorKind.NETWORK, str(e) or type(e).__name__) from e
        except httpx.RequestError as e:
            # Undecodable content encoding, redirect loops
            raise GatherApiError(ErrorKind.INVALID_RESPONSE, str(e) or type(e).__name__) from e

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = None
            if response.is_success:
                raise GatherApiError(
                    ErrorKind.INVALID_RESPONSE,
                    "Response body is not valid JSON",
                    status=response.status_code,
                )

        if response.is_success:
            return response.status_code, body

        kind = classify_status(response.status_code)
        payload = request.body if kind is ErrorKind.VALIDATION else None
        raise GatherApiError(
            kind,
            _error_message(response, body),
            status=response.status_code,
            payload=payload,
        )
