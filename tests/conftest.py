import pytest
import httpx
from typer.testing import CliRunner

from guestlist.domain.models.api import ClientConfig, RetryPolicy
from guestlist.infrastructure.config import settings
from guestlist.infrastructure.gather.client import GatherApiClient
from guestlist.infrastructure.gather.demo_server import FakeGatherServer

TEST_BASE_URL = "https://gather.test/api/v2"


class RecordingSleep:
    """Async stand-in for asyncio.sleep that only records the requested delays."""

    def __init__(self, on_sleep=None):
        self.delays = []
        self._on_sleep = on_sleep

    async def __call__(self, seconds):
        self.delays.append(seconds)
        if self._on_sleep is not None:
            self._on_sleep(seconds)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_test_config():
    """Ensures overrides set by one test never leak into the next."""
    settings.clear_test_config()
    yield
    settings.clear_test_config()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def server():
    return FakeGatherServer()


@pytest.fixture
def client_config():
    return ClientConfig(
        api_key="test-key",
        base_url=TEST_BASE_URL,
        retry=RetryPolicy(max_retries=3, initial_backoff_s=1.0, backoff_factor=2.0),
    )


@pytest.fixture
def make_client(client_config, sleep):
    """Factory for GatherApiClient instances that never really sleep."""
    def _make(transport, config=None, listener=None):
        return GatherApiClient(config or client_config, transport=transport, sleep=sleep, listener=listener)
    return _make


@pytest.fixture
def scripted():
    """Builds a MockTransport that answers with the given replies in order.

    A reply is a (status, body) pair, a ready httpx.Response or an exception
    to raise. The last reply repeats once the script is used up. Returns
    (transport, received requests).
    """
    def _build(*replies):
        queue = list(replies)
        received = []

        def handler(request):
            received.append(request)
            reply = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(reply, Exception):
                raise reply
            if isinstance(reply, httpx.Response):
                return reply
            status, body = reply
            if body is None:
                return httpx.Response(status)
            if isinstance(body, (bytes, str)):
                return httpx.Response(status, content=body)
            return httpx.Response(status, json=body)

        return httpx.MockTransport(handler), received
    return _build


@pytest.fixture
def advancing_sleep(clock):
    """A recording sleep that moves the fake clock forward by the delay."""
    return RecordingSleep(on_sleep=clock.advance)
