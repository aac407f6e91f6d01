import dataclasses

import pytest

from guestlist.domain.errors import ErrorKind, GatherApiError
from guestlist.domain.models.api import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    ApiRequest,
    ClientConfig,
    RetryPolicy,
    is_retryable,
)
from guestlist.domain.models.office import OrganizationProfile, PocResults


def test_api_request_normalizes_method():
    request = ApiRequest("get", "/spaces/abc")
    assert request.method == "GET"
    assert request.body is None
    assert request.url_for("https://gather.town/api/v2/") == "https://gather.town/api/v2/spaces/abc"


def test_api_request_requires_leading_slash():
    with pytest.raises(ValueError):
        ApiRequest("GET", "spaces")


def test_api_request_is_immutable():
    request = ApiRequest("POST", "/spaces", {"name": "x"})
    with pytest.raises(dataclasses.FrozenInstanceError):
        request.path = "/other"


def test_retry_policy_defaults_and_delays():
    policy = RetryPolicy()
    assert policy.max_retries == 3
    assert [policy.delay_for(k) for k in range(3)] == [1.0, 2.0, 4.0]


def test_retry_policy_custom_factor():
    policy = RetryPolicy(max_retries=2, initial_backoff_s=0.5, backoff_factor=3.0)
    assert [policy.delay_for(k) for k in range(2)] == [0.5, 1.5]


def test_default_retry_predicate():
    assert is_retryable(GatherApiError(ErrorKind.TRANSIENT, "busy", status=503))
    assert is_retryable(GatherApiError(ErrorKind.NETWORK, "reset"))
    assert not is_retryable(GatherApiError(ErrorKind.CONFLICT, "dup", status=409))


def test_client_config_defaults():
    config = ClientConfig(api_key="k")
    assert config.base_url == DEFAULT_BASE_URL
    assert config.timeout_s == DEFAULT_TIMEOUT_SECONDS == 30.0
    assert config.user_agent == DEFAULT_USER_AGENT
    assert config.retry == RetryPolicy()


def test_client_config_repr_hides_api_key():
    config = ClientConfig(api_key="super-secret")
    assert "super-secret" not in repr(config)


def test_identical_client_configs_compare_equal():
    assert ClientConfig(api_key="k") == ClientConfig(api_key="k")


def test_organization_profile_defaults():
    profile = OrganizationProfile()
    assert profile.organization_name == "First Contact"
    assert profile.contact_email == "contact@firstcontact.lgbt"
    assert profile.space_capacity == 50


def test_poc_results_start_unsuccessful():
    results = PocResults(poc_id="abc")
    assert results.success is False
    assert results.errors == []
    assert dataclasses.asdict(results)["poc_id"] == "abc"
