import asyncio
from datetime import date

import httpx
import pytest

from guestlist.core import content
from guestlist.core.services.guest_manager import GuestManager, chunk
from guestlist.domain.errors import ErrorKind, GatherApiError
from guestlist.domain.interfaces.gather_api import GatherApi
from guestlist.domain.models.common import MODERATOR_PERMISSIONS
from guestlist.domain.models.office import OrganizationProfile

PROFILE = OrganizationProfile(contact_email="ada@example.com", space_capacity=30)


@pytest.fixture
def demo_manager(server, make_client, sleep):
    """GuestManager talking to the in-memory server through the real client."""
    return GuestManager(make_client(server.transport()), PROFILE, sleep=sleep)


@pytest.fixture
def mock_api(mocker):
    api = mocker.AsyncMock(spec=GatherApi)
    api.create_space.return_value = {"id": "space_1", "url": "https://gather.town/app/x"}
    api.update_space.return_value = {}
    api.add_guest.return_value = {"guests": [{"id": "guest_1"}]}
    api.send_invitation.return_value = {"id": "invitation_1"}
    return api


def test_chunk():
    assert chunk([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert chunk([], 3) == []
    with pytest.raises(ValueError):
        chunk([1], 0)


def test_space_config_is_branded_and_private():
    config = GuestManager(None, PROFILE).build_space_config()

    assert config["isPrivate"] is True
    assert config["capacity"] == 30
    assert config["customization"]["backgroundColor"] == "#FF6B35"
    assert len(config["customization"]["layout"]["workAreas"]) == 3
    assert len(config["customization"]["layout"]["privateRooms"]) == 3


def test_moderator_config():
    config = GuestManager(None, PROFILE).build_moderator_config()

    assert config["email"] == "ada@example.com"
    assert config["role"] == "moderator"
    assert config["permissions"] == MODERATOR_PERMISSIONS
    assert config["expiresAt"] is None


def test_safety_config_uses_invited_only_access():
    safety = GuestManager(None, PROFILE).build_safety_config()["safetySettings"]

    assert safety["moderationLevel"] == "strict"
    assert safety["accessControls"]["guestAccess"] == "invited_only"
    assert safety["autoModeration"]["keywords"] == content.AUTO_MODERATION_KEYWORDS
    assert "COMMUNITY GUIDELINES" in safety["communityGuidelines"]["content"]


def test_create_remote_office_configures_safety(demo_manager, server):
    space = asyncio.run(demo_manager.create_remote_office())

    assert space["name"] == PROFILE.space_name
    assert demo_manager.safety_configured is True
    assert server.spaces[space["id"]]["safetySettings"]["moderationLevel"] == "strict"


def test_safety_failure_does_not_abort(mock_api):
    mock_api.update_space.side_effect = GatherApiError(ErrorKind.PERMISSION, "plan limit", status=403)
    manager = GuestManager(mock_api, PROFILE)

    space = asyncio.run(manager.create_remote_office())

    assert space["id"] == "space_1"
    assert manager.safety_configured is False


def test_create_failure_propagates(mock_api):
    mock_api.create_space.side_effect = GatherApiError(ErrorKind.VALIDATION, "bad", status=400)

    with pytest.raises(GatherApiError):
        asyncio.run(GuestManager(mock_api, PROFILE).create_remote_office())
    mock_api.update_space.assert_not_called()


def test_add_contact_as_moderator(demo_manager, server):
    space = server.seed_space("space_x")

    result = asyncio.run(demo_manager.add_contact_as_moderator(space["id"]))

    assert result["guests"][0]["role"] == "moderator"
    assert server.guests["space_x"][0]["email"] == "ada@example.com"
    assert server.invitations[0]["recipients"] == ["ada@example.com"]
    assert server.invitations[0]["customData"]["role"] == "moderator"


def test_welcome_failure_is_only_a_warning(mock_api):
    mock_api.send_invitation.side_effect = GatherApiError(ErrorKind.TRANSIENT, "busy", status=503)

    result = asyncio.run(GuestManager(mock_api, PROFILE).add_contact_as_moderator("space_1"))

    assert result == {"guests": [{"id": "guest_1"}]}


def test_add_contact_failure_propagates(mock_api):
    mock_api.add_guest.side_effect = GatherApiError(ErrorKind.CONFLICT, "exists", status=409)

    with pytest.raises(GatherApiError):
        asyncio.run(GuestManager(mock_api, PROFILE).add_contact_as_moderator("space_1"))
    mock_api.send_invitation.assert_not_called()


def test_bulk_invite_in_batches(demo_manager, server, sleep):
    server.seed_space("space_x")
    guests = [
        {"email": "one@example.com", "name": "One"},
        {"email": "two@example.com"},
        {"name": "No Email"},
        {"email": "four@example.com", "role": "member"},
        {"email": "five@example.com"},
    ]

    results = asyncio.run(demo_manager.bulk_invite_guests("space_x", guests, batch_size=2, batch_delay_s=0.5))

    assert [r.ok for r in results] == [True, True, False, True, True]
    assert results[2].email == ""
    assert "validation" in results[2].error
    assert sleep.delays == [0.5, 0.5]
    assert len(server.guests["space_x"]) == 4
    first = next(g for g in server.guests["space_x"] if g["email"] == "one@example.com")
    assert first["customMessage"].startswith("Hi One!")


def test_bulk_invite_reports_duplicates(demo_manager, server):
    server.seed_space("space_x")
    asyncio.run(demo_manager.bulk_invite_guests("space_x", [{"email": "one@example.com"}]))

    results = asyncio.run(demo_manager.bulk_invite_guests("space_x", [{"email": "one@example.com"}]))

    assert results[0].ok is False
    assert "conflict" in results[0].error


def test_bulk_invite_captures_unexpected_errors(mock_api):
    async def add_guest(space_id, guest):
        if guest["email"] == "bad@example.com":
            raise RuntimeError("boom")
        return {"guests": [{"email": guest["email"]}]}
    mock_api.add_guest.side_effect = add_guest
    guests = [{"email": "ok@example.com"}, {"email": "bad@example.com"}, {"email": "also@example.com"}]

    results = asyncio.run(GuestManager(mock_api, PROFILE).bulk_invite_guests("space_1", guests, batch_delay_s=0))

    assert [r.ok for r in results] == [True, False, True]
    assert results[1].error == "RuntimeError: boom"


def test_bulk_invite_survives_undecodable_responses(make_client, scripted):
    garbage = httpx.Response(200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip at all"))
    transport, _ = scripted(garbage)
    manager = GuestManager(make_client(transport), PROFILE)

    results = asyncio.run(manager.bulk_invite_guests("space_1", [{"email": "one@example.com"}], batch_delay_s=0))

    assert results[0].ok is False
    assert "invalid_response" in results[0].error


def test_bulk_invite_rejects_non_string_email(demo_manager, server):
    server.seed_space("space_x")

    results = asyncio.run(demo_manager.bulk_invite_guests("space_x", [{"email": "ok@example.com"}, {"email": 123}]))

    assert [r.ok for r in results] == [True, False]
    assert results[1].email == "123"
    assert len(server.guests["space_x"]) == 1


def test_implementation_report(mock_api):
    manager = GuestManager(mock_api, PROFILE)
    manager.safety_configured = True
    space = {"id": "space_1", "name": "Office", "url": "https://gather.town/app/x", "capacity": 30, "isPrivate": True}

    report = manager.build_implementation_report(space, {"guests": []})

    assert report["spaceImplementation"]["spaceId"] == "space_1"
    assert report["spaceImplementation"]["safetyFeaturesEnabled"] is True
    assert report["guestListImplementation"]["contactAdded"] is True
    assert report["guestListImplementation"]["contactEmail"] == "ada@example.com"
    assert report["metadata"]["pocVersion"] == "1.0"
    assert len(report["nextSteps"]) == 4


def test_report_without_contact(mock_api):
    report = GuestManager(mock_api, PROFILE).build_implementation_report({"id": "space_1"}, None)
    assert report["guestListImplementation"]["contactAdded"] is False


def test_messages_mention_the_organization():
    welcome = content.moderator_welcome_message(PROFILE, today=date(2024, 5, 1))
    assert welcome.startswith("Welcome to First Contact's Virtual Office!")
    assert welcome.endswith("2024-05-01")
    assert content.guest_invitation_message(PROFILE, {"email": "x@example.com"}).startswith("Hi there!")
