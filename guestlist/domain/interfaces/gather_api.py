"""Interface for the Gather.Town API.

The guest manager depends on this contract; the plain client and the
rate-limited decorator both implement it.
"""

import abc
from typing import Any, List, Optional, Union
from urllib.parse import quote

from guestlist.domain.models.api import ApiRequest
from guestlist.domain.models.common import GuestId, JsonBody, SpaceId


class GatherApi(abc.ABC):
    """Abstract Base Class for Gather.Town API access."""

    @abc.abstractmethod
    async def send(self, request: ApiRequest) -> Any:
        """Sends a request and returns the decoded JSON body.

        Raises:
            GatherApiError: On a classified failure, after any retries.
        """
        pass

    async def create_space(self, space_config: JsonBody) -> JsonBody:
        return await self.send(ApiRequest("POST", "/spaces", space_config))

    async def get_space(self, space_id: SpaceId) -> JsonBody:
        return await self.send(ApiRequest("GET", f"/spaces/{_segment(space_id)}"))

    async def update_space(self, space_id: SpaceId, updates: JsonBody) -> JsonBody:
        return await self.send(ApiRequest("PUT", f"/spaces/{_segment(space_id)}", updates))

    async def add_guest(
        self, space_id: SpaceId, guest_config: Union[JsonBody, List[JsonBody]]
    ) -> JsonBody:
        guests = guest_config if isinstance(guest_config, list) else [guest_config]
        body = {"guests": guests, "sendInvitation": True}
        return await self.send(ApiRequest("POST", f"/spaces/{_segment(space_id)}/guests", body))

    async def get_guest_list(self, space_id: SpaceId) -> JsonBody:
        return await self.send(ApiRequest("GET", f"/spaces/{_segment(space_id)}/guests"))

    async def update_guest(self, space_id: SpaceId, guest_id: GuestId, updates: JsonBody) -> JsonBody:
        path = f"/spaces/{_segment(space_id)}/guests/{_segment(guest_id)}"
        return await self.send(ApiRequest("PUT", path, updates))

    async def remove_guest(self, space_id: SpaceId, guest_id: GuestId) -> JsonBody:
        path = f"/spaces/{_segment(space_id)}/guests/{_segment(guest_id)}"
        return await self.send(ApiRequest("DELETE", path))

    async def send_invitation(self, invitation_config: JsonBody) -> JsonBody:
        return await self.send(ApiRequest("POST", "/invitations", invitation_config))

    async def create_webhook(self, webhook_config: JsonBody) -> JsonBody:
        return await self.send(ApiRequest("POST", "/webhooks", webhook_config))

    async def aclose(self) -> None:
        """Releases transport resources. No-op by default."""
        return None


def _segment(value: Optional[str]) -> str:
    if not value:
        raise ValueError("Path identifier must be a non-empty string")
    return quote(str(value), safe="")
