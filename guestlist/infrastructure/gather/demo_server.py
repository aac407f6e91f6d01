"""In-memory stand-in for the Gather.Town API.

Served through `httpx.MockTransport`, so the real GatherApiClient (headers,
retries, error classification) runs unchanged against it. Used by
`guestlist run --demo` and by the test suite.
"""

import itertools
import json
import logging
import re
from collections import deque
from typing import Any, Deque, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEMO_BASE_URL = "https://gather.demo/api/v2"
DEMO_API_KEY = "demo-api-key"
SPACE_APP_URL = "https://gather.town/app/"

_SPACE = re.compile(r"^/spaces/(?P<space>[^/]+)$")
_GUESTS = re.compile(r"^/spaces/(?P<space>[^/]+)/guests$")
_GUEST = re.compile(r"^/spaces/(?P<space>[^/]+)/guests/(?P<guest>[^/]+)$")


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "space"


def _reply(status: int, body: Any) -> httpx.Response:
    return httpx.Response(status, json=body)


class FakeGatherServer:
    """Keeps spaces, guests, invitations and webhooks in dictionaries."""

    def __init__(self, base_path: str = "/api/v2"):
        self.base_path = base_path.rstrip("/")
        self.spaces: Dict[str, Dict[str, Any]] = {}
        self.guests: Dict[str, List[Dict[str, Any]]] = {}
        self.invitations: List[Dict[str, Any]] = []
        self.webhooks: List[Dict[str, Any]] = []
        self.requests: List[httpx.Request] = []
        self._failures: Deque[int] = deque()
        self._ids = itertools.count(1)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def queue_failures(self, *statuses: int) -> None:
        """The next len(statuses) requests answer with these status codes."""
        self._failures.extend(statuses)

    def seed_space(self, space_id: str, name: str = "Demo Space") -> Dict[str, Any]:
        """Registers an existing space so guest endpoints can target it."""
        space = {"id": space_id, "name": name, "url": SPACE_APP_URL + f"{_slug(name)}-{space_id}"}
        self.spaces[space_id] = space
        self.guests.setdefault(space_id, [])
        return space

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._failures:
            status = self._failures.popleft()
            return _reply(status, {"message": f"Simulated failure {status}"})

        if not request.headers.get("Authorization", "").startswith("Bearer "):
            return _reply(401, {"message": "Missing bearer token"})

        path = request.url.path
        if not path.startswith(self.base_path):
            return _reply(404, {"message": f"Unknown path {path}"})
        path = path[len(self.base_path):] or "/"
        body = json.loads(request.content) if request.content else None
        method = request.method

        if path == "/spaces" and method == "POST":
            return self._create_space(body or {})
        if path == "/invitations" and method == "POST":
            return self._create_invitation(body or {})
        if path == "/webhooks" and method == "POST":
            return self._create_webhook(body or {})

        match = _SPACE.match(path)
        if match:
            space = self.spaces.get(match["space"])
            if space is None:
                return _reply(404, {"message": "Space not found"})
            if method == "GET":
                return _reply(200, space)
            if method == "PUT":
                space.update(body or {})
                return _reply(200, space)

        match = _GUESTS.match(path)
        if match:
            space_id = match["space"]
            if space_id not in self.spaces:
                return _reply(404, {"message": "Space not found"})
            if method == "GET":
                return _reply(200, {"guests": self.guests[space_id]})
            if method == "POST":
                return self._add_guests(space_id, body or {})

        match = _GUEST.match(path)
        if match:
            guest = self._find_guest(match["space"], match["guest"])
            if guest is None:
                return _reply(404, {"message": "Guest not found"})
            if method == "PUT":
                guest.update(body or {})
                return _reply(200, guest)
            if method == "DELETE":
                self.guests[match["space"]].remove(guest)
                return _reply(200, {"id": guest["id"], "deleted": True})

        return _reply(405 if path.startswith("/spaces") else 404, {"message": f"No route for {method} {path}"})

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}_{next(self._ids)}"

    def _create_space(self, config: Dict[str, Any]) -> httpx.Response:
        if not config.get("name"):
            return _reply(400, {"message": "Space name is required"})
        space_id = self._next_id("space_demo")
        space = dict(config, id=space_id, url=SPACE_APP_URL + f"{_slug(config['name'])}-{space_id}")
        self.spaces[space_id] = space
        self.guests[space_id] = []
        logger.debug(f"Demo server created space {space_id}")
        return _reply(201, space)

    def _add_guests(self, space_id: str, body: Dict[str, Any]) -> httpx.Response:
        guests = body.get("guests") or []
        if not guests or any(not isinstance(g.get("email"), str) or not g["email"] for g in guests):
            return _reply(400, {"message": "Invalid guest configuration"})
        existing = {g["email"].lower() for g in self.guests[space_id]}
        if any(g["email"].lower() in existing for g in guests):
            return _reply(409, {"message": "Guest already exists in space"})
        added = []
        for guest in guests:
            entry = dict(guest, id=self._next_id("guest"))
            entry.setdefault("role", "member")
            self.guests[space_id].append(entry)
            added.append(entry)
        sent = len(added) if body.get("sendInvitation") else 0
        return _reply(201, {"guests": added, "invitationsSent": sent})

    def _find_guest(self, space_id: str, guest_id: str) -> Optional[Dict[str, Any]]:
        for guest in self.guests.get(space_id, []):
            if guest["id"] == guest_id:
                return guest
        return None

    def _create_invitation(self, config: Dict[str, Any]) -> httpx.Response:
        if not config.get("recipients"):
            return _reply(400, {"message": "At least one recipient is required"})
        invitation = dict(config, id=self._next_id("invitation"), status="sent")
        self.invitations.append(invitation)
        return _reply(201, invitation)

    def _create_webhook(self, config: Dict[str, Any]) -> httpx.Response:
        if not config.get("url"):
            return _reply(400, {"message": "Webhook url is required"})
        webhook = dict(config, id=self._next_id("webhook"))
        self.webhooks.append(webhook)
        return _reply(201, webhook)
