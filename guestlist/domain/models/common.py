"""Defines common Value Objects used across the guest-list contexts.

These are plain strings/ints at runtime; NewType gives them semantic names
in signatures.
"""

from typing import Any, Dict, List, NewType, TypedDict

# === Vendor identifiers ===
SpaceId = NewType("SpaceId", str)        # Opaque id of a Gather.Town space
GuestId = NewType("GuestId", str)        # Id of a guest-list entry
EmailAddress = NewType("EmailAddress", str)
PocId = NewType("PocId", str)            # Id of a single POC execution

# === Payloads ===
JsonBody = Dict[str, Any]                # Decoded JSON object from the API


class GuestEntry(TypedDict, total=False):
    """A guest as supplied for (bulk) invitation."""
    email: str
    name: str
    role: str
    permissions: List[str]


MODERATOR_PERMISSIONS: List[str] = [
    "can_mute",
    "can_remove_users",
    "can_manage_guests",
    "can_modify_space",
    "can_access_analytics",
    "can_create_breakout_rooms",
    "can_broadcast_messages",
    "can_manage_safety_settings",
]
