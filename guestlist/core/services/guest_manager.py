"""Core service for provisioning the organization's remote office.

Builds the space, moderator, safety and invitation payloads and sends them
through a GatherApi. Critical steps propagate their errors; the safety
configuration and the custom welcome email only log a warning on failure.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from guestlist.core import content
from guestlist.domain.errors import GuestListError
from guestlist.domain.interfaces.gather_api import GatherApi
from guestlist.domain.models.common import MODERATOR_PERMISSIONS, GuestEntry, JsonBody, SpaceId
from guestlist.domain.models.office import InviteResult, OrganizationProfile

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY_S = 2.0
REPORT_VERSION = "1.0"


def chunk(items: Sequence[Any], size: int) -> List[Sequence[Any]]:
    """Splits `items` into consecutive slices of at most `size` elements."""
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}")
    return [items[i:i + size] for i in range(0, len(items), size)]


class GuestManager:
    """Creates the branded space and manages its guest list."""

    def __init__(
        self,
        api: GatherApi,
        profile: Optional[OrganizationProfile] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        self.api = api
        self.profile = profile or OrganizationProfile()
        self._sleep = sleep or asyncio.sleep
        self.safety_configured = False

    # --- Payloads ---

    def build_space_config(self) -> JsonBody:
        p = self.profile
        return {
            "name": p.space_name,
            "description": p.space_description,
            "capacity": p.space_capacity,
            "isPrivate": True,
            "template": p.space_template,
            "customization": {
                "backgroundColor": p.brand_color,
                "logoUrl": p.logo_url,
                "welcomeMessage": f"Welcome to {p.organization_name}'s inclusive virtual office!",
                "layout": {
                    "entranceArea": {
                        "welcomeText": "This is a safe space for all identities and expressions",
                        "moderatorInfo": True,
                        "safetyGuidelines": True,
                    },
                    "workAreas": [
                        {"name": "Collaboration Zone", "capacity": 15,
                         "description": "Open workspace for team collaboration"},
                        {"name": "Quiet Work Area", "capacity": 10,
                         "description": "Focused individual work space"},
                        {"name": "Social Lounge", "capacity": 25,
                         "description": "Casual networking and social interactions"},
                    ],
                    "privateRooms": [
                        {"name": "1:1 Meeting Room", "capacity": 2,
                         "description": "Private conversations and mentoring"},
                        {"name": "Small Team Room", "capacity": 5,
                         "description": "Small group discussions and planning"},
                        {"name": "Leadership Sync", "capacity": 8,
                         "description": "Leadership team meetings and strategy"},
                    ],
                },
            },
        }

    def build_moderator_config(self) -> JsonBody:
        return {
            "email": self.profile.contact_email,
            "role": "moderator",
            "permissions": list(MODERATOR_PERMISSIONS),
            "expiresAt": None,  # permanent
            "customTitle": f"{self.profile.organization_name} Community Manager",
            "welcomeNote": "Welcome! You have full moderator privileges for this space.",
        }

    def build_safety_config(self) -> JsonBody:
        p = self.profile
        return {
            "safetySettings": {
                "moderationLevel": "strict",
                "requireModeratorApproval": False,
                "emergencyContactEmail": p.safety_email,
                "autoModeration": {
                    "enabled": True,
                    "keywords": list(content.AUTO_MODERATION_KEYWORDS),
                    "action": "mute_and_report",
                },
                "communityGuidelines": {
                    "displayOnEntry": True,
                    "requireAcknowledgment": True,
                    "content": content.community_guidelines(p),
                },
                "reportingSystem": {
                    "anonymousReporting": True,
                    "emergencyButton": True,
                    "categories": list(content.REPORT_CATEGORIES),
                    "autoEscalation": {
                        "highSeverity": True,
                        "notifyEmail": p.safety_email,
                        "responseTime": "immediate",
                    },
                },
                "accessControls": {
                    "guestAccess": "invited_only",
                    "recordingSetting": "disabled",
                    "dataRetention": "minimal",
                    "privacyMode": "enhanced",
                },
            }
        }

    def build_welcome_invitation(self, space_id: SpaceId) -> JsonBody:
        p = self.profile
        return {
            "spaceId": space_id,
            "recipients": [p.contact_email],
            "template": "custom",
            "subject": f"Welcome to {p.organization_name}'s Virtual Office - Moderator Access",
            "message": content.moderator_welcome_message(p),
            "includeCalendarEvent": False,
            "customData": {
                "role": "moderator",
                "organization": p.organization_name,
                "supportEmail": p.support_email,
            },
        }

    # --- Operations ---

    async def create_remote_office(self) -> JsonBody:
        """Creates the space, then applies the safety configuration."""
        logger.info(f"Creating {self.profile.organization_name} Remote Office...")
        try:
            space = await self.api.create_space(self.build_space_config())
        except GuestListError as e:
            logger.error(f"Failed to create space: {e}")
            raise
        logger.info(f"Space created successfully: {space.get('url')}")

        await self.configure_safety_features(space["id"])
        return space

    async def configure_safety_features(self, space_id: SpaceId) -> bool:
        """Applies the canned safety settings. Returns False if the API refused them."""
        logger.info("Configuring safety and community features...")
        try:
            await self.api.update_space(space_id, self.build_safety_config())
        except GuestListError as e:
            logger.warning(f"Some safety features may not be available: {e}")
            self.safety_configured = False
            return False
        logger.info("Safety features configured successfully")
        self.safety_configured = True
        return True

    async def add_contact_as_moderator(self, space_id: SpaceId) -> JsonBody:
        """Adds the organization contact as moderator and sends the welcome email."""
        logger.info(f"Adding {self.profile.contact_email} as moderator...")
        try:
            result = await self.api.add_guest(space_id, self.build_moderator_config())
        except GuestListError as e:
            logger.error(f"Failed to add contact: {e}")
            raise

        await self.send_moderator_welcome(space_id)
        logger.info("Contact added as moderator successfully")
        return result

    async def send_moderator_welcome(self, space_id: SpaceId) -> Optional[JsonBody]:
        try:
            invitation = await self.api.send_invitation(self.build_welcome_invitation(space_id))
        except GuestListError as e:
            logger.warning(f"Custom email failed, using default invitation: {e}")
            return None
        logger.info("Custom moderator welcome email sent")
        return invitation

    async def bulk_invite_guests(
        self,
        space_id: SpaceId,
        guests: Sequence[GuestEntry],
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_s: float = DEFAULT_BATCH_DELAY_S,
    ) -> List[InviteResult]:
        """Invites guests in fixed-size concurrent batches with a pause in between.

        Per-guest failures are captured in the returned results, not raised.
        """
        batches = chunk(list(guests), batch_size)
        logger.info(f"Processing bulk invitations for {len(guests)} guests in {len(batches)} batches...")
        results: List[InviteResult] = []

        for index, batch in enumerate(batches):
            logger.info(f"Processing batch {index + 1}/{len(batches)}...")
            results.extend(await asyncio.gather(*(self._invite_one(space_id, g) for g in batch)))
            if index < len(batches) - 1:
                logger.info(f"Waiting {batch_delay_s * 1000:.0f}ms before next batch...")
                await self._sleep(batch_delay_s)

        successful = sum(1 for r in results if r.ok)
        logger.info(f"Bulk invitation complete: {successful} successful, {len(results) - successful} failed")
        return results

    async def _invite_one(self, space_id: SpaceId, guest: GuestEntry) -> InviteResult:
        email = str(guest.get("email") or "")
        try:
            payload = dict(guest, customMessage=content.guest_invitation_message(self.profile, guest))
            response = await self.api.add_guest(space_id, payload)
        except GuestListError as e:
            logger.warning(f"Invitation for {email or '<missing email>'} failed: {e}")
            return InviteResult(email=email, ok=False, error=str(e))
        except Exception as e:
            # One bad guest must not sink the rest of the batch
            logger.error(f"Unexpected error inviting {email or '<missing email>'}: {e}", exc_info=True)
            return InviteResult(email=email, ok=False, error=f"{type(e).__name__}: {e}")
        return InviteResult(email=email, ok=True, response=response)

    def build_implementation_report(self, space: JsonBody, contact_result: Optional[JsonBody]) -> Dict[str, Any]:
        """Summarizes what was provisioned as a JSON-serializable report."""
        p = self.profile
        return {
            "metadata": {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "pocVersion": REPORT_VERSION,
                "implementedBy": f"{p.organization_name} Product Management Team",
                "purpose": "Guest list functionality demonstration",
            },
            "spaceImplementation": {
                "status": "SUCCESS",
                "spaceId": space.get("id"),
                "spaceName": space.get("name"),
                "spaceUrl": space.get("url"),
                "capacity": space.get("capacity"),
                "isPrivate": space.get("isPrivate"),
                "brandingApplied": True,
                "safetyFeaturesEnabled": self.safety_configured,
            },
            "guestListImplementation": {
                "contactAdded": contact_result is not None,
                "contactEmail": p.contact_email,
                "contactRole": "moderator",
                "contactPermissions": list(MODERATOR_PERMISSIONS),
                "invitationSent": contact_result is not None,
            },
            "safetyFeatures": {
                "communityGuidelines": "CONFIGURED",
                "moderationLevel": "STRICT",
                "emergencyReporting": "ENABLED",
                "anonymousReporting": "ENABLED",
                "autoModeration": "CONFIGURED",
            },
            "nextSteps": [
                f"Verify invitation email delivery to {p.contact_email}",
                "Test moderator access and functionality",
                "Conduct user acceptance testing with the team",
                "Scale testing with larger guest lists",
            ],
        }
