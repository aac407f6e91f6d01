"""Message content sent along with invitations and safety settings."""

from datetime import date
from typing import Optional

from guestlist.domain.models.common import GuestEntry
from guestlist.domain.models.office import OrganizationProfile

AUTO_MODERATION_KEYWORDS = ["hate", "harassment", "discrimination", "violence"]

REPORT_CATEGORIES = [
    "harassment",
    "discrimination",
    "inappropriate_behavior",
    "technical_issue",
    "other",
]


def moderator_welcome_message(profile: OrganizationProfile, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"""
Welcome to {profile.organization_name}'s Virtual Office!

As a moderator you can manage guest lists and permissions, modify the
space layout, access analytics, respond to safety reports, create breakout
rooms and broadcast messages to everyone in the space.

Getting started:
1. Click the invitation link to access your space
2. Customize your avatar
3. Explore the areas and test the moderator controls
4. Invite additional team members

Technical issues: {profile.support_email}
Safety concerns: {profile.safety_email}

---
{profile.organization_name} Product Management Team
{today.isoformat()}
""".strip()


def community_guidelines(profile: OrganizationProfile) -> str:
    return f"""
{profile.organization_name.upper()} COMMUNITY GUIDELINES

This space welcomes all identities, expressions and backgrounds.

Expected: use correct names and pronouns, respect boundaries and consent,
report concerns to moderators promptly.

Not accepted: discrimination, harassment or hate speech, misgendering or
deadnaming, doxxing, trolling or spam.

Safety team: {profile.safety_email}
General support: {profile.contact_email}
""".strip()


def guest_invitation_message(profile: OrganizationProfile, guest: GuestEntry) -> str:
    name = guest.get("name") or "there"
    return f"""
Hi {name}!

You're invited to join {profile.organization_name}'s virtual office, a safe
and inclusive space with collaboration zones, quiet work areas, a social
lounge and private meeting rooms.

Please review the community guidelines on entry. Moderators are marked
with badges and anonymous reporting is always available.

Questions: {profile.contact_email}
Technical issues: {profile.support_email}

---
{profile.organization_name} Team
""".strip()
