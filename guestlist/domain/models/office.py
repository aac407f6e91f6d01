"""Domain models for the remote office being provisioned."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .common import JsonBody, PocId


@dataclass(frozen=True)
class OrganizationProfile:
    """Branding and contact details for the organization owning the space."""
    organization_name: str = "First Contact"
    contact_email: str = "contact@firstcontact.lgbt"
    brand_color: str = "#FF6B35"
    logo_url: str = "https://firstcontact.lgbt/assets/logo.png"
    space_name: str = "First Contact Remote Office - POC"
    space_description: str = "Product Management POC workspace for FC team collaboration"
    space_capacity: int = 50
    space_template: str = "modern_office"
    safety_email: str = "safety@firstcontact.lgbt"
    support_email: str = "tech-support@firstcontact.lgbt"


@dataclass
class InviteResult:
    """Outcome of inviting one guest during a bulk invitation."""
    email: str
    ok: bool
    response: Optional[JsonBody] = None
    error: Optional[str] = None


@dataclass
class PocResults:
    """Everything a POC execution produced; serialized to the results file."""
    poc_id: PocId
    success: bool = False
    space: Optional[JsonBody] = None
    contact: Optional[JsonBody] = None
    report: Optional[Dict[str, Any]] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
