"""Runs the end-to-end proof of concept.

Validate settings, create the remote office, add the contact as moderator,
verify the guest list, build the report and save the results. Each step is
reported through the UserInterface; any failure is recorded, explained and
re-raised.
"""

import logging
import re
import time
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from guestlist import __version__
from guestlist.core.services.guest_manager import GuestManager
from guestlist.domain.errors import (
    ConfigurationError,
    ErrorKind,
    GatherApiError,
    RateLimitExceeded,
    VerificationError,
)
from guestlist.domain.interfaces.user_interface import UserInterface
from guestlist.domain.models.common import JsonBody, PocId, SpaceId
from guestlist.domain.models.office import PocResults
from guestlist.infrastructure.filesystem.results_store import ResultsStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
API_VERSION = "v2"


def troubleshooting_hints(error: BaseException) -> List[str]:
    """Suggestions shown to the operator for a failed run."""
    if isinstance(error, ConfigurationError):
        return [
            "Verify GATHER_API_KEY is set correctly in the .env file",
            "Check FC_CONTACT_EMAIL and GATHER_BASE_URL",
        ]
    if isinstance(error, RateLimitExceeded) or (
        isinstance(error, GatherApiError) and error.status == 429
    ):
        return [
            "API rate limit exceeded - wait and retry",
            "Consider upgrading the Gather.Town plan for higher limits",
        ]
    if isinstance(error, GatherApiError):
        if error.kind is ErrorKind.PERMISSION:
            return [
                "Verify the API key has sufficient permissions",
                "Check account status and plan limits",
            ]
        if error.kind is ErrorKind.NETWORK:
            return ["Check network connectivity and GATHER_BASE_URL"]
        if error.kind is ErrorKind.CONFLICT:
            return ["The contact is already on the guest list of this space"]
    return []


class PocRunner:
    """Sequential POC workflow over a GuestManager."""

    def __init__(
        self,
        manager: GuestManager,
        ui: UserInterface,
        results_store: Optional[ResultsStore] = None,
        environment: str = "development",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.manager = manager
        self.ui = ui
        self.results_store = results_store
        self.environment = environment
        self._clock = clock
        self.poc_id = PocId(str(uuid.uuid4()))
        self.results = PocResults(poc_id=self.poc_id)
        self._start = self._clock()

    @property
    def contact_email(self) -> str:
        return self.manager.profile.contact_email

    def elapsed_ms(self) -> int:
        return int((self._clock() - self._start) * 1000)

    async def execute(self) -> PocResults:
        """Runs every step; returns the results or re-raises the first failure."""
        self._start = self._clock()
        self.ui.display_info(
            f"Starting Gather.Town POC {self.poc_id} at {datetime.now(timezone.utc).isoformat()}"
        )
        try:
            self.validate_environment()
            space = await self.create_remote_office()
            self.results.space = space
            self.results.contact = await self.add_contact(space["id"])
            await self.verify_implementation(space["id"])
            self.results.report = self.generate_report()
            self.display_success_summary()
            self.results.success = True
            return self.results
        except Exception as e:
            self.handle_error(e)
            raise
        finally:
            await self.cleanup()

    def validate_environment(self) -> None:
        self.ui.display_info("Validating environment configuration...")
        if not EMAIL_PATTERN.match(self.contact_email or ""):
            raise ConfigurationError(f"FC_CONTACT_EMAIL is not a valid email address: {self.contact_email!r}")
        self.ui.display_success("Environment validation passed")

    async def create_remote_office(self) -> JsonBody:
        self.ui.display_info("Creating remote office space...")
        space = await self.manager.create_remote_office()
        self.ui.display_success("Remote office created", {
            "Space ID": space.get("id"),
            "Space URL": space.get("url"),
            "Capacity": f"{space.get('capacity')} users",
        })
        if not self.manager.safety_configured:
            self.ui.display_warning("Safety features could not be fully configured")
        return space

    async def add_contact(self, space_id: SpaceId) -> JsonBody:
        self.ui.display_info(f"Adding {self.contact_email} as moderator...")
        result = await self.manager.add_contact_as_moderator(space_id)
        self.ui.display_success("Contact added as moderator", {
            "Email": self.contact_email,
            "Role": "moderator",
        })
        return result

    async def verify_implementation(self, space_id: SpaceId) -> None:
        """Re-reads the space and guest list from the API."""
        self.ui.display_info("Verifying implementation...")
        space = await self.manager.api.get_space(space_id)
        if not space:
            raise VerificationError("Space verification failed")

        guest_list = await self.manager.api.get_guest_list(space_id)
        wanted = self.contact_email.lower()
        contact = next(
            (g for g in guest_list.get("guests") or [] if str(g.get("email", "")).lower() == wanted),
            None,
        )
        if contact is None:
            raise VerificationError("Contact not found in guest list")
        if contact.get("role") != "moderator":
            raise VerificationError("Contact does not have moderator role")
        self.ui.display_success("Implementation verification passed", {
            "Space accessible": "Yes",
            "Contact in guest list": "Yes",
            "Moderator permissions": "Confirmed",
        })

    def generate_report(self) -> Optional[Dict[str, Any]]:
        self.ui.display_info("Generating implementation report...")
        try:
            report = self.manager.build_implementation_report(self.results.space or {}, self.results.contact)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Report generation failed: {e}")
            self.ui.display_warning(f"Report generation failed: {e}")
            return None
        report["pocExecution"] = {
            "pocId": self.poc_id,
            "executionTimeMs": self.elapsed_ms(),
            "environment": self.environment,
            "apiVersion": API_VERSION,
            "clientVersion": __version__,
        }
        self.ui.display_report(report)
        return report

    def display_success_summary(self) -> None:
        seconds = self.elapsed_ms() // 1000
        space = self.results.space or {}
        self.ui.display_summary(
            "POC EXECUTION SUCCESSFUL",
            [
                ("Remote Office", str(space.get("url"))),
                ("Moderator", self.contact_email),
                ("Safety Features", "Configured" if self.manager.safety_configured else "Partial"),
                ("Execution Time", f"{seconds // 60}m {seconds % 60}s"),
            ],
            notes=[
                "Invitation may take 1-2 minutes to arrive; check the spam folder",
                "Click the invitation link and test the moderator controls",
            ],
        )

    def handle_error(self, error: BaseException) -> None:
        logger.error(f"POC {self.poc_id} failed after {self.elapsed_ms()}ms: {error}")
        self.results.errors.append({
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": type(error).__name__,
            "message": str(error),
            "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        })
        self.ui.display_error(f"POC EXECUTION FAILED: {error}", hints=troubleshooting_hints(error))

    async def cleanup(self) -> None:
        logger.info(f"POC Status: {'SUCCESS' if self.results.success else 'FAILED'}")
        if self.results_store is not None:
            path = await self.results_store.save(self.results)
            if path is not None:
                self.ui.display_info(f"Results saved to: {path}")
