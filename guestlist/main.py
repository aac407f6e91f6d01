"""Main entry point for the guestlist application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the core services.
"""

import asyncio
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Coroutine, Dict, List, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from guestlist.core.services.guest_manager import DEFAULT_BATCH_DELAY_S, DEFAULT_BATCH_SIZE, GuestManager
from guestlist.core.services.poc_runner import PocRunner

# --- Domain Layer ---
from guestlist.domain.errors import GuestListError
from guestlist.domain.interfaces.gather_api import GatherApi
from guestlist.domain.interfaces.user_interface import UserInterface
from guestlist.domain.models.common import GuestEntry, SpaceId

# --- Infrastructure Layer ---
from guestlist.infrastructure.cli.display import ConsoleDisplay
from guestlist.infrastructure.config.settings import (
    build_client_config,
    build_organization_profile,
    get_config,
    get_gather_api_key,
    load_configuration,
)
from guestlist.infrastructure.filesystem.results_store import ResultsStore
from guestlist.infrastructure.gather.client import GatherApiClient
from guestlist.infrastructure.gather.demo_server import DEMO_API_KEY, DEMO_BASE_URL, FakeGatherServer
from guestlist.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging
from guestlist.infrastructure.resilience.rate_limiter import RateLimitedClient, RateLimiter

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

def create_dependencies(demo: bool = False, rate_tier: Optional[str] = None) -> Dict[str, Any]:
    """Creates and wires up all dependencies for one command.

    This acts as the Composition Root. Raises GuestListError when the
    settings are unusable; nothing touches the network here.
    """
    # 1. Load Configuration First
    load_configuration()
    setup_logging(
        log_level=get_config("logging.level", "INFO"),
        log_format=get_config("logging.format", DEFAULT_LOG_FORMAT, coerce=False),
        log_file=get_config("logging.file", coerce=False),
    )
    logger.info("Configuration and logging initialized.")

    dependencies: Dict[str, Any] = {"ui": ConsoleDisplay(), "demo_server": None}

    # 2. Settings that can still fail; the HTTP client is only opened after them
    profile = build_organization_profile()
    rate_limiter = None
    if rate_tier:
        rate_limiter = RateLimiter()
        rate_limiter.get_tier(rate_tier)

    transport = None
    if demo:
        dependencies["demo_server"] = FakeGatherServer()
        transport = dependencies["demo_server"].transport()
        client_config = build_client_config(api_key=DEMO_API_KEY, base_url=DEMO_BASE_URL)
        logger.info("Demo mode: requests are served by the in-memory Gather.Town stand-in.")
    else:
        client_config = build_client_config()

    # 3. Gather.Town client (real or in-memory), optionally behind the rate ledger
    api: GatherApi = GatherApiClient(client_config, transport=transport)
    if rate_limiter is not None:
        api = RateLimitedClient(api, rate_limiter, tier=rate_tier, block=True)
        logger.info(f"Client-side rate limiting enabled for tier '{rate_tier}'")
    dependencies["api"] = api

    # 4. Core services
    dependencies["guest_manager"] = GuestManager(api, profile)
    logger.info("All dependencies initialized successfully.")
    return dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="guestlist",
    help="Gather.Town remote office and guest-list automation.",
    add_completion=False,
)


class RateTierName(str, Enum):
    """Tiers known to the default RateLimiter."""
    STANDARD = "standard"
    PREMIUM = "premium"
    BURST = "burst"


# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Runs an async command body from a sync Typer command."""
    return asyncio.run(coro)


async def _closing(api: GatherApi, coro: Coroutine[Any, Any, Any]) -> Any:
    try:
        return await coro
    finally:
        await api.aclose()


def _setup(demo: bool, rate_tier: Optional[RateTierName]) -> Dict[str, Any]:
    try:
        return create_dependencies(demo=demo, rate_tier=rate_tier.value if rate_tier else None)
    except GuestListError as e:
        logger.error(f"Fatal Error during application initialization: {e}")
        if not demo and not get_gather_api_key():
            hints = ["Set GATHER_API_KEY in the environment or .env file, or use --demo"]
        else:
            hints = ["Check the settings in .env and ~/.guestlist/config.yaml"]
        ConsoleDisplay().display_error(f"Application Initialization Failed: {e}", hints=hints)
        raise typer.Exit(code=1)


def load_guests(path: Path) -> List[GuestEntry]:
    """Reads a JSON array of guest objects, each with at least an email."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise typer.BadParameter(f"Cannot read guests from {path}: {e}") from e
    if not isinstance(data, list) or not all(isinstance(g, dict) for g in data):
        raise typer.BadParameter(f"{path} must contain a JSON array of guest objects")
    return data


# --- CLI Commands ---

DemoOption = Annotated[
    bool,
    typer.Option("--demo", help="Run against an in-memory Gather.Town stand-in; no API key needed."),
]

RateTierOption = Annotated[
    Optional[RateTierName],
    typer.Option("--rate-tier", case_sensitive=False, help="Enforce a client-side quota."),
]


@app.command()
def run(
    demo: DemoOption = False,
    save: Annotated[bool, typer.Option("--save/--no-save", help="Write poc_results_<id>.json.")] = True,
    results_dir: Annotated[
        Optional[Path],
        typer.Option("--results-dir", file_okay=False, help="Directory for the results file (default: cwd)."),
    ] = None,
    rate_tier: RateTierOption = None,
):
    """Create the remote office, add the contact as moderator and verify it."""
    deps = _setup(demo, rate_tier)
    runner = PocRunner(
        deps["guest_manager"],
        deps["ui"],
        results_store=ResultsStore(results_dir) if save else None,
        environment=str(get_config("app.environment", "development")),
    )
    try:
        run_async(_closing(deps["api"], runner.execute()))
    except Exception as e:
        logger.debug(f"POC run failed: {e}", exc_info=True)
        raise typer.Exit(code=1) from e


@app.command()
def invite(
    space_id: Annotated[str, typer.Argument(help="ID of the space to invite guests to.")],
    guests_file: Annotated[Path, typer.Argument(
        metavar="GUESTS_JSON", exists=True, file_okay=True, dir_okay=False, readable=True,
        help="JSON file with an array of {email, name, role} objects.",
    )],
    demo: DemoOption = False,
    batch_size: Annotated[int, typer.Option("--batch-size", min=1, help="Guests invited concurrently.")] = DEFAULT_BATCH_SIZE,
    batch_delay: Annotated[float, typer.Option("--batch-delay", min=0.0, help="Seconds between batches.")] = DEFAULT_BATCH_DELAY_S,
    rate_tier: RateTierOption = None,
):
    """Invite a list of guests to an existing space in batches."""
    if not space_id.strip():
        raise typer.BadParameter("must not be empty", param_hint="SPACE_ID")
    guests = load_guests(guests_file)
    deps = _setup(demo, rate_tier)
    if deps["demo_server"] is not None:
        deps["demo_server"].seed_space(space_id)

    ui: UserInterface = deps["ui"]
    manager: GuestManager = deps["guest_manager"]
    ui.display_info(f"Inviting {len(guests)} guests to space {space_id}...")
    results = run_async(_closing(
        deps["api"],
        manager.bulk_invite_guests(SpaceId(space_id), guests, batch_size=batch_size, batch_delay_s=batch_delay),
    ))
    ui.display_invite_results(results)

    failed = [r for r in results if not r.ok]
    if failed:
        ui.display_warning(f"{len(failed)} of {len(results)} invitations failed")
        raise typer.Exit(code=1)
    ui.display_success(f"All {len(results)} guests invited")


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
