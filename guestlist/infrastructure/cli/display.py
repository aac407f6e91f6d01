import logging
from typing import Any, Dict, List, Optional, Tuple

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from guestlist.domain.interfaces.user_interface import UserInterface
from guestlist.domain.models.office import InviteResult

logger = logging.getLogger(__name__)


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        self.console.print(f"[bold blue]>[/bold blue] {info_message}")

    def display_success(self, message: str, details: Dict[str, Any] = None) -> None:
        """Displays a completed step, with details indented underneath.

        Args:
            message: What completed.
            details: Optional key/value pairs shown one per line.
        """
        self.console.print(f"[bold green]✓[/bold green] {message}")
        for key, value in (details or {}).items():
            self.console.print(f"   [dim]{key}:[/dim] {value}")

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.debug(f"Display warning: {warning_message}")
        self.console.print(f"[bold yellow]![/bold yellow] {warning_message}")

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
            **kwargs: `hints` may carry a list of troubleshooting lines.
        """
        body = Text(error_message, style="white")
        for hint in kwargs.get("hints") or []:
            body.append(f"\n• {hint}", style="dim")
        panel = Panel(
            body,
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_report(self, report: Dict[str, Any], title: str = "Implementation Report") -> None:
        panel = Panel(
            JSON.from_data(report, default=str),
            title=f"[bold]{title}[/bold]",
            border_style="blue",
            box=ROUNDED,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_summary(self, title: str, rows: List[Tuple[str, str]], notes: List[str] = None) -> None:
        table = Table(title=title, box=SIMPLE, show_header=False, title_style="bold green")
        table.add_column("Item", style="bold")
        table.add_column("Value")
        for label, value in rows:
            table.add_row(label, value)
        self.console.print("")
        self.console.print(table)
        for note in notes or []:
            self.console.print(f"  • {note}")

    def display_invite_results(self, results: List[InviteResult]) -> None:
        """Renders one row per guest from a bulk invitation."""
        table = Table(title="Bulk Invitation Results", box=ROUNDED)
        table.add_column("Email")
        table.add_column("Status")
        table.add_column("Detail", overflow="fold")
        for result in results:
            status = "[green]invited[/green]" if result.ok else "[red]failed[/red]"
            table.add_row(result.email or "<missing>", status, result.error or "")
        self.console.print(table)
