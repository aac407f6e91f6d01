"""Interface for presenting progress and results to the user.

Lets the POC runner stay independent of the console library.
"""

import abc
from typing import Any, Dict, List, Tuple

from guestlist.domain.models.office import InviteResult


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational (progress) message."""
        pass

    @abc.abstractmethod
    def display_success(self, message: str, details: Dict[str, Any] = None) -> None:
        """Displays a completed step with optional key/value details."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning for a non-fatal problem."""
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message."""
        pass

    @abc.abstractmethod
    def display_report(self, report: Dict[str, Any], title: str = "Implementation Report") -> None:
        """Renders a JSON-serializable report."""
        pass

    @abc.abstractmethod
    def display_summary(self, title: str, rows: List[Tuple[str, str]], notes: List[str] = None) -> None:
        """Renders a final summary table followed by optional notes."""
        pass

    @abc.abstractmethod
    def display_invite_results(self, results: List[InviteResult]) -> None:
        """Renders the per-guest outcome of a bulk invitation."""
        pass
