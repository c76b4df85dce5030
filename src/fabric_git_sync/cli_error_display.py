"""
CLI error display for Fabric Git commands.

Renders errors in red with rich, plus the HTTP status, the server error body
or the failed operation's error payload when one is available.
"""

import json
import logging
from typing import Any, Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .exceptions import (
    AuthError,
    ConfigurationError,
    FabricGitError,
    HttpError,
    NotFoundError,
    OperationFailedError,
)

logger = logging.getLogger(__name__)

ERROR_TITLES = {
    AuthError: "Authentication Error",
    ConfigurationError: "Configuration Error",
    HttpError: "Request Failed",
    NotFoundError: "Not Found",
    OperationFailedError: "Operation Failed",
}


def _format_payload(payload: Any) -> str:
    return json.dumps(payload, indent=2, sort_keys=True, default=str)


class CLIErrorDisplay:
    """Error display with red highlighting for CLI commands."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def display_error(self, error: Exception, show_technical_details: bool = False):
        """Display an error raised by a command.

        Args:
            error: The exception that occurred
            show_technical_details: Whether to print the exception type
        """
        title = next(
            (t for cls, t in ERROR_TITLES.items() if isinstance(error, cls)),
            "Error",
        )

        message = Text()
        message.append("❌ ", style="red")
        message.append(f"{title}: ", style="red bold")
        message.append(str(error), style="red")
        self.console.print(message)

        if isinstance(error, HttpError) and error.status_code is not None:
            self.console.print(f"   HTTP status: {error.status_code}", style="dim")

        if isinstance(error, OperationFailedError) and error.error:
            self._display_payload("Operation error", error.error)
        elif isinstance(error, HttpError) and error.body and show_technical_details:
            self._display_payload("Response body", error.body)

        if isinstance(error, AuthError):
            self.console.print(
                "   Check the principal type, tenant id and credentials",
                style="yellow",
            )

        if show_technical_details:
            self.console.print(f"   Exception: {type(error).__name__}", style="dim")

        if not isinstance(error, FabricGitError):
            logger.debug("Unexpected error", exc_info=error)

    def _display_payload(self, title: str, payload: Any) -> None:
        # Text, not markup: payloads are server text and may contain [brackets]
        self.console.print(
            Panel(
                Text(_format_payload(payload)),
                title=title,
                title_align="left",
                border_style="red",
            )
        )
