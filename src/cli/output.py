"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal messages.
Messages go to stderr so converted Markdown written to stdout stays clean.
Supports verbosity levels and the --no-color flag.
"""

from typing import Sequence

from rich.console import Console
from rich.markup import escape


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Logging verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for messages (stderr)

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Converted page 12345")
        >>> handler.print_warnings(["Unsupported macro 'jira' replaced with a placeholder"])
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            stderr=True,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(escape(message))

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def print(self, message: str) -> None:
        """Display message without formatting."""
        self.console.print(message, markup=False)

    def print_warnings(self, warnings: Sequence[str]) -> None:
        """Display conversion warnings.

        The full list is shown at verbosity >= 1; otherwise only the count.

        Args:
            warnings: Warning messages collected during conversion
        """
        if not warnings:
            return

        if self.verbosity >= 1:
            self.console.print(f"\n[bold]Conversion warnings ({len(warnings)}):[/bold]")
            for warning in warnings:
                self.console.print(f"  [yellow]•[/yellow] {escape(warning)}")
        else:
            self.warning(
                f"{len(warnings)} element(s) converted lossily (use -v 1 to list them)"
            )
