"""Rich console utilities for styled terminal output.

This module is the single output channel of the package: the CLI reports
through it and the manager uses it for its renewal notes.
"""

from collections.abc import Generator, Iterable
from contextlib import contextmanager

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

# Custom theme with consistent colors
_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "highlight": "cyan bold",
        "muted": "dim",
    }
)

# Shared console instance
console = Console(theme=_THEME)


def info(message: str) -> None:
    """Print an informational message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]ℹ[/info] {message}")


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[warning]⚠[/warning] {message}")


def error(message: str) -> None:
    """Print an error message."""
    console.print(f"[error]✗[/error] {message}")


def action(message: str) -> None:
    """Print an action/progress message."""
    console.print(f"[info]→[/info] {message}")


def highlight(text: str) -> str:
    """Return text wrapped in highlight markup.

    Args:
        text: The text to highlight.

    Returns:
        Text wrapped in Rich markup for highlighting.

    """
    return f"[highlight]{text}[/highlight]"


@contextmanager
def spinner(message: str) -> Generator[None, None, None]:
    """Display a spinner while waiting on the API server.

    Args:
        message: The status message to display.

    Yields:
        None

    """
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def rotation_table(title: str, rows: Iterable[tuple[str, str, str]]) -> None:
    """Print a panel listing logical secrets and their rotation epochs.

    Args:
        title: Title for the panel.
        rows: Tuples of (logical name, raw epoch label, rendered epoch).

    """
    table = Table(box=None, padding=(0, 2))
    table.add_column("Secret", style="bold")
    table.add_column("Epoch", style="muted")
    table.add_column("Rotation initiated", style="cyan")

    for name, epoch, rendered in rows:
        table.add_row(name or "[muted]<unnamed>[/muted]", epoch or "-", rendered)

    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style="success"))
