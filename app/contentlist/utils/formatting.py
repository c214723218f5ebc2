"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from contentlist.models.entry import Entry

THEME = Theme(
    {
        "text": "#ffffff",
        "muted": "#b2bec3",
        "bold_header": "bold #69B9A1",
        "border": "#29526d",
        "success": "#03b971",
        "warning": "#f5b332",
        "error": "#f53263",
        "info": "#0ec1c8",
        "directory": "bold #69B9A1",
        "file": "#ffffff",
    }
)


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances
console = Console(theme=THEME, color_system=_detect_color_system())
err_console = Console(theme=THEME, stderr=True, color_system=_detect_color_system())


def format_size(size_bytes: int | None) -> str:
    """Format byte count as human-readable string."""
    if size_bytes is None or size_bytes == 0:
        return "0 B"
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(size) < 1024:
            return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= 1024
    return f"{size:.1f} TB"


def format_timestamp(millis: int) -> str:
    """Format epoch milliseconds as ISO 8601 (UTC), '-' when unknown."""
    if millis <= 0:
        return "-"
    return datetime.fromtimestamp(millis / 1000, tz=UTC).isoformat(timespec="seconds")


def create_entry_table(title: str) -> Table:
    """Create a pre-configured table for displaying entries.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for entry display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],  # Zebra striping for readability
    )
    table.add_column("Path", no_wrap=True)
    table.add_column("Type", style="muted")
    table.add_column("Size", style="info", justify="right")
    table.add_column("Modified", style="muted")
    return table


def format_entry_row(path: str, entry: Entry | None, directory: bool) -> tuple[str, str, str, str]:
    """Format one node as a table row.

    Args:
        path: Path text to show.
        entry: Stored entry, None for directories implied by deeper paths.
        directory: Whether the node is a directory.

    Returns:
        Tuple of (path, type, size, modified) with Rich markup.
    """
    style = "directory" if directory else "file"
    name = f"[{style}]{escape(path)}[/]"
    if entry is None:
        return (name, "Directory", "-", "-")
    return (name, entry.type.value, format_size(entry.size), format_timestamp(entry.modified))


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
