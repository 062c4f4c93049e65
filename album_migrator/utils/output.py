"""Rich console output helpers for album-migrator."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.theme import Theme

from album_migrator.reviewer import ReviewRow

# Module-level verbosity flag (set by cli.py after argument parsing)
_verbose_enabled: bool = False

# Custom theme for album-migrator
THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "path": "blue underline",
        "track.position": "dim",
        "track.title": "italic",
        "progress.description": "bold blue",
        "row.migrate": "green",
        "row.duplicate": "magenta",
        "row.ambiguous": "yellow",
        "row.no-candidate": "red",
        "row.new": "cyan",
    }
)

# Global console instances
console = Console(theme=THEME, stderr=False)
error_console = Console(theme=THEME, stderr=True)


def set_verbosity(*, verbose: bool = False, debug: bool = False) -> None:
    """Configure the module-level verbosity flag.

    Called from the CLI entry point after argument parsing.
    """
    global _verbose_enabled
    _verbose_enabled = verbose or debug  # debug implies verbose


def set_color(enabled: bool) -> None:
    """Enable or disable color on both console instances."""
    console.no_color = not enabled
    error_console.no_color = not enabled


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/info]")


def warning(message: str) -> None:
    """Print a warning message to stderr."""
    error_console.print(f"[warning]Warning:[/warning] {message}")


def error(message: str, hint: str | None = None) -> None:
    """Print an error message to stderr.

    Args:
        message: The error message.
        hint: Optional hint for resolution.
    """
    error_console.print(f"[error]Error:[/error] {message}")
    if hint:
        error_console.print(f"  [info]Hint:[/info] {hint}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/success]")


def verbose(message: str) -> None:
    """Print a message only when verbose mode is enabled."""
    if _verbose_enabled:
        console.print(f"[info]{message}[/info]")


def create_progress() -> Progress:
    """Create a progress bar for library operations.

    Returns:
        Rich Progress instance configured for operation counts.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )


def create_table(title: str | None = None, **kwargs: Any) -> Table:
    """Create a styled table.

    Args:
        title: Optional table title.
        **kwargs: Additional Table arguments.

    Returns:
        Rich Table instance.
    """
    return Table(title=title, **kwargs)


def print_path(path: str, prefix: str = "") -> None:
    """Print a path with styling.

    Args:
        path: File or directory path.
        prefix: Optional prefix.
    """
    if prefix:
        console.print(f"{prefix} [path]{path}[/path]")
    else:
        console.print(f"[path]{path}[/path]")


def print_review(rows: list[ReviewRow], title: str | None = None) -> None:
    """Print review rows as a table, one row per source entry or new track."""
    table = create_table(title=title, show_lines=False)
    table.add_column("Action")
    table.add_column("Source", style="track.position", no_wrap=True)
    table.add_column("Title", style="track.title")
    table.add_column("Destination", style="track.position", no_wrap=True)
    table.add_column("Title", style="track.title")
    table.add_column("Tier")
    table.add_column("Note")

    for row in rows:
        style = f"row.{row.kind.value}"
        table.add_row(
            f"[{style}]{row.kind.value}[/{style}]",
            row.source_position,
            escape(row.source_title),
            row.destination_position,
            escape(row.destination_title),
            row.tier,
            escape(row.note),
        )
    console.print(table)


def print_summary(counts: dict[str, int]) -> None:
    """Print a one-line plan summary."""
    console.print(
        f"[success]{counts['adds']}[/success] to add, "
        f"[success]{counts['removes']}[/success] to remove "
        f"({counts['duplicates']} duplicates), "
        f"[warning]{counts['ambiguous']}[/warning] ambiguous, "
        f"[warning]{counts['no_candidate']}[/warning] without counterpart, "
        f"[info]{counts['new_tracks']}[/info] new in destination"
    )

