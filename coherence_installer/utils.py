"""Shared utility functions for the Coherence installer.

Provides name inflection helpers, the migration timestamp clock, file-system
helpers, and Rich-based console reporting used by the pipeline and the CLI.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------


def camelize(name: str) -> str:
    """Convert ``create_coherence_user`` to ``CreateCoherenceUser``.

    Dots are preserved so module paths survive (``my_app.repo`` ->
    ``MyApp.Repo``).
    """
    return ".".join(
        "".join(part[:1].upper() + part[1:] for part in segment.split("_") if part)
        for segment in name.split(".")
    )


def underscore(name: str) -> str:
    """Convert ``CreateCoherenceUser`` to ``create_coherence_user``.

    Module separators become path separators (``MyApp.Repo`` -> ``my_app/repo``).

    Examples::

        underscore("CreateCoherenceUser") -> "create_coherence_user"
        underscore("create_coherence_user") -> "create_coherence_user"
    """
    segments = []
    for segment in name.split("."):
        s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", segment)
        s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
        segments.append(s2.replace("-", "_").lower())
    return "/".join(segments)


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def utc_timestamp(now: datetime | None = None) -> int:
    """Return the current UTC time encoded as ``YYYYMMDDHHMMSS``.

    Ecto orders migrations by this prefix, so it must never decrease between
    runs on the same clock.
    """
    moment = now or datetime.now(timezone.utc)
    return int(moment.strftime("%Y%m%d%H%M%S"))


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def relative_to_root(path: Path, root: Path) -> str:
    """Return *path* relative to *root* when possible, for display."""
    try:
        return str(path.resolve().relative_to(root.resolve()))
    except ValueError:
        return str(path)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_created(path: str) -> None:
    """Print a ``* creating <path>`` line, the way Mix generators do."""
    console.print(f"[green]* creating[/green] {path}")


def print_kept(path: str) -> None:
    """Print a ``* keeping <path>`` line for an existing file left untouched."""
    console.print(f"[yellow]* keeping[/yellow] {path}")


def print_info(message: str) -> None:
    """Print a plain informational message."""
    console.print(message, markup=False, highlight=False)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
