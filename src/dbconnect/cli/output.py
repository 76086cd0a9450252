"""
Rich terminal output helpers for CLI.

Provides functions for printing result rows and status messages
using the Rich library.
"""

from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table

# Console instance for all output
console = Console()


def print_rows(rows: list[dict[str, Any]], title: str | None = None) -> None:
    """Print query result rows as a table.

    Columns are taken from the union of row keys, in first-seen order.

    Args:
        rows: Rows as returned by the tunnel.
        title: Optional table title.
    """
    if not rows:
        print_info("No rows returned.")
        return

    columns: list[str] = []
    for row in rows:
        for name in row:
            if name not in columns:
                columns.append(name)

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan",
    )
    for name in columns:
        table.add_column(str(name))

    for row in rows:
        table.add_row(*(_format_cell(row.get(name)) for name in columns))

    console.print(table)
    console.print(f"[dim]{len(rows)} row{'s' if len(rows) != 1 else ''}[/]")


def _format_cell(value: Any) -> str:
    if value is None:
        return "[dim]NULL[/]"
    return str(value)


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[cyan]Info:[/] {message}")
