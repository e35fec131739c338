"""CLI color utilities for terminal output.

Uses rich for formatting.
"""

from typing import Any, Dict, List

from rich.box import ASCII
from rich.console import Console
from rich.table import Table
from rich.theme import Theme

# Initialize rich console with custom theme
custom_theme = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "bold yellow",
    "error": "bold red",
    "dim": "dim white",
    "highlight": "bold cyan",
    "status_queued": "dim white",
    "status_processing": "bold cyan",
    "status_succeeded": "bold green",
    "status_failed": "bold red",
})

console = Console(theme=custom_theme)


def print_success(text: str):
    console.print(f"[success][OK][/success] {text}")


def print_error(text: str):
    console.print(f"[error][X][/error] {text}")


def print_warning(text: str):
    console.print(f"[warning][!][/warning] {text}")


def print_info(text: str):
    console.print(f"[info]\\[i][/info] {text}")


def print_status(status: str, message: str):
    """Print task status with color."""
    status_lower = status.lower()
    if status_lower == "succeeded":
        console.print(f"[status_succeeded][OK][/status_succeeded] {message}")
    elif status_lower == "processing":
        console.print(f"[status_processing][>>][/status_processing] {message}")
    elif status_lower == "failed":
        console.print(f"[status_failed][X][/status_failed] {message}")
    else:
        console.print(f"[status_queued][ ][/status_queued] {message}")


def print_table(columns: List[str], rows: List[List[Any]]):
    """Print rows in an ASCII table."""
    table = Table(show_header=True, header_style="bold cyan", box=ASCII)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*["-" if v is None else str(v) for v in row])
    console.print(table)


def print_receipt_items(items: List[Dict[str, Any]]):
    print_table(["Item", "Category", "Amount"], [[i.get("name"), i.get("type"), i.get("amount")] for i in items])
