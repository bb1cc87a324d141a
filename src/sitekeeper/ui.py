"""Console output helpers for the CLI."""

from datetime import datetime
from typing import List, Optional

import questionary
from rich.console import Console
from rich.table import Table

from .config import Config
from .messages import INFO_NO_ENTRIES
from .models import Entry
from .transform import SortState

console = Console()

# Clean questionary style - minimal highlighting for prompts
select_style = questionary.Style(
    [
        ("qmark", "fg:#5f87af bold"),  # Question mark
        ("question", "bold"),  # Question text
        ("pointer", "fg:#5f87af bold"),  # Selection pointer (>)
        ("highlighted", "fg:#ffffff bg:#5f87af"),  # Current line highlight
        ("instruction", "fg:#6c6c6c"),  # Instructions
        ("answer", "fg:#5f87af bold"),  # User's answer
    ]
)


def success(message: str) -> None:
    """Display success message."""
    console.print(f"[green]✓[/green] {message}")


def error(message: str) -> None:
    """Display error message."""
    console.print(f"[red]✗[/red] {message}")


def info(message: str) -> None:
    """Display info message."""
    console.print(f"[blue]i[/blue] {message}")


def warning(message: str) -> None:
    """Display warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def confirm(message: str, default: bool = False) -> bool:
    """Ask for confirmation."""
    result = questionary.confirm(message, default=default, style=select_style).ask()
    return result if result is not None else False


def prompt(message: str, default: str = "") -> str:
    """Prompt for input with optional default."""
    try:
        result = questionary.text(message, default=default, style=select_style).ask()
        return result if result is not None else ""
    except (KeyboardInterrupt, EOFError):
        return ""


def prompt_password(message: str = "Password") -> str:
    """Prompt for a password without echoing it."""
    try:
        result = questionary.password(message, style=select_style).ask()
        return result if result is not None else ""
    except (KeyboardInterrupt, EOFError):
        return ""


def mask(password: str) -> str:
    """One mask character per password character."""
    return Config.PASSWORD_MASK * len(password)


def humanize_date(dt: Optional[datetime]) -> str:
    """Format datetime as absolute local timestamp."""
    if not dt:
        return "—"
    local_dt = dt.astimezone() if dt.tzinfo else dt
    return local_dt.strftime("%Y-%m-%d %H:%M")


def show_entries_table(
    entries: List[Entry],
    title: str = "Saved Passwords",
    sort_state: Optional[SortState] = None,
    show_passwords: bool = False,
) -> None:
    """Display entries table in the given order."""
    if not entries:
        info(INFO_NO_ENTRIES)
        return

    def heading(label: str, column: str) -> str:
        if sort_state is None or sort_state.column != column:
            return label
        return f"{label} {'▼' if sort_state.descending else '▲'}"

    table = Table(title=title, show_lines=False, expand=True)
    table.add_column("ID", style="dim", justify="right")
    table.add_column(heading("Website", "website"), style="cyan bold", no_wrap=True)
    table.add_column(heading("Username", "username"), style="green")
    table.add_column(heading("Password", "password"), style="yellow")
    table.add_column(heading("Created", "createdAt"), style="dim", justify="right")

    for entry in entries:
        table.add_row(
            str(entry.id),
            entry.website,
            entry.username,
            entry.password if show_passwords else mask(entry.password),
            humanize_date(entry.created_at),
        )

    console.print(table)
    console.print(f"[dim]Total: {len(entries)} entries[/dim]")
