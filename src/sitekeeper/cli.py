"""CLI using Typer."""

import asyncio
import os
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from typing_extensions import Annotated

from . import __version__, ui
from .codec import EntryImportError, ExportFormat
from .config import config
from .logging_config import configure_logging
from .messages import (
    CONFIRM_CLEAR,
    ERROR_EXPORT,
    ERROR_IMPORT,
    ERROR_LOAD,
    ERROR_NOT_FOUND,
    ERROR_STORE_OPEN,
    INFO_CANCELLED,
    INFO_NO_MATCHES,
    SUCCESS_ADDED,
    SUCCESS_CLEARED,
    SUCCESS_DELETED,
    SUCCESS_EXPORTED,
    SUCCESS_IMPORTED,
    SUCCESS_UPDATED,
)
from .models import SORTABLE_COLUMNS, Entry
from .service import EntryService, ImportReloadError, ValidationError
from .store import StoreError, StoreOpenError
from .transform import ASCENDING, DESCENDING, SortState

T = TypeVar("T")

# Command aliases mapping
COMMAND_ALIASES = {
    "list": ["ls"],
    "add": ["a"],
    "edit": ["e"],
    "delete": ["d", "del"],
}

app = typer.Typer(
    name="sitekeeper",
    help="Local password list manager",
    add_completion=True,
    no_args_is_help=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"sitekeeper {__version__}")
        raise typer.Exit()


def run_with_service(action: Callable[[EntryService], Awaitable[T]]) -> T:
    """Open the store, load the cache and run ``action`` on a fresh event loop.

    Store and validation failures are reported and turned into exit status 1.
    """

    async def runner() -> T:
        service = await EntryService.open(config.db_path)
        await service.load()
        return await action(service)

    try:
        return asyncio.run(runner())
    except StoreOpenError as e:
        ui.error(ERROR_STORE_OPEN.format(error=e))
        raise typer.Exit(1)
    except (StoreError, ValidationError) as e:
        ui.error(str(e))
        raise typer.Exit(1)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    db: Annotated[
        Optional[str],
        typer.Option(
            "--db",
            help="Path to the entry store (default: ~/.sitekeeper/entries.json)",
        ),
    ] = None,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
):
    """Opens the terminal UI if no command given."""
    if db:
        config.db_path = os.path.expanduser(db)

    configure_logging()

    if ctx.invoked_subcommand is None:
        from .tui.app import run

        run(config.db_path)
        raise typer.Exit(0)


@app.command(
    "list",
    help="List saved passwords (ls)",
    rich_help_panel="Entry Management",
)
def list_entries(
    sort: Annotated[
        Optional[str],
        typer.Option(
            "--sort", "-s", help=f"Sort column ({', '.join(SORTABLE_COLUMNS)})"
        ),
    ] = None,
    desc: Annotated[bool, typer.Option("--desc", help="Sort descending")] = False,
    search: Annotated[
        Optional[str],
        typer.Option("--filter", "-f", help="Show entries matching website/username"),
    ] = None,
    show_passwords: Annotated[
        bool, typer.Option("--show-passwords", "-p", help="Show passwords")
    ] = False,
):
    """List entries, optionally sorted and filtered."""
    if sort is not None and sort not in SORTABLE_COLUMNS:
        ui.error(f"Unknown sort column '{sort}'")
        raise typer.Exit(1)

    state = SortState(sort, DESCENDING if desc else ASCENDING) if sort else None

    async def action(service: EntryService):
        if state is not None:
            service.apply_sort(state)
        return service.view(search or "")

    entries = run_with_service(action)
    if search and not entries:
        ui.info(INFO_NO_MATCHES.format(query=search))
        return
    ui.show_entries_table(entries, sort_state=state, show_passwords=show_passwords)


@app.command(
    "add",
    help="Add a new password (a)",
    rich_help_panel="Entry Management",
)
def add_entry(
    website: Annotated[
        Optional[str], typer.Option("--website", "-w", help="Website")
    ] = None,
    username: Annotated[
        Optional[str], typer.Option("--username", "-u", help="Username or email")
    ] = None,
    password: Annotated[
        Optional[str], typer.Option("--password", help="Password (prompted if omitted)")
    ] = None,
):
    """Add a new entry, prompting for anything not passed as an option."""
    if website is None:
        website = ui.prompt("Website")
    if username is None:
        username = ui.prompt("Username/Email")
    if password is None:
        password = ui.prompt_password("Password")

    async def action(service: EntryService) -> Entry:
        return await service.add(website, username, password)

    entry = run_with_service(action)
    ui.success(SUCCESS_ADDED.format(website=entry.website))


def _fetch_entry(entry_id: int) -> Entry:
    async def action(service: EntryService) -> Optional[Entry]:
        return service.find(entry_id)

    entry = run_with_service(action)
    if entry is None:
        ui.error(ERROR_NOT_FOUND.format(entry_id=entry_id))
        raise typer.Exit(1)
    return entry


@app.command(
    "edit",
    help="Edit an existing entry (e)",
    rich_help_panel="Entry Management",
)
def edit_entry(
    entry_id: Annotated[int, typer.Argument(help="Entry id")],
    website: Annotated[
        Optional[str], typer.Option("--website", "-w", help="New website")
    ] = None,
    username: Annotated[
        Optional[str], typer.Option("--username", "-u", help="New username")
    ] = None,
    password: Annotated[
        Optional[str], typer.Option("--password", help="New password")
    ] = None,
):
    """Edit an entry. Without options, prompts for a new username and password."""
    if website is None and username is None and password is None:
        current = _fetch_entry(entry_id)
        ui.info(f"Editing {current.website}. Press Enter to keep current value.")
        username = ui.prompt("Username/Email", default=current.username)
        password = ui.prompt_password("Password (blank keeps current)") or None

    async def action(service: EntryService) -> Entry:
        return await service.edit(
            entry_id, website=website, username=username, password=password
        )

    entry = run_with_service(action)
    ui.success(SUCCESS_UPDATED.format(website=entry.website))


@app.command(
    "delete",
    help="Delete an entry (d, del)",
    rich_help_panel="Entry Management",
)
def delete_entry(
    entry_id: Annotated[int, typer.Argument(help="Entry id")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Skip confirmation prompt")
    ] = False,
):
    """Delete an entry with confirmation."""
    if not force:
        entry = _fetch_entry(entry_id)
        if not ui.confirm(f"Delete '{entry.website}' ({entry.username})?"):
            ui.info(INFO_CANCELLED)
            return

    async def action(service: EntryService) -> None:
        await service.delete(entry_id)

    run_with_service(action)
    ui.success(SUCCESS_DELETED.format(entry_id=entry_id))


@app.command("clear", help="Delete ALL saved passwords", rich_help_panel="Entry Management")
def clear_entries(
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Confirm without prompting")
    ] = False,
):
    """Clear every entry after an explicit confirmation."""
    confirmed = yes or ui.confirm(CONFIRM_CLEAR, default=False)

    async def action(service: EntryService) -> bool:
        service.request_clear()
        if not confirmed:
            service.cancel_clear()
            return False
        await service.confirm_clear()
        return True

    if run_with_service(action):
        ui.success(SUCCESS_CLEARED)
    else:
        ui.info(INFO_CANCELLED)


@app.command("export", help="Export passwords to a backup file", rich_help_panel="Backup")
def export_entries(
    fmt: Annotated[
        ExportFormat,
        typer.Option("--format", "-F", help="Backup format", case_sensitive=False),
    ] = ExportFormat.JSON,
    output_dir: Annotated[
        Path, typer.Option("--output-dir", "-o", help="Directory for the backup file")
    ] = Path("."),
):
    """Write passwords-backup-<date>.json or .csv."""
    directory = output_dir.expanduser()
    if not directory.is_dir():
        ui.error(ERROR_EXPORT.format(error=f"'{directory}' is not a directory"))
        raise typer.Exit(1)

    async def action(service: EntryService):
        path = await service.export_to(directory, fmt)
        return path, service.count

    try:
        path, count = run_with_service(action)
    except OSError as e:
        ui.error(ERROR_EXPORT.format(error=e))
        raise typer.Exit(1)
    ui.success(SUCCESS_EXPORTED.format(count=count, path=path))


@app.command("import", help="Import passwords from a backup file", rich_help_panel="Backup")
def import_entries(
    input_file: Annotated[Path, typer.Argument(help="A .json or .csv backup file")],
):
    """Add every valid entry from a backup file."""

    async def action(service: EntryService):
        try:
            return await service.import_file(input_file.expanduser()), None
        except ImportReloadError as e:
            return e.count, e.error

    try:
        count, reload_error = run_with_service(action)
    except EntryImportError as e:
        ui.error(ERROR_IMPORT.format(error=e))
        raise typer.Exit(1)
    ui.success(SUCCESS_IMPORTED.format(count=count))
    if reload_error is not None:
        ui.warning(ERROR_LOAD.format(error=reload_error))


# ============================================================================
# Auto-register command aliases from COMMAND_ALIASES mapping
# ============================================================================

_COMMAND_HANDLERS = {
    "list": list_entries,
    "add": add_entry,
    "edit": edit_entry,
    "delete": delete_entry,
}

for command_name, aliases in COMMAND_ALIASES.items():
    handler = _COMMAND_HANDLERS.get(command_name)
    if handler:
        for alias in aliases:
            app.command(alias, help=f"Alias for '{command_name}'", hidden=True)(handler)  # type: ignore[type-var]


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        ui.error("Operation cancelled")
        sys.exit(1)


if __name__ == "__main__":
    main()
