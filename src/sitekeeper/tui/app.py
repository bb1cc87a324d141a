"""@brief Textual application: the password table and its actions."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Set

from textual import on
from textual.app import App, ComposeResult
from textual.coordinate import Coordinate
from textual.widgets import DataTable, Footer, Header, Input, Static

from sitekeeper import messages
from sitekeeper.codec import EntryImportError, ExportFormat
from sitekeeper.config import config
from sitekeeper.models import Entry
from sitekeeper.service import CacheChange, ChangeKind, EntryService, ImportReloadError
from sitekeeper.store import StoreError, StoreOpenError
from sitekeeper.tui.screens import AlertScreen, ConfirmScreen, EntryFormScreen, PathScreen
from sitekeeper.tui.theme import MONOKAI_THEME, build_css
from sitekeeper.ui import humanize_date, mask

COLUMNS = (
    ("Website", "website"),
    ("Username", "username"),
    ("Password", "password"),
    ("Created", "createdAt"),
)


class SiteKeeperApp(App[None]):
    """@brief Table of saved passwords backed by an ``EntryService``."""

    CSS = build_css(MONOKAI_THEME)
    TITLE = "SiteKeeper"

    BINDINGS = [
        ("a", "add_entry", "Add"),
        ("e", "edit_entry", "Edit"),
        ("d", "delete_entry", "Delete"),
        ("v", "toggle_password", "Show/Hide"),
        ("slash", "focus_filter", "Search"),
        ("1", "sort('website')", "Sort website"),
        ("2", "sort('username')", "Sort username"),
        ("i", "import_entries", "Import"),
        ("j", "export('json')", "Export JSON"),
        ("c", "export('csv')", "Export CSV"),
        ("x", "clear_all", "Clear all"),
        ("escape", "focus_table", "Table"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        db_path: Optional[str] = None,
        service: Optional[EntryService] = None,
        export_dir: Optional[Path] = None,
    ) -> None:
        super().__init__()
        self._db_path = db_path or config.db_path
        self.service = service
        self.export_dir = export_dir or Path.cwd()
        self._filter = ""
        self._revealed: Set[int] = set()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        yield Input(placeholder="Search website or username", id="filter")
        yield DataTable(id="entries", cursor_type="row", zebra_stripes=True)
        yield Static("Opening password store...", id="status", classes="status")
        yield Footer()

    async def on_mount(self) -> None:
        """@brief Open the store, then load and render the cache."""

        table = self.query_one("#entries", DataTable)
        for label, key in COLUMNS:
            table.add_column(label, key=key)
        self.set_focus(table)

        if self.service is None:
            try:
                self.service = await EntryService.open(self._db_path)
            except StoreOpenError as e:
                # Nothing works without a store
                self.push_screen(
                    AlertScreen(messages.ERROR_STORE_OPEN.format(error=e)),
                    callback=lambda _: self.exit(return_code=1),
                )
                return

        self.service.subscribe(self._on_cache_change)
        try:
            await self.service.load()
        except StoreError as e:
            self.show_alert(messages.ERROR_LOAD.format(error=e))
            return
        self._set_status(f"{self.service.count} saved password(s).")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _on_cache_change(self, change: CacheChange) -> None:
        table = self.query_one("#entries", DataTable)
        row_key = str(change.entry_id)

        if change.kind is ChangeKind.REMOVED and row_key in table.rows:
            table.remove_row(row_key)
            self._revealed.discard(change.entry_id)
            return

        if change.kind is ChangeKind.UPDATED and row_key in table.rows and not self._filter:
            entry = self.service.find(change.entry_id)
            if entry is not None:
                self._revealed.discard(entry.id)
                table.update_cell(row_key, "website", entry.website)
                table.update_cell(row_key, "username", entry.username)
                table.update_cell(row_key, "password", mask(entry.password))
                return

        self._render_table()

    def _render_table(self) -> None:
        table = self.query_one("#entries", DataTable)
        cursor = table.cursor_row
        table.clear()
        for entry in self.service.view(self._filter):
            table.add_row(*self._cells(entry), key=str(entry.id))
        if table.row_count:
            table.move_cursor(row=min(cursor, table.row_count - 1))

        state = self.service.sort_state
        if state.column:
            arrow = "▼" if state.descending else "▲"
            self.sub_title = f"sorted by {state.column} {arrow}"

    def _cells(self, entry: Entry) -> tuple:
        password = entry.password if entry.id in self._revealed else mask(entry.password)
        return (entry.website, entry.username, password, humanize_date(entry.created_at))

    def _selected_entry(self) -> Optional[Entry]:
        table = self.query_one("#entries", DataTable)
        if not table.row_count:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        return self.service.find(int(row_key.value))

    def _set_status(self, message: str) -> None:
        self.query_one("#status", Static).update(message)

    def show_alert(self, message: str) -> None:
        """@brief Blocking error notification."""

        self.push_screen(AlertScreen(message))

    # ------------------------------------------------------------------
    # Filtering and sorting
    # ------------------------------------------------------------------

    @on(Input.Changed, "#filter")
    def handle_filter(self, event: Input.Changed) -> None:
        self._filter = event.value
        if self.service is not None:
            self._render_table()

    @on(DataTable.HeaderSelected, "#entries")
    def handle_header(self, event: DataTable.HeaderSelected) -> None:
        self.action_sort(str(event.column_key.value))

    def action_sort(self, column: str) -> None:
        if self.service is not None:
            self.service.sort_by(column)

    def action_focus_filter(self) -> None:
        self.set_focus(self.query_one("#filter", Input))

    def action_focus_table(self) -> None:
        self.set_focus(self.query_one("#entries", DataTable))

    def action_toggle_password(self) -> None:
        entry = self._selected_entry()
        if entry is None:
            return
        if entry.id in self._revealed:
            self._revealed.discard(entry.id)
        else:
            self._revealed.add(entry.id)
        password = entry.password if entry.id in self._revealed else mask(entry.password)
        self.query_one("#entries", DataTable).update_cell(
            str(entry.id), "password", password
        )

    # ------------------------------------------------------------------
    # Entry actions
    # ------------------------------------------------------------------

    def action_add_entry(self) -> None:
        async def submit(website: str, username: str, password: str) -> None:
            entry = await self.service.add(website, username, password)
            self._set_status(messages.SUCCESS_ADDED.format(website=entry.website))

        self.push_screen(EntryFormScreen("Add password", submit))

    def action_edit_entry(self) -> None:
        entry = self._selected_entry()
        if entry is None:
            return

        async def submit(website: str, username: str, password: str) -> None:
            updated = await self.service.edit(
                entry.id, website=website, username=username, password=password
            )
            self._set_status(messages.SUCCESS_UPDATED.format(website=updated.website))

        self.push_screen(EntryFormScreen(f"Editing {entry.website}", submit, entry))

    async def action_delete_entry(self) -> None:
        entry = self._selected_entry()
        if entry is None:
            return
        try:
            await self.service.delete(entry.id)
        except StoreError as e:
            self.show_alert(messages.ERROR_DELETE.format(error=e))
            return
        self._set_status(messages.SUCCESS_DELETED.format(entry_id=entry.id))

    def action_clear_all(self) -> None:
        if self.service is None:
            return
        self.service.request_clear()
        self.push_screen(ConfirmScreen(messages.CONFIRM_CLEAR), callback=self._finish_clear)

    def _finish_clear(self, confirmed: Optional[bool]) -> None:
        if not confirmed:
            self.service.cancel_clear()
            self._set_status(messages.INFO_CANCELLED)
            return
        self.run_worker(self._clear(), exclusive=True, group="clear")

    async def _clear(self) -> None:
        try:
            await self.service.confirm_clear()
        except StoreError as e:
            self.show_alert(messages.ERROR_CLEAR.format(error=e))
            return
        self._revealed.clear()
        self._set_status(messages.SUCCESS_CLEARED)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def action_import_entries(self) -> None:
        self.push_screen(
            PathScreen("Import passwords", "path/to/backup.json or .csv"),
            callback=self._start_import,
        )

    def _start_import(self, path: Optional[str]) -> None:
        if path:
            self.run_worker(self._import(Path(path).expanduser()), group="import")

    async def _import(self, path: Path) -> None:
        try:
            count = await self.service.import_file(path)
        except ImportReloadError as e:
            self._set_status(messages.SUCCESS_IMPORTED.format(count=e.count))
            self.show_alert(messages.ERROR_LOAD.format(error=e.error))
            return
        except (EntryImportError, StoreError) as e:
            self.show_alert(messages.ERROR_IMPORT.format(error=e))
            return
        self._set_status(messages.SUCCESS_IMPORTED.format(count=count))

    async def action_export(self, fmt: str) -> None:
        if self.service is None:
            return
        try:
            path = await self.service.export_to(self.export_dir, ExportFormat(fmt))
        except OSError as e:
            self.show_alert(messages.ERROR_EXPORT.format(error=e))
            return
        self._set_status(
            messages.SUCCESS_EXPORTED.format(count=self.service.count, path=path)
        )


def run(db_path: Optional[str] = None) -> None:
    """@brief Launch the Textual application."""

    SiteKeeperApp(db_path).run()
