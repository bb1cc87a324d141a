"""Entry service - the cached entry list and its synchronization with the store."""

import asyncio
import itertools
from collections import deque
from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Callable, Deque, Dict, List, Optional, Tuple, Union

import structlog

from . import codec
from .codec import EntryImportError, ExportFormat, NoValidEntriesError
from .config import Config, config
from .models import Entry
from .store import EntryStore, StoreError
from .transform import SortState, filter_entries, sort_entries

logger = structlog.get_logger(__name__)


class ValidationError(Exception):
    """Base exception for rejected user input. No store call is made."""

    pass


class MissingFieldError(ValidationError):
    """Raised when a required field is empty."""

    def __init__(self, fields: List[str]):
        self.fields = fields
        super().__init__(f"Please fill out all fields (missing: {', '.join(fields)})")


class EntryNotFoundError(ValidationError):
    """Raised when no cached entry has the requested id."""

    def __init__(self, entry_id: Optional[int]):
        self.entry_id = entry_id
        super().__init__(f"Entry {entry_id} not found")


class NoChangesError(ValidationError):
    """Raised when an edit leaves every field as it was."""

    pass


class ClearNotRequestedError(ValidationError):
    """Raised when clear-all is confirmed without a pending request."""

    pass


class ImportReloadError(StoreError):
    """Raised when imported entries were saved but the cache reload failed."""

    def __init__(self, count: int, error: StoreError):
        self.count = count
        self.error = error
        super().__init__(f"Imported {count} entry(ies) but reloading failed: {error}")


class ChangeKind(str, Enum):
    """What the presentation layer should redraw."""

    REFRESH = "refresh"
    REMOVED = "removed"
    UPDATED = "updated"


@dataclass(frozen=True)
class CacheChange:
    kind: ChangeKind
    entry_id: Optional[int] = None


class OperationKind(str, Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    CLEAR = "clear"
    IMPORT = "import"


class OperationState(str, Enum):
    REQUESTED = "requested"
    APPLIED = "applied"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"


_TRANSITIONS = {
    OperationState.REQUESTED: {
        OperationState.APPLIED,
        OperationState.CONFIRMED,
        OperationState.FAILED,
    },
    OperationState.APPLIED: {OperationState.CONFIRMED, OperationState.ROLLED_BACK},
}


@dataclass
class Operation:
    """Lifecycle of one mutating call.

    Delete and update apply to the cache first (``APPLIED``) and end either
    ``CONFIRMED`` or ``ROLLED_BACK``. Add, clear and import only touch the
    cache once the store confirms, so they go straight to ``CONFIRMED`` or
    ``FAILED``.
    """

    kind: OperationKind
    entry_id: Optional[int] = None
    state: OperationState = OperationState.REQUESTED
    error: Optional[Exception] = None

    def advance(self, state: OperationState, error: Optional[Exception] = None) -> None:
        if state not in _TRANSITIONS.get(self.state, set()):
            raise RuntimeError(
                f"Illegal {self.kind.value} transition: "
                f"{self.state.value} -> {state.value}"
            )
        self.state = state
        self.error = error

    @property
    def finished(self) -> bool:
        return self.state not in _TRANSITIONS


Listener = Callable[[CacheChange], None]


class EntryService:
    """Owns the cached entry list and keeps it in step with an ``EntryStore``.

    The cache is what the UI renders. Delete and update change it right away
    and then write to the store; if the write fails the cache is reloaded
    from the store. Add waits for the store to hand out an id before the new
    entry appears.

    Store calls run one at a time behind a single-writer lock. Optimistic
    changes that are still waiting for their write are tracked per entry with
    a version number and re-applied on top of any load that finishes first,
    so a reload never hides them and a late result for an older version never
    clears a newer change.
    """

    def __init__(self, store: EntryStore):
        self.store = store
        self._cache: List[Entry] = []
        self._sort_state = SortState()
        self._listeners: List[Listener] = []
        self._write_lock = asyncio.Lock()
        self._pending: Dict[int, Tuple[int, Optional[Entry]]] = {}
        self._versions = itertools.count(1)
        self._clear_requested = False
        self.operations: Deque[Operation] = deque(maxlen=Config.MAX_OPERATION_HISTORY)

    @classmethod
    async def open(cls, file_path: Optional[str] = None) -> "EntryService":
        """Open the store and return a service with an empty cache.

        Raises:
            StoreOpenError: The session cannot continue without a store.
        """
        store = await EntryStore.open(file_path or config.db_path)
        return cls(store)

    # ------------------------------------------------------------------
    # Cache access
    # ------------------------------------------------------------------

    @property
    def entries(self) -> List[Entry]:
        """Copy of the cache in its current (sorted) order."""
        return list(self._cache)

    @property
    def count(self) -> int:
        return len(self._cache)

    @property
    def sort_state(self) -> SortState:
        return self._sort_state

    @property
    def clear_pending(self) -> bool:
        return self._clear_requested

    def find(self, entry_id: int) -> Optional[Entry]:
        """Get cached entry by id."""
        index = self._index_of(entry_id)
        return self._cache[index] if index is not None else None

    def view(self, term: str = "") -> List[Entry]:
        """Entries to display for a search term; the cache is left as is."""
        return filter_entries(self._cache, term)

    def subscribe(self, listener: Listener) -> None:
        """Register a callback for cache changes."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Sorting
    # ------------------------------------------------------------------

    def sort_by(self, column: str) -> List[Entry]:
        """Sort by ``column``, flipping direction if it is already active."""
        return self.apply_sort(self._sort_state.toggle(column))

    def apply_sort(self, state: SortState) -> List[Entry]:
        """Make ``state`` the cache order."""
        self._sort_state = state
        sort_entries(self._cache, state)
        self._notify(CacheChange(ChangeKind.REFRESH))
        return self.entries

    # ------------------------------------------------------------------
    # Store-backed operations
    # ------------------------------------------------------------------

    async def load(self) -> List[Entry]:
        """Replace the cache with the store contents.

        On failure the previous cache is kept and the error is raised.
        """
        async with self._write_lock:
            stored = await self.store.get_all()
            self._cache = self._overlay_pending(stored)
            sort_entries(self._cache, self._sort_state)
        logger.info("cache_loaded", count=len(self._cache))
        self._notify(CacheChange(ChangeKind.REFRESH))
        return self.entries

    async def add(self, website: str, username: str, password: str) -> Entry:
        """Validate and store a new entry, then add it to the cache."""
        candidate = Entry(
            website=(website or "").strip(),
            username=(username or "").strip(),
            password=password or "",
        )
        self._require_fields(candidate)

        operation = self._begin(OperationKind.ADD)
        try:
            async with self._write_lock:
                candidate.id = await self.store.add(candidate)
                self._put_in_cache(candidate)
                sort_entries(self._cache, self._sort_state)
        except StoreError as e:
            operation.advance(OperationState.FAILED, e)
            raise

        operation.entry_id = candidate.id
        operation.advance(OperationState.CONFIRMED)
        logger.info("entry_added", entry_id=candidate.id)
        self._notify(CacheChange(ChangeKind.REFRESH))
        return candidate

    async def update(self, entry: Entry) -> Entry:
        """Replace the cached entry with the same id and write it to the store."""
        index = self._index_of(entry.id) if entry.id is not None else None
        if index is None:
            raise EntryNotFoundError(entry.id)

        operation = self._begin(OperationKind.UPDATE, entry.id)
        self._cache[index] = entry
        version = self._mark_pending(entry.id, entry)
        operation.advance(OperationState.APPLIED)
        self._notify(CacheChange(ChangeKind.UPDATED, entry.id))

        try:
            async with self._write_lock:
                await self.store.put(entry)
        except StoreError as e:
            self._settle(entry.id, version)
            await self._resync(operation, e)
            raise
        self._settle(entry.id, version)

        operation.advance(OperationState.CONFIRMED)
        logger.info("entry_updated", entry_id=entry.id)
        return entry

    async def edit(
        self,
        entry_id: int,
        *,
        website: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Entry:
        """Apply user edits to an entry. Fields left as None keep their value."""
        current = self.find(entry_id)
        if current is None:
            raise EntryNotFoundError(entry_id)

        updated = current.copy_with_updates(
            website=current.website if website is None else website.strip(),
            username=current.username if username is None else username.strip(),
            password=current.password if password is None else password,
        )
        self._require_fields(updated)
        if (updated.website, updated.username, updated.password) == (
            current.website,
            current.username,
            current.password,
        ):
            raise NoChangesError("No changes made")
        return await self.update(updated)

    async def delete(self, entry_id: int) -> None:
        """Drop the entry from the cache and then from the store.

        Unknown ids leave the cache alone; the store delete is idempotent.
        """
        operation = self._begin(OperationKind.DELETE, entry_id)
        version: Optional[int] = None
        index = self._index_of(entry_id)
        if index is not None:
            del self._cache[index]
            version = self._mark_pending(entry_id, None)
            operation.advance(OperationState.APPLIED)
            self._notify(CacheChange(ChangeKind.REMOVED, entry_id))

        try:
            async with self._write_lock:
                await self.store.delete(entry_id)
        except StoreError as e:
            self._settle(entry_id, version)
            await self._resync(operation, e)
            raise
        self._settle(entry_id, version)

        operation.advance(OperationState.CONFIRMED)
        logger.info("entry_deleted", entry_id=entry_id)

    def request_clear(self) -> None:
        """First step of clear-all: wait for explicit confirmation."""
        self._clear_requested = True

    def cancel_clear(self) -> None:
        """Dismiss a pending clear-all without touching the store."""
        self._clear_requested = False

    async def confirm_clear(self) -> None:
        """Second step of clear-all: delete every entry.

        The cache is emptied only after the store confirms.
        """
        if not self._clear_requested:
            raise ClearNotRequestedError("Clear-all was not requested")
        self._clear_requested = False

        operation = self._begin(OperationKind.CLEAR)
        try:
            async with self._write_lock:
                await self.store.clear()
                self._cache = []
        except StoreError as e:
            operation.advance(OperationState.FAILED, e)
            raise

        operation.advance(OperationState.CONFIRMED)
        logger.info("entries_cleared")
        self._notify(CacheChange(ChangeKind.REFRESH))

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_text(self, fmt: ExportFormat) -> str:
        """Serialize the whole cache."""
        return codec.export_text(self._cache, fmt)

    async def export_to(
        self,
        directory: Union[str, Path],
        fmt: ExportFormat,
        today: Optional[date] = None,
    ) -> Path:
        """Write a dated backup file into ``directory`` and return its path."""
        path = Path(directory) / codec.backup_filename(fmt, today)
        content = self.export_text(fmt)
        await asyncio.to_thread(path.write_text, content, encoding="utf-8", newline="")
        logger.info("entries_exported", path=str(path), count=len(self._cache))
        return path

    async def import_text(self, text: str, fmt: ExportFormat) -> int:
        """Add every valid record in ``text`` and reload the cache.

        Returns the number of imported entries.

        Raises:
            ImportParseError: The text is not valid for ``fmt``.
            NoValidEntriesError: Nothing usable was found; the store is untouched.
            ImportReloadError: The entries were saved but the reload failed.
        """
        records = codec.parse(text, fmt)
        candidates = codec.valid_candidates(records)
        if not candidates:
            raise NoValidEntriesError("No valid entries found to import")

        operation = self._begin(OperationKind.IMPORT)
        try:
            async with self._write_lock:
                ids = await self.store.add_many(candidates)
        except StoreError as e:
            operation.advance(OperationState.FAILED, e)
            raise

        operation.advance(OperationState.CONFIRMED)
        logger.info(
            "entries_imported",
            count=len(ids),
            dropped=len(records) - len(candidates),
        )
        try:
            await self.load()
        except StoreError as e:
            logger.error("import_reload_failed", count=len(ids), error=str(e))
            raise ImportReloadError(len(ids), e) from e
        return len(ids)

    async def import_file(self, path: Union[str, Path]) -> int:
        """Import a ``.json`` or ``.csv`` backup file."""
        fmt = ExportFormat.from_path(path)
        try:
            text = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise EntryImportError(f"Cannot read '{path}': {e}") from e
        return await self.import_text(text, fmt)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _begin(self, kind: OperationKind, entry_id: Optional[int] = None) -> Operation:
        operation = Operation(kind, entry_id)
        self.operations.append(operation)
        return operation

    def _index_of(self, entry_id: int) -> Optional[int]:
        return next(
            (i for i, e in enumerate(self._cache) if e.id == entry_id), None
        )

    def _put_in_cache(self, entry: Entry) -> None:
        # A load may already have picked up this id
        index = self._index_of(entry.id)
        if index is None:
            self._cache.append(entry)
        else:
            self._cache[index] = entry

    def _mark_pending(self, entry_id: int, entry: Optional[Entry]) -> int:
        version = next(self._versions)
        self._pending[entry_id] = (version, entry)
        return version

    def _settle(self, entry_id: int, version: Optional[int]) -> None:
        """Forget a pending change unless a newer one replaced it."""
        current = self._pending.get(entry_id)
        if version is not None and current is not None and current[0] == version:
            del self._pending[entry_id]

    def _overlay_pending(self, stored: List[Entry]) -> List[Entry]:
        by_id = {entry.id: entry for entry in stored}
        for entry_id, (_, pending) in self._pending.items():
            if pending is None:
                by_id.pop(entry_id, None)
            else:
                by_id[entry_id] = pending
        return list(by_id.values())

    async def _resync(self, operation: Operation, error: StoreError) -> None:
        if operation.state is OperationState.APPLIED:
            operation.advance(OperationState.ROLLED_BACK, error)
        else:
            operation.advance(OperationState.FAILED, error)
        logger.warning(
            "cache_resync",
            operation=operation.kind.value,
            entry_id=operation.entry_id,
            error=str(error),
        )
        try:
            await self.load()
        except StoreError as load_error:
            logger.error("cache_resync_failed", error=str(load_error))

    @staticmethod
    def _require_fields(entry: Entry) -> None:
        missing = [
            name
            for name in ("website", "username", "password")
            if not getattr(entry, name)
        ]
        if missing:
            raise MissingFieldError(missing)

    def _notify(self, change: CacheChange) -> None:
        for listener in list(self._listeners):
            listener(change)
