"""Entry store - durable local persistence for password entries."""

import asyncio
import json
import os
import stat
import tempfile
import threading
from typing import Dict, Iterable, List, Optional

import structlog

from . import SCHEMA_VERSION, __version__
from .models import Entry

logger = structlog.get_logger(__name__)


class StoreError(Exception):
    """Base exception for store-related errors."""

    pass


class StoreOpenError(StoreError):
    """Raised when the store cannot be opened or created."""

    pass


class StoreReadError(StoreError):
    """Raised when reading records fails."""

    pass


class StoreWriteError(StoreError):
    """Raised when a write transaction fails."""

    pass


class _Document:
    """In-flight copy of the store document used by one transaction."""

    def __init__(self, data: dict):
        self.created_with: Optional[str] = data.get("created_with")
        self.next_id: int = int(data.get("next_id", 1))
        self.records: Dict[int, dict] = {
            int(record["id"]): record for record in data.get("records", [])
        }

    def allocate_id(self) -> int:
        new_id = self.next_id
        self.next_id += 1
        return new_id

    def to_dict(self) -> dict:
        return {
            "schema_version": SCHEMA_VERSION,
            "created_with": self.created_with or __version__,
            "last_modified_with": __version__,
            "next_id": self.next_id,
            "records": [self.records[key] for key in sorted(self.records)],
        }


class EntryStore:
    """Password entries persisted as one JSON document on disk.

    Each mutating call is a single read-modify-write transaction: the document
    is re-read, changed in memory and atomically replaced. Identifiers come
    from a ``next_id`` counter that only ever grows, so ids are never reused
    after delete or clear.

    All public operations are coroutines; file I/O runs in a worker thread.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        self._lock = threading.Lock()

    @classmethod
    async def open(cls, file_path: str) -> "EntryStore":
        """Open the store at ``file_path``, creating it when missing.

        Raises:
            StoreOpenError: If the file exists but is unreadable, malformed or
                written with an unsupported schema version.
        """
        store = cls(file_path)
        await asyncio.to_thread(store._open_sync)
        logger.info("store_opened", path=file_path)
        return store

    def _open_sync(self) -> None:
        with self._lock:
            try:
                directory = os.path.dirname(os.path.abspath(self.file_path))
                os.makedirs(directory, exist_ok=True)
                if not os.path.exists(self.file_path):
                    self._write(_Document({}))
                    return
                data = self._read()
                _Document(data)
            except (KeyError, TypeError, ValueError) as e:
                logger.error("store_open_failed", path=self.file_path, error=str(e))
                raise StoreOpenError(f"Store records are invalid: {e}") from e
            except (StoreError, OSError) as e:
                logger.error("store_open_failed", path=self.file_path, error=str(e))
                raise StoreOpenError(f"Failed to open store: {e}") from e

        version = data.get("schema_version", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise StoreOpenError(
                f"Unsupported store schema version {version} "
                f"(expected {SCHEMA_VERSION})"
            )

    # ------------------------------------------------------------------
    # Synchronous helpers (executed in a worker thread)
    # ------------------------------------------------------------------

    def _read(self) -> dict:
        """Read and decode the raw store document."""
        try:
            with open(self.file_path, "rb") as f:
                raw_content = f.read()
        except OSError as e:
            raise StoreReadError(f"Failed to read store file: {e}") from e

        if not raw_content.strip():
            return {}

        try:
            data = json.loads(raw_content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StoreReadError(f"Store file is corrupted or invalid: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("records", []), list):
            raise StoreReadError("Store file has an unexpected layout")
        return data

    def _load_document(self) -> _Document:
        data = self._read()
        try:
            return _Document(data)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreReadError(f"Store records are invalid: {e}") from e

    def _write(self, document: _Document) -> None:
        """Atomically replace the store file with ``document``."""
        content = json.dumps(document.to_dict(), indent=2)
        store_dir = os.path.dirname(os.path.abspath(self.file_path))
        temp_fd, temp_path = tempfile.mkstemp(
            dir=store_dir, prefix=".store_tmp_", suffix=".json"
        )

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)

            # Set permissions (0600)
            os.chmod(temp_path, stat.S_IRUSR | stat.S_IWUSR)

            # Atomic replace (works on Unix and Windows)
            os.replace(temp_path, self.file_path)
        except OSError as e:
            self._cleanup_temp(temp_path)
            raise StoreWriteError(f"Failed to save store: {e}") from e

    def _cleanup_temp(self, temp_path: str) -> None:
        """Remove temporary file if it exists."""
        try:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
        except OSError:
            pass

    def _transaction(self, mutate) -> object:
        """Run ``mutate(document)`` and persist the result in one step."""
        with self._lock:
            try:
                document = self._load_document()
            except StoreReadError as e:
                raise StoreWriteError(f"Cannot modify unreadable store: {e}") from e
            result = mutate(document)
            self._write(document)
            return result

    def _get_all_sync(self) -> List[Entry]:
        with self._lock:
            document = self._load_document()
        try:
            return [Entry.from_dict(document.records[key]) for key in sorted(document.records)]
        except (TypeError, ValueError) as e:
            raise StoreReadError(f"Store records are invalid: {e}") from e

    # ------------------------------------------------------------------
    # Asynchronous interface
    # ------------------------------------------------------------------

    async def get_all(self) -> List[Entry]:
        """Read every record, ordered by id."""
        try:
            return await asyncio.to_thread(self._get_all_sync)
        except StoreReadError as e:
            logger.error("store_read_failed", path=self.file_path, error=str(e))
            raise

    async def add(self, entry: Entry) -> int:
        """Insert ``entry`` as a new record and return the assigned id.

        Any id already on ``entry`` is ignored.
        """
        ids = await self.add_many([entry])
        return ids[0]

    async def add_many(self, entries: Iterable[Entry]) -> List[int]:
        """Insert several records in one transaction, all or nothing."""
        pending = list(entries)

        def mutate(document: _Document) -> List[int]:
            assigned = []
            for entry in pending:
                new_id = document.allocate_id()
                record = entry.to_dict()
                record["id"] = new_id
                document.records[new_id] = record
                assigned.append(new_id)
            return assigned

        return await self._run_write("add", mutate, count=len(pending))

    async def put(self, entry: Entry) -> None:
        """Replace (or insert) the record stored under ``entry.id``."""
        if entry.id is None:
            raise StoreWriteError("Cannot put an entry without an id")

        def mutate(document: _Document) -> None:
            document.records[entry.id] = entry.to_dict()
            # Keep the counter ahead of explicitly written ids
            document.next_id = max(document.next_id, entry.id + 1)

        await self._run_write("put", mutate, entry_id=entry.id)

    async def delete(self, entry_id: int) -> None:
        """Remove the record at ``entry_id``; missing records are ignored."""

        def mutate(document: _Document) -> None:
            document.records.pop(entry_id, None)

        await self._run_write("delete", mutate, entry_id=entry_id)

    async def clear(self) -> None:
        """Remove all records. The id counter is kept."""

        def mutate(document: _Document) -> None:
            document.records.clear()

        await self._run_write("clear", mutate)

    async def count(self) -> int:
        """Get the number of stored records."""
        return len(await self.get_all())

    async def _run_write(self, operation: str, mutate, **context):
        try:
            return await asyncio.to_thread(self._transaction, mutate)
        except StoreWriteError as e:
            logger.error(
                "store_write_failed", operation=operation, error=str(e), **context
            )
            raise
