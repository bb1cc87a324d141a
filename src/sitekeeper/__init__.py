"""SiteKeeper local password list manager."""

# Version constants (must be defined before imports to avoid circular dependencies)
__version__ = "0.2.0"
SCHEMA_VERSION = 1

# ruff: noqa: E402
from .codec import (
    EntryImportError,
    ExportFormat,
    ImportParseError,
    NoValidEntriesError,
)
from .config import config
from .models import Entry
from .service import (
    CacheChange,
    ChangeKind,
    ClearNotRequestedError,
    EntryNotFoundError,
    EntryService,
    ImportReloadError,
    MissingFieldError,
    NoChangesError,
    ValidationError,
)
from .store import (
    EntryStore,
    StoreError,
    StoreOpenError,
    StoreReadError,
    StoreWriteError,
)
from .transform import SortState, filter_entries, sort_entries

__all__ = [
    "Entry",
    "EntryStore",
    "EntryService",
    "CacheChange",
    "ChangeKind",
    "ExportFormat",
    "SortState",
    "config",
    "filter_entries",
    "sort_entries",
    "StoreError",
    "StoreOpenError",
    "StoreReadError",
    "StoreWriteError",
    "ValidationError",
    "MissingFieldError",
    "EntryNotFoundError",
    "ImportReloadError",
    "NoChangesError",
    "ClearNotRequestedError",
    "EntryImportError",
    "ImportParseError",
    "NoValidEntriesError",
]
