"""Import and export of entry lists as JSON or CSV text."""

import csv
import io
import json
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

import structlog

from .config import Config
from .models import Entry, parse_timestamp

logger = structlog.get_logger(__name__)

CSV_FIELDS = ("website", "username", "password")
CSV_LINE_TERMINATOR = "\r\n"
REQUIRED_FIELDS = ("website", "username", "password")


class EntryImportError(Exception):
    """Base exception for import failures."""

    pass


class ImportParseError(EntryImportError):
    """Raised when import text cannot be parsed."""

    pass


class NoValidEntriesError(EntryImportError):
    """Raised when an import contains no usable entries."""

    pass


class ExportFormat(str, Enum):
    """Supported backup formats."""

    JSON = "json"
    CSV = "csv"

    @property
    def extension(self) -> str:
        return self.value

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ExportFormat":
        """Pick the format from a file suffix."""
        suffix = Path(path).suffix.lower().lstrip(".")
        try:
            return cls(suffix)
        except ValueError:
            raise ImportParseError(
                f"Unsupported file type '{Path(path).suffix}' (expected .json or .csv)"
            ) from None


# ============================================================================
# Export
# ============================================================================


def export_json(entries: Iterable[Entry]) -> str:
    """Pretty-printed JSON array of full entry objects."""
    return json.dumps([entry.to_dict() for entry in entries], indent=2)


def export_csv(entries: Iterable[Entry]) -> str:
    """CSV with a ``website,username,password`` header and CRLF-joined rows.

    Fields holding a quote, comma or line break are quoted with inner quotes
    doubled. Ids and timestamps are not exported in this format.
    """
    buffer = io.StringIO()
    writer = csv.writer(
        buffer, lineterminator=CSV_LINE_TERMINATOR, quoting=csv.QUOTE_MINIMAL
    )
    writer.writerow(CSV_FIELDS)
    for entry in entries:
        writer.writerow([entry.website, entry.username, entry.password])
    return buffer.getvalue()[: -len(CSV_LINE_TERMINATOR)]


def export_text(entries: Iterable[Entry], fmt: ExportFormat) -> str:
    """Serialize ``entries`` in ``fmt``."""
    if ExportFormat(fmt) is ExportFormat.CSV:
        return export_csv(entries)
    return export_json(entries)


def backup_filename(fmt: ExportFormat, day: Optional[date] = None) -> str:
    """e.g. ``passwords-backup-2024-05-01.json``."""
    day = day or date.today()
    return f"{Config.EXPORT_PREFIX}-{day.isoformat()}.{ExportFormat(fmt).extension}"


# ============================================================================
# Import
# ============================================================================


def parse_json(text: str) -> List[dict]:
    """Parse a JSON array of entry objects into raw candidate records."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportParseError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise ImportParseError("Expected a JSON array of entries")
    return [item for item in data if isinstance(item, dict)]


def parse_csv(text: str) -> List[dict]:
    """Parse CSV text into raw candidate records keyed by header name.

    Line endings are normalized and leading blank lines skipped; the first
    remaining line is the header. Quoted fields may contain commas, line
    breaks and doubled quotes. Malformed records and rows whose field count
    differs from the header are skipped with a warning; only an unreadable
    header aborts the parse.
    """
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = normalized.split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    if not lines:
        return []

    reader = csv.reader(io.StringIO("\n".join(lines)), strict=True)
    rows = []
    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            if not rows:
                raise ImportParseError(f"Invalid CSV header: {e}") from e
            # The reader resumes at the next physical line
            logger.warning("csv_row_skipped", line=reader.line_num, error=str(e))
            continue
        rows.append(row)

    if not rows:
        return []

    headers = [h.strip().lower() for h in rows[0]]
    records = []
    # Row numbers count records (quoted fields may span lines)
    for row_number, row in enumerate(rows[1:], start=2):
        if not row or (len(row) == 1 and not row[0].strip()):
            continue
        if len(row) != len(headers):
            logger.warning(
                "csv_row_skipped",
                row=row_number,
                expected=len(headers),
                found=len(row),
            )
            continue
        records.append(dict(zip(headers, row)))
    return records


def parse(text: str, fmt: ExportFormat) -> List[dict]:
    """Parse import ``text`` in ``fmt`` into raw candidate records."""
    if ExportFormat(fmt) is ExportFormat.CSV:
        return parse_csv(text)
    return parse_json(text)


def _text_field(record: dict, name: str) -> str:
    value: Any = record.get(name)
    if value is None:
        return ""
    return str(value)


def valid_candidates(records: Iterable[dict]) -> List[Entry]:
    """Turn raw records into new entries, dropping incomplete ones.

    Source ids are discarded so the store assigns fresh ones. A readable
    ``createdAt`` is kept, otherwise the import time is used.
    """
    candidates = []
    for record in records:
        fields = {name: _text_field(record, name) for name in REQUIRED_FIELDS}
        if not all(fields.values()):
            continue
        created_at = parse_timestamp(record.get("createdAt", record.get("created_at")))
        candidates.append(Entry(created_at=created_at, **fields))
    return candidates
