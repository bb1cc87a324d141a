"""Data model for stored website credentials."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

# Column names as exposed to sorting and exports
SORTABLE_COLUMNS = ("website", "username", "password", "createdAt")

_COLUMN_ATTRIBUTES = {
    "website": "website",
    "username": "username",
    "password": "password",
    "createdAt": "created_at",
}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None when it cannot be read."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        # Browser exports end in 'Z', which fromisoformat rejects before 3.11
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Entry:
    """A website/username/password triple.

    ``id`` is assigned by the store on first persistence and never changes
    afterwards. ``created_at`` is fixed when the entry is created and is not
    touched by edits.
    """

    website: str
    username: str
    password: str
    created_at: Optional[datetime] = None
    id: Optional[int] = None

    def __post_init__(self):
        """Set creation timestamp if not provided."""
        if self.created_at is None:
            self.created_at = datetime.now(timezone.utc)

    def field_value(self, column: str) -> Any:
        """Return the raw value shown in ``column``."""
        try:
            return getattr(self, _COLUMN_ATTRIBUTES[column])
        except KeyError:
            raise ValueError(f"Unknown column: {column}") from None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON storage and export."""
        return {
            "id": self.id,
            "website": self.website,
            "username": self.username,
            "password": self.password,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Entry":
        """Create Entry from a stored or exported dictionary."""
        raw_created = data.get("createdAt", data.get("created_at"))
        raw_id = data.get("id")
        return cls(
            website=str(data.get("website") or ""),
            username=str(data.get("username") or ""),
            password=str(data.get("password") or ""),
            created_at=parse_timestamp(raw_created),
            id=int(raw_id) if raw_id is not None else None,
        )

    def copy_with_updates(self, **updates) -> "Entry":
        """Create a new entry with updated fields, keeping id and creation time."""
        data = {
            "website": self.website,
            "username": self.username,
            "password": self.password,
        }
        data.update(updates)
        return Entry(created_at=self.created_at, id=self.id, **data)
