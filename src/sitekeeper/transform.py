"""Sorting and filtering of the cached entry list."""

from dataclasses import dataclass
from typing import List, Optional

from .models import SORTABLE_COLUMNS, Entry

ASCENDING = "asc"
DESCENDING = "desc"


@dataclass(frozen=True)
class SortState:
    """Current sort column and direction.

    ``column`` is None until the user picks one; the cache then keeps the
    order it was loaded in.
    """

    column: Optional[str] = None
    direction: str = ASCENDING

    def toggle(self, column: str) -> "SortState":
        """Return the state after selecting ``column``.

        Selecting the active column flips the direction, any other column
        starts ascending.
        """
        if column not in SORTABLE_COLUMNS:
            raise ValueError(f"Unknown column: {column}")
        if column == self.column:
            flipped = DESCENDING if self.direction == ASCENDING else ASCENDING
            return SortState(column, flipped)
        return SortState(column, ASCENDING)

    @property
    def descending(self) -> bool:
        return self.direction == DESCENDING


def sort_key(entry: Entry, column: str) -> str:
    """Case-insensitive key; missing values sort as empty strings."""
    value = entry.field_value(column)
    if value is None:
        return ""
    if column == "createdAt":
        return value.isoformat()
    return str(value).lower()


def sort_entries(entries: List[Entry], state: SortState) -> List[Entry]:
    """Sort ``entries`` in place according to ``state`` and return it.

    The sort is stable in both directions, so entries with equal keys keep
    their relative order.
    """
    if state.column is None:
        return entries
    column = state.column
    entries.sort(key=lambda e: sort_key(e, column), reverse=state.descending)
    return entries


def filter_entries(entries: List[Entry], term: str) -> List[Entry]:
    """Entries whose website or username contains ``term``, ignoring case.

    A blank or whitespace-only term returns a copy of ``entries`` in its
    current order. Otherwise the term is matched as typed. The input list is
    never modified.
    """
    needle = (term or "").lower()
    if not needle.strip():
        return list(entries)
    return [
        e
        for e in entries
        if needle in (e.website or "").lower() or needle in (e.username or "").lower()
    ]
