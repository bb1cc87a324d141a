"""Tests for sorting and filtering."""

import pytest

from sitekeeper.models import Entry
from sitekeeper.transform import (
    ASCENDING,
    DESCENDING,
    SortState,
    filter_entries,
    sort_entries,
)


def _entries(*triples):
    return [Entry(w, u, p, id=i) for i, (w, u, p) in enumerate(triples, 1)]


def _websites(entries):
    return [e.website for e in entries]


class TestSortState:
    def test_starts_without_column(self):
        assert SortState().column is None

    def test_new_column_sorts_ascending(self):
        state = SortState("username", DESCENDING).toggle("website")

        assert state == SortState("website", ASCENDING)

    def test_same_column_flips_direction(self):
        state = SortState().toggle("website")

        assert state.toggle("website") == SortState("website", DESCENDING)
        assert state.toggle("website").toggle("website") == state

    def test_unknown_column_rejected(self):
        with pytest.raises(ValueError):
            SortState().toggle("notes")


class TestSortEntries:
    def test_case_insensitive(self):
        entries = _entries(("b.com", "u", "p"), ("A.com", "u", "p"), ("c.com", "u", "p"))

        sort_entries(entries, SortState("website", ASCENDING))

        assert _websites(entries) == ["A.com", "b.com", "c.com"]

    def test_sorts_in_place(self):
        entries = _entries(("b.com", "u", "p"), ("a.com", "u", "p"))

        result = sort_entries(entries, SortState("website"))

        assert result is entries

    def test_no_column_keeps_order(self):
        entries = _entries(("b.com", "u", "p"), ("a.com", "u", "p"))

        sort_entries(entries, SortState())

        assert _websites(entries) == ["b.com", "a.com"]

    def test_sorting_twice_is_idempotent(self):
        entries = _entries(
            ("b.com", "x", "p"), ("A.com", "y", "p"), ("a.com", "z", "p"), ("c.com", "w", "p")
        )
        state = SortState("website", DESCENDING)

        once = list(sort_entries(entries, state))
        twice = sort_entries(entries, state)

        assert twice == once

    def test_toggle_reverses_distinct_keys(self):
        entries = _entries(("b.com", "u", "p"), ("c.com", "u", "p"), ("a.com", "u", "p"))
        state = SortState().toggle("website")

        ascending = list(sort_entries(entries, state))
        descending = sort_entries(entries, state.toggle("website"))

        assert descending == list(reversed(ascending))

    def test_ties_keep_input_order(self):
        entries = _entries(("Same.com", "first", "p"), ("b.com", "u", "p"), ("same.com", "second", "p"))

        sort_entries(entries, SortState("website", ASCENDING))

        assert [e.username for e in entries] == ["u", "first", "second"]

    def test_sort_by_username(self):
        entries = _entries(("a.com", "zed", "p"), ("b.com", "Amy", "p"))

        sort_entries(entries, SortState("username"))

        assert [e.username for e in entries] == ["Amy", "zed"]


class TestFilterEntries:
    def test_matches_website_or_username_ignoring_case(self):
        entries = _entries(
            ("GitHub.com", "dev", "p"), ("mail.com", "GITfan", "p"), ("bank.com", "me", "p")
        )

        result = filter_entries(entries, "git")

        assert _websites(result) == ["GitHub.com", "mail.com"]

    def test_does_not_match_password(self):
        entries = _entries(("a.com", "u", "secret"))

        assert filter_entries(entries, "secret") == []

    def test_blank_term_returns_everything_in_order(self):
        entries = _entries(("b.com", "u", "p"), ("a.com", "u", "p"))

        assert filter_entries(entries, "   ") == entries

    def test_surrounding_spaces_are_part_of_the_term(self):
        entries = _entries(("my bank.com", "u", "p"), ("bank.com", "u", "p"))

        assert _websites(filter_entries(entries, " bank")) == ["my bank.com"]

    def test_never_mutates_input(self):
        entries = _entries(("b.com", "u", "p"), ("a.com", "u", "p"))
        before = list(entries)

        filter_entries(entries, "a.com")

        assert entries == before

    def test_clearing_filter_restores_sorted_order(self):
        entries = _entries(("c.com", "u", "p"), ("a.com", "u", "p"), ("b.com", "u", "p"))
        sort_entries(entries, SortState("website"))
        sorted_order = list(entries)

        filter_entries(entries, "b")
        restored = filter_entries(entries, "")

        assert restored == sorted_order
