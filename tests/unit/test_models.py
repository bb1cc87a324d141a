"""Tests for the Entry model."""

from datetime import datetime, timezone

import pytest

from sitekeeper.models import Entry, parse_timestamp


class TestEntry:
    def test_sets_created_at_when_missing(self):
        entry = Entry("example.com", "alice", "p1")

        assert entry.created_at is not None
        assert entry.created_at.tzinfo is not None
        assert entry.id is None

    def test_to_dict_field_order(self, sample_entry):
        sample_entry.id = 7

        data = sample_entry.to_dict()

        assert list(data) == ["id", "website", "username", "password", "createdAt"]
        assert data["id"] == 7
        assert data["createdAt"] == sample_entry.created_at.isoformat()

    def test_from_dict_round_trip(self, sample_entry):
        sample_entry.id = 3

        restored = Entry.from_dict(sample_entry.to_dict())

        assert restored == sample_entry

    def test_from_dict_accepts_snake_case_timestamp(self):
        entry = Entry.from_dict(
            {
                "website": "a.com",
                "username": "u",
                "password": "p",
                "created_at": "2024-01-02T03:04:05+00:00",
            }
        )

        assert entry.created_at == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_copy_with_updates_keeps_identity(self, sample_entry):
        sample_entry.id = 4

        updated = sample_entry.copy_with_updates(password="p2")

        assert updated.id == 4
        assert updated.created_at == sample_entry.created_at
        assert updated.password == "p2"
        assert sample_entry.password == "p1"

    def test_field_value_maps_column_names(self, sample_entry):
        assert sample_entry.field_value("website") == "example.com"
        assert sample_entry.field_value("createdAt") == sample_entry.created_at

    def test_field_value_rejects_unknown_column(self, sample_entry):
        with pytest.raises(ValueError):
            sample_entry.field_value("notes")


class TestParseTimestamp:
    def test_parses_browser_style_z_suffix(self):
        parsed = parse_timestamp("2024-05-01T10:00:00.000Z")

        assert parsed == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)

    def test_naive_values_become_utc(self):
        parsed = parse_timestamp("2024-05-01T10:00:00")

        assert parsed.tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "yesterday", 12345])
    def test_unreadable_values_return_none(self, value):
        assert parse_timestamp(value) is None
