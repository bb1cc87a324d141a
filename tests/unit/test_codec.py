"""Tests for JSON/CSV import and export."""

import json
from datetime import date, datetime, timezone

import pytest
from structlog.testing import capture_logs

from sitekeeper.codec import (
    ExportFormat,
    ImportParseError,
    backup_filename,
    export_csv,
    export_json,
    parse,
    parse_csv,
    parse_json,
    valid_candidates,
)
from sitekeeper.models import Entry


@pytest.fixture
def entries():
    created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    return [
        Entry("example.com", "alice", "p1", created_at=created, id=1),
        Entry("Example.com", "user,one", 'pa"ss', created_at=created, id=2),
        Entry("multi.line", "bob", "line1\nline2", created_at=created, id=3),
    ]


class TestExportJson:
    def test_pretty_printed_array_of_full_entries(self, entries):
        text = export_json(entries)

        data = json.loads(text)
        assert "\n  " in text
        assert [item["id"] for item in data] == [1, 2, 3]
        assert list(data[0]) == ["id", "website", "username", "password", "createdAt"]
        assert data[1]["password"] == 'pa"ss'

    def test_empty_cache(self):
        assert json.loads(export_json([])) == []


class TestExportCsv:
    def test_header_and_crlf_rows(self, entries):
        text = export_csv(entries[:1])

        assert text == "website,username,password\r\nexample.com,alice,p1"

    def test_quotes_special_fields(self, entries):
        lines = export_csv(entries).split("\r\n")

        assert lines[2] == 'Example.com,"user,one","pa""ss"'
        assert lines[3] == 'multi.line,bob,"line1\nline2"'

    def test_omits_id_and_timestamp(self, entries):
        text = export_csv(entries)

        assert "2024" not in text
        assert text.splitlines()[0] == "website,username,password"

    def test_empty_cache_is_header_only(self):
        assert export_csv([]) == "website,username,password"


class TestParseCsv:
    def test_quoted_comma_and_doubled_quote(self):
        text = 'website,username,password\nExample.com,"user,one","pa""ss"'

        records = parse_csv(text)

        assert records == [
            {"website": "Example.com", "username": "user,one", "password": 'pa"ss'}
        ]

    def test_newline_inside_quotes(self):
        text = 'website,username,password\r\nsite,bob,"line1\r\nline2"\r\n'

        records = parse_csv(text)

        assert records == [{"website": "site", "username": "bob", "password": "line1\nline2"}]

    def test_skips_leading_blank_lines(self):
        text = "\n\n  \nwebsite,username,password\na.com,u,p"

        assert parse_csv(text) == [{"website": "a.com", "username": "u", "password": "p"}]

    def test_old_mac_line_endings(self):
        text = "website,username,password\ra.com,u,p\rb.com,v,q"

        assert [r["website"] for r in parse_csv(text)] == ["a.com", "b.com"]

    def test_mismatched_rows_are_skipped_with_warning(self):
        text = "website,username,password\na.com,u\nb.com,v,q\nc.com,w,r,extra"

        with capture_logs() as logs:
            records = parse_csv(text)

        assert [r["website"] for r in records] == ["b.com"]
        skipped = [log for log in logs if log["event"] == "csv_row_skipped"]
        assert len(skipped) == 2
        assert all(log["log_level"] == "warning" for log in skipped)

    def test_blank_data_rows_ignored(self):
        text = "website,username,password\n\na.com,u,p\n\n"

        assert len(parse_csv(text)) == 1

    def test_headers_are_normalized(self):
        text = " Website , USERNAME,password,notes\na.com,u,p,n"

        assert parse_csv(text) == [
            {"website": "a.com", "username": "u", "password": "p", "notes": "n"}
        ]

    def test_empty_input(self):
        assert parse_csv("\n\n") == []

    def test_stray_quote_skips_only_that_row(self):
        text = 'website,username,password\na.com,u,p\nb.com,"v"x,q\nc.com,w,r'

        with capture_logs() as logs:
            records = parse_csv(text)

        assert [r["website"] for r in records] == ["a.com", "c.com"]
        assert [log["event"] for log in logs] == ["csv_row_skipped"]

    def test_unterminated_quote_at_end_keeps_earlier_rows(self):
        with capture_logs() as logs:
            records = parse_csv('website,username,password\na.com,u,p\nb.com,"v,q')

        assert records == [{"website": "a.com", "username": "u", "password": "p"}]
        assert logs[0]["event"] == "csv_row_skipped"

    def test_malformed_header_is_parse_error(self):
        with pytest.raises(ImportParseError):
            parse_csv('website,"user"x,password\na.com,u,p')


class TestParseJson:
    def test_array_of_objects(self):
        records = parse_json('[{"website": "a.com", "username": "u", "password": "p"}]')

        assert records == [{"website": "a.com", "username": "u", "password": "p"}]

    def test_malformed_json(self):
        with pytest.raises(ImportParseError):
            parse_json("[{not json")

    def test_non_array_document(self):
        with pytest.raises(ImportParseError):
            parse_json('{"website": "a.com"}')

    def test_non_object_items_dropped(self):
        assert parse_json('[1, "x", {"website": "a.com"}]') == [{"website": "a.com"}]


class TestValidCandidates:
    def test_drops_records_missing_fields(self):
        records = [
            {"website": "a.com", "username": "u", "password": "p"},
            {"website": "b.com", "username": "", "password": "p"},
            {"website": "c.com", "username": "u"},
            {"username": "u", "password": "p"},
        ]

        candidates = valid_candidates(records)

        assert [c.website for c in candidates] == ["a.com"]

    def test_discards_source_ids(self):
        candidates = valid_candidates(
            [{"id": 42, "website": "a.com", "username": "u", "password": "p"}]
        )

        assert candidates[0].id is None

    def test_keeps_readable_created_at(self):
        candidates = valid_candidates(
            [
                {
                    "website": "a.com",
                    "username": "u",
                    "password": "p",
                    "createdAt": "2023-03-04T05:06:07.000Z",
                },
                {"website": "b.com", "username": "u", "password": "p", "createdAt": "soon"},
            ]
        )

        assert candidates[0].created_at == datetime(2023, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
        assert candidates[1].created_at.year >= 2024

    def test_values_are_coerced_to_text(self):
        candidates = valid_candidates([{"website": "a.com", "username": 123, "password": 456}])

        assert candidates[0].username == "123"
        assert candidates[0].password == "456"


class TestRoundTrip:
    def test_json_round_trip_keeps_credentials(self, entries):
        records = parse(export_json(entries), ExportFormat.JSON)

        restored = valid_candidates(records)

        assert [(e.website, e.username, e.password) for e in restored] == [
            (e.website, e.username, e.password) for e in entries
        ]

    def test_csv_round_trip_keeps_credentials(self, entries):
        restored = valid_candidates(parse(export_csv(entries), ExportFormat.CSV))

        assert [(e.website, e.username, e.password) for e in restored] == [
            (e.website, e.username, e.password) for e in entries
        ]


class TestExportFormat:
    def test_backup_filename(self):
        assert (
            backup_filename(ExportFormat.JSON, date(2024, 5, 1))
            == "passwords-backup-2024-05-01.json"
        )
        assert backup_filename(ExportFormat.CSV, date(2024, 5, 1)).endswith(".csv")

    def test_from_path(self):
        assert ExportFormat.from_path("backup.CSV") is ExportFormat.CSV
        assert ExportFormat.from_path("/tmp/x.json") is ExportFormat.JSON

    def test_from_path_rejects_other_suffixes(self):
        with pytest.raises(ImportParseError):
            ExportFormat.from_path("backup.txt")
