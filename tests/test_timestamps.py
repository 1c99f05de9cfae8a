"""Tests for timestamp helpers."""

from datetime import timezone

from threadcomments.core.timestamps import format_timestamp, parse_timestamp, timestamp_sort_key


class TestParseTimestamp:
    def test_rfc2822(self):
        parsed = parse_timestamp("Sat, 12 Aug 2023 12:36:08 GMT")
        assert (parsed.year, parsed.month, parsed.day, parsed.hour) == (2023, 8, 12, 12)

    def test_iso_naive_is_utc(self):
        assert parse_timestamp("2023-08-12T12:36:08").tzinfo == timezone.utc

    def test_trailing_z_is_utc(self):
        parsed = parse_timestamp("2023-01-01T00:00:00Z")
        assert parsed.tzinfo == timezone.utc
        assert parsed.year == 2023

    def test_trailing_z_values_sort_by_time(self):
        assert timestamp_sort_key("2022-12-31T00:00:00Z") < timestamp_sort_key("2023-01-01T00:00:00Z")
        assert timestamp_sort_key("2023-01-01T00:00:00Z") == timestamp_sort_key("2023-01-01T00:00:00+00:00")

    def test_both_formats_compare(self):
        assert timestamp_sort_key("Sat, 12 Aug 2023 12:36:08 GMT") == timestamp_sort_key("2023-08-12T12:36:08")

    def test_bad_input(self):
        assert parse_timestamp("") is None
        assert parse_timestamp("yesterday") is None
        assert timestamp_sort_key("yesterday") == float("-inf")


class TestFormatTimestamp:
    def test_formats_with_pattern(self):
        assert format_timestamp("Sat, 12 Aug 2023 12:36:08 GMT", "%d/%m/%Y, %H:%M") == "12/08/2023, 12:36"

    def test_unparsable_shown_raw(self):
        assert format_timestamp("soon", "%Y") == "soon"
