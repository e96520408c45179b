"""Tests for utility functions."""

from datetime import datetime, timezone

from pysnsync.utils import (
    format_columns,
    iso_timestamp_to_unix,
    parse_iso_timestamp,
    utc_now_iso,
)


class TestParseIsoTimestamp:
    def test_zulu_suffix(self):
        dt = parse_iso_timestamp("2025-01-15T10:30:00.000000Z")
        assert dt == datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self):
        dt = parse_iso_timestamp("2025-01-15T12:30:00+02:00")
        assert dt == datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_naive_assumed_utc(self):
        dt = parse_iso_timestamp("2025-01-15T10:30:00")
        assert dt.tzinfo == timezone.utc

    def test_nanosecond_precision(self):
        dt = parse_iso_timestamp("2025-01-15T10:30:00.123456789Z")
        assert dt.replace(microsecond=0) == datetime(
            2025, 1, 15, 10, 30, tzinfo=timezone.utc
        )

    def test_invalid(self):
        assert parse_iso_timestamp("yesterday") is None
        assert parse_iso_timestamp(None) is None
        assert parse_iso_timestamp("") is None


class TestTimestamps:
    def test_to_unix(self):
        assert iso_timestamp_to_unix("1970-01-01T00:01:00Z") == 60.0
        assert iso_timestamp_to_unix(None) is None

    def test_now_round_trips(self):
        now = utc_now_iso()
        assert now.endswith("Z")
        assert parse_iso_timestamp(now) is not None


class TestFormatColumns:
    def test_aligns_columns(self):
        out = format_columns([".a | pushed", ".bashrc | pulled"])
        assert out.splitlines() == [".a       pushed", ".bashrc  pulled"]

    def test_empty(self):
        assert format_columns([]) == ""

    def test_blank_lines_skipped(self):
        assert format_columns(["", ".a | x"]) == ".a  x"
