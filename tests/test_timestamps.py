"""Unit tests for timestamp and text utilities."""

from datetime import datetime, timedelta, timezone

import pytest

from pushdesk.utils import clamp_text, ensure_utc, format_timestamp, is_blank, parse_timestamp, utc_now


class TestUtcNow:
    """Tests for utc_now function."""

    def test_utc_now_returns_utc_datetime(self):
        now = utc_now()
        assert now.tzinfo == timezone.utc

    def test_utc_now_is_recent(self):
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)
        assert before <= now <= after


class TestEnsureUtc:
    """Tests for ensure_utc function."""

    def test_none(self):
        assert ensure_utc(None) is None

    def test_naive_is_assumed_utc(self):
        result = ensure_utc(datetime(2025, 11, 4, 12, 0, 0))
        assert result == datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc)

    def test_other_zone_converted(self):
        eastern = timezone(timedelta(hours=-5))
        result = ensure_utc(datetime(2025, 11, 4, 7, 0, 0, tzinfo=eastern))
        assert result.tzinfo == timezone.utc
        assert result.hour == 12


class TestFormatAndParse:
    """Tests for storage formatting and parsing."""

    def test_format_timestamp(self):
        dt = datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc)
        assert format_timestamp(dt) == "2025-11-04T12:00:00.000000Z"

    def test_format_none(self):
        assert format_timestamp(None) is None

    def test_parse_z_suffix(self):
        assert parse_timestamp("2025-11-04T12:00:00.000000Z") == datetime(
            2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc
        )

    def test_parse_offset(self):
        assert parse_timestamp("2025-11-04T14:00:00+02:00") == datetime(
            2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date"])
    def test_parse_invalid(self, value):
        assert parse_timestamp(value) is None

    def test_format_preserves_microseconds(self):
        dt = datetime(2025, 11, 4, 12, 0, 0, 123456, tzinfo=timezone.utc)
        assert parse_timestamp(format_timestamp(dt)) == dt


class TestText:
    """Tests for text helpers."""

    @pytest.mark.parametrize("text,expected", [(None, True), ("", True), (" \n\t", True), ("x", False)])
    def test_is_blank(self, text, expected):
        assert is_blank(text) is expected

    def test_clamp_text(self):
        assert clamp_text("Weekly digest is ready", 6) == "Weekly"
        assert clamp_text("short", 65) == "short"

    def test_clamp_text_negative_limit(self):
        with pytest.raises(ValueError):
            clamp_text("x", -1)
