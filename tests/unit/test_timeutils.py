"""
Unit tests for timestamp normalization.
"""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from stationplay.scheduling.timeutils import (
    UTC,
    ParsedInstant,
    base_instant,
    day_bounds,
    normalize_instant,
    parse_day,
    parse_instant,
    parse_time_of_day,
    to_iso,
)

EXPECTED = datetime(2025, 1, 6, 0, 30, tzinfo=UTC)

SUPPORTED_ENCODINGS = [
    "2025-01-06T00:30:00Z",
    "2025-01-06T00:30:00z",
    "2025-01-06T00:30:00",
    "2025-01-06 00:30:00",
    "2025-01-06 00:30:00.000000",
    "2025-01-06T02:30:00+02",
    "2025-01-06T02:30:00+0200",
    "2025-01-06T02:30:00+02:00",
    "2025-01-05T19:30:00-05:00",
    "2025-01-06T00:30:00.000Z",
    datetime(2025, 1, 6, 0, 30),
    datetime(2025, 1, 6, 1, 30, tzinfo=timezone(timedelta(hours=1))),
    EXPECTED.timestamp(),
    int(EXPECTED.timestamp()),
]


@pytest.mark.unit
class TestNormalizeInstant:
    """Tests for normalize_instant()."""

    @pytest.mark.parametrize("value", SUPPORTED_ENCODINGS)
    def test_supported_encodings(self, value):
        parsed = normalize_instant(value)

        assert parsed.valid
        assert parsed.instant == EXPECTED
        assert parsed.instant.tzinfo is not None
        assert parsed.instant.utcoffset() == timedelta(0)

    @pytest.mark.parametrize("value", SUPPORTED_ENCODINGS)
    def test_idempotent(self, value):
        once = normalize_instant(value)
        twice = normalize_instant(once)
        again = normalize_instant(once.instant)

        assert twice == once
        assert again.instant == once.instant

    def test_fractional_seconds(self):
        parsed = normalize_instant("2025-01-06 00:30:00.25")

        assert parsed.instant == EXPECTED + timedelta(microseconds=250000)

    def test_date_only_is_midnight_utc(self):
        assert parse_instant("2025-01-06") == datetime(2025, 1, 6, tzinfo=UTC)
        assert parse_instant(date(2025, 1, 6)) == datetime(2025, 1, 6, tzinfo=UTC)

    @pytest.mark.parametrize(
        "value",
        [None, "", "not a date", "2025-13-01T00:00:00Z", "2025-01-06T25:00:00Z",
         "2025-01-06T00:00:00+02:75", True, float("nan"), object(), [2025, 1, 6]],
    )
    def test_invalid_inputs_never_raise(self, value):
        parsed = normalize_instant(value)

        assert not parsed.valid
        assert parsed.instant is None
        assert not parsed

    def test_keeps_raw_value(self):
        parsed = normalize_instant("2025-01-06 00:30:00")

        assert parsed.raw == "2025-01-06 00:30:00"
        assert isinstance(parsed, ParsedInstant)


@pytest.mark.unit
class TestFormattingAndDays:
    """Tests for to_iso() and the day helpers."""

    def test_to_iso(self):
        assert to_iso(EXPECTED) == "2025-01-06T00:30:00Z"
        assert to_iso(datetime(2025, 1, 6, 0, 30)) == "2025-01-06T00:30:00Z"
        assert to_iso(EXPECTED + timedelta(microseconds=5)) == "2025-01-06T00:30:00.000005Z"

    def test_to_iso_round_trips_through_normalize(self):
        assert parse_instant(to_iso(EXPECTED)) == EXPECTED

    def test_parse_day(self):
        assert parse_day("2025-01-06") == date(2025, 1, 6)
        assert parse_day(date(2025, 1, 6)) == date(2025, 1, 6)
        assert parse_day("2025-02-30") is None
        assert parse_day("06/01/2025") is None
        assert parse_day(None) is None

    def test_parse_time_of_day(self):
        assert parse_time_of_day("06:00") == time(6, 0)
        assert parse_time_of_day("23:59:59") == time(23, 59, 59)
        assert parse_time_of_day("24:00") is None
        assert parse_time_of_day("noon") is None

    def test_day_bounds(self):
        start, end = day_bounds(date(2025, 1, 6))

        assert start == datetime(2025, 1, 6, tzinfo=UTC)
        assert end == datetime(2025, 1, 7, tzinfo=UTC)

    def test_base_instant_defaults_to_midnight(self):
        assert base_instant(date(2025, 1, 6)) == datetime(2025, 1, 6, tzinfo=UTC)
        assert base_instant(date(2025, 1, 6), "06:30") == datetime(2025, 1, 6, 6, 30, tzinfo=UTC)

    def test_base_instant_rejects_bad_time(self):
        with pytest.raises(ValueError):
            base_instant(date(2025, 1, 6), "6 o'clock")
