"""
Timestamp normalization.

Every schedule comparison happens on timezone-aware UTC datetimes. Rows
arrive with start times in several shapes (ISO strings with or without a
zone, "date time" strings from SQL dumps, numeric offsets, naive datetimes
from SQLite, epoch seconds), so everything goes through normalize_instant()
before it is compared with anything else.
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

UTC = timezone.utc

_TIMESTAMP_RE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"(?:[Tt ](?P<hour>\d{2}):(?P<minute>\d{2})"
    r"(?::(?P<second>\d{2})(?:[.,](?P<fraction>\d+))?)?)?"
    r"\s*(?P<zone>[Zz]|[+-]\d{2}(?::?\d{2})?)?$"
)

_DAY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

_TIME_OF_DAY_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


@dataclass(frozen=True)
class ParsedInstant:
    """Result of normalizing a timestamp: either a UTC instant or invalid."""

    raw: Any
    instant: Optional[datetime] = None

    @property
    def valid(self) -> bool:
        return self.instant is not None

    @classmethod
    def invalid(cls, raw: Any) -> "ParsedInstant":
        return cls(raw=raw, instant=None)

    def __bool__(self) -> bool:
        return self.valid


def normalize_instant(value: Any) -> ParsedInstant:
    """
    Normalize a timestamp into a UTC instant.

    Accepts datetimes (naive values are taken as UTC), dates (midnight
    UTC), epoch seconds, ParsedInstant results, and strings in ISO-8601
    form with a zone suffix, without one (UTC assumed), "YYYY-MM-DD
    HH:MM:SS[.ffffff]" (UTC assumed) or with a numeric offset such as
    +02, +0200 or -05:30.

    Never raises: anything unusable yields an invalid result.
    """
    if isinstance(value, ParsedInstant):
        return value

    if value is None or isinstance(value, bool):
        return ParsedInstant.invalid(value)

    if isinstance(value, datetime):
        if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
            return ParsedInstant(raw=value, instant=value.replace(tzinfo=UTC))
        return ParsedInstant(raw=value, instant=value.astimezone(UTC))

    if isinstance(value, date):
        return ParsedInstant(
            raw=value,
            instant=datetime(value.year, value.month, value.day, tzinfo=UTC),
        )

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return ParsedInstant.invalid(value)
        try:
            return ParsedInstant(raw=value, instant=datetime.fromtimestamp(value, tz=UTC))
        except (OverflowError, OSError, ValueError):
            return ParsedInstant.invalid(value)

    if isinstance(value, str):
        instant = _parse_timestamp_string(value)
        if instant is None:
            return ParsedInstant.invalid(value)
        return ParsedInstant(raw=value, instant=instant)

    return ParsedInstant.invalid(value)


def parse_instant(value: Any) -> Optional[datetime]:
    """Shortcut for normalize_instant(value).instant."""
    return normalize_instant(value).instant


def _parse_timestamp_string(text: str) -> Optional[datetime]:
    match = _TIMESTAMP_RE.match(text.strip())
    if not match:
        return None

    parts = match.groupdict()
    fraction = parts["fraction"] or ""
    microsecond = int((fraction + "000000")[:6]) if fraction else 0

    try:
        parsed = datetime(
            int(parts["year"]),
            int(parts["month"]),
            int(parts["day"]),
            int(parts["hour"] or 0),
            int(parts["minute"] or 0),
            int(parts["second"] or 0),
            microsecond,
            tzinfo=_parse_zone(parts["zone"]),
        )
    except ValueError:
        return None

    return parsed.astimezone(UTC)


def _parse_zone(zone: Optional[str]) -> timezone:
    """Zone suffix to tzinfo. Raises ValueError for out of range offsets."""
    if not zone or zone in ("Z", "z"):
        return UTC

    sign = -1 if zone[0] == "-" else 1
    digits = zone[1:].replace(":", "")
    hours = int(digits[:2])
    minutes = int(digits[2:4]) if len(digits) > 2 else 0
    if minutes >= 60:
        raise ValueError(f"Invalid offset minutes: {zone}")

    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def to_iso(instant: datetime) -> str:
    """Format an instant as a canonical UTC string (2025-01-06T00:30:00Z)."""
    instant = instant.astimezone(UTC) if instant.tzinfo else instant.replace(tzinfo=UTC)
    if instant.microsecond:
        return instant.strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z"
    return instant.strftime("%Y-%m-%dT%H:%M:%S") + "Z"


def parse_day(value: Any) -> Optional[date]:
    """Parse a UTC calendar day given as a date or "YYYY-MM-DD"."""
    if isinstance(value, datetime):
        return normalize_instant(value).instant.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        match = _DAY_RE.match(value.strip())
        if match:
            try:
                return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
            except ValueError:
                return None
    return None


def parse_time_of_day(value: Any) -> Optional[time]:
    """Parse "HH:MM" / "HH:MM:SS" (or a time object) as a UTC time of day."""
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    if isinstance(value, str):
        match = _TIME_OF_DAY_RE.match(value.strip())
        if match:
            try:
                return time(int(match.group(1)), int(match.group(2)), int(match.group(3) or 0))
            except ValueError:
                return None
    return None


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open UTC window [00:00, next 00:00) covering a calendar day."""
    start = datetime(day.year, day.month, day.day, tzinfo=UTC)
    return start, start + timedelta(days=1)


def base_instant(day: date, time_of_day: Any = None) -> datetime:
    """
    Chaining base for a UTC calendar day.

    Defaults to 00:00:00 UTC of that day.

    Raises:
        ValueError: If time_of_day is given but cannot be parsed.
    """
    if time_of_day is None or time_of_day == "":
        tod = time(0, 0, 0)
    else:
        tod = parse_time_of_day(time_of_day)
        if tod is None:
            raise ValueError(f"Invalid time of day: {time_of_day!r}")
    return datetime.combine(day, tod, tzinfo=UTC)
