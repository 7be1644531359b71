"""
Duration resolution.

Program durations come in as seconds (int or float), clock text
("HH:MM:SS" / "MM:SS"), ISO-8601 durations (PT1H30M) or free text with a
number in it ("1800 sec", "1e3s"). All of them resolve to whole non-negative
seconds, fractions rounding half up; anything unusable or negative resolves to 0.

A 0-second program never matches "now" on its duration alone, but the
grace band around its start can still make it the active program.
"""

import math
import re
from datetime import timedelta
from typing import Any

_CLOCK_RE = re.compile(r"^(\d{1,3}):([0-5]?\d)(?::([0-5]?\d))?$")

_ISO_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$",
    re.IGNORECASE,
)

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")

_NEGATIVE_RE = re.compile(r"^-\s*\d")


def resolve_duration(value: Any) -> int:
    """Resolve any supported duration encoding to whole seconds (>= 0)."""
    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, timedelta):
        return _from_number(value.total_seconds())

    if isinstance(value, (int, float)):
        return _from_number(value)

    if not isinstance(value, str):
        return 0

    text = value.strip()
    if not text or _NEGATIVE_RE.match(text):
        return 0

    match = _CLOCK_RE.match(text)
    if match:
        # With three groups the first one is hours, otherwise minutes
        if match.group(3) is not None:
            hours, minutes, seconds = (int(g) for g in match.groups())
        else:
            hours, minutes, seconds = 0, int(match.group(1)), int(match.group(2))
        return hours * 3600 + minutes * 60 + seconds

    match = _ISO_DURATION_RE.match(text)
    if match and any(match.groupdict().values()):
        parts = match.groupdict()
        total = (
            int(parts["days"] or 0) * 86400
            + int(parts["hours"] or 0) * 3600
            + int(parts["minutes"] or 0) * 60
            + float(parts["seconds"] or 0)
        )
        return _from_number(total)

    match = _NUMBER_RE.search(text)
    if match:
        return _from_number(float(match.group(0)))

    return 0


def _from_number(number: float) -> int:
    if not math.isfinite(number) or number <= 0:
        return 0
    # Half-up; number is positive here
    return int(number + 0.5)
