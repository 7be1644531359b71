"""
Authoritative UTC time sources.

Schedule logic never reads the clock itself; callers take "now" from a
Clock once per request or tick and pass it down explicitly.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from stationplay.scheduling.timeutils import normalize_instant


class Clock(Protocol):
    def now(self) -> datetime:
        """Current instant, timezone-aware UTC."""
        ...


class SystemClock:
    """Wall clock of the server process."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to an instant; advance() moves it forward."""

    def __init__(self, instant: Any):
        parsed = normalize_instant(instant)
        if not parsed.valid:
            raise ValueError(f"Invalid instant for FixedClock: {instant!r}")
        self._instant = parsed.instant
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._instant

    def advance(self, seconds: float) -> datetime:
        with self._lock:
            self._instant += timedelta(seconds=seconds)
            return self._instant

    def set(self, instant: Any) -> None:
        parsed = normalize_instant(instant)
        if not parsed.valid:
            raise ValueError(f"Invalid instant for FixedClock: {instant!r}")
        with self._lock:
            self._instant = parsed.instant
