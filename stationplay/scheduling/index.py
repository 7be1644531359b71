"""
Per-channel, time-ordered view of programs.

Rows may be ORM objects, dicts from an API payload or imported dumps; the
index reads the fields it needs (accepting the legacy column names
start_time / duration / mp4_url), normalizes them once and keeps each
channel's programs sorted by start.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from stationplay.scheduling.durations import resolve_duration
from stationplay.scheduling.timeutils import normalize_instant, to_iso

logger = logging.getLogger(__name__)

_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "program_id": ("id", "program_id"),
    "channel_id": ("channel_id",),
    "title": ("title",),
    "media_reference": ("media_reference", "mp4_url"),
    "start": ("start_instant", "start_time", "start"),
    "duration": ("duration_seconds", "duration"),
    "sort_index": ("sort_index",),
    "poster_url": ("poster_url",),
}


def read_field(row: Any, name: str, default: Any = None) -> Any:
    """Read a logical field from a mapping or an object, trying known aliases."""
    for key in _FIELD_ALIASES.get(name, (name,)):
        if isinstance(row, dict):
            if key in row and row[key] is not None:
                return row[key]
        else:
            value = getattr(row, key, None)
            if value is not None:
                return value
    return default


def normalize_id(value: Any) -> Any:
    """Ids arrive as ints or numeric strings; compare them as ints."""
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value


@dataclass(frozen=True)
class ScheduledProgram:
    """A program with a normalized start and duration."""

    program_id: Any
    channel_id: Any
    title: str
    media_reference: str
    start: datetime
    duration_seconds: int
    sort_index: Optional[int] = None
    poster_url: Optional[str] = None

    @property
    def end(self) -> datetime:
        """Exclusive end of the scheduled window."""
        return self.start + timedelta(seconds=self.duration_seconds)

    def contains(self, now: datetime, grace: timedelta = timedelta(0)) -> bool:
        """Whether now falls in [start - grace, end + grace)."""
        return self.start - grace <= now < self.end + grace

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.program_id,
            "channel_id": self.channel_id,
            "title": self.title,
            "media_reference": self.media_reference,
            "start_instant": to_iso(self.start),
            "end_instant": to_iso(self.end),
            "duration_seconds": self.duration_seconds,
            "sort_index": self.sort_index,
            "poster_url": self.poster_url,
        }

    @classmethod
    def from_row(cls, row: Any) -> Optional["ScheduledProgram"]:
        """Build from a row; None if its start time cannot be normalized."""
        parsed = normalize_instant(read_field(row, "start"))
        if not parsed.valid:
            return None

        sort_index = read_field(row, "sort_index")
        return cls(
            program_id=read_field(row, "program_id"),
            channel_id=normalize_id(read_field(row, "channel_id")),
            title=str(read_field(row, "title", "")),
            media_reference=str(read_field(row, "media_reference", "")),
            start=parsed.instant,
            duration_seconds=resolve_duration(read_field(row, "duration")),
            sort_index=int(sort_index) if sort_index is not None else None,
            poster_url=read_field(row, "poster_url"),
        )


def program_sort_key(program: ScheduledProgram) -> tuple:
    """Ascending start; ties by sort_index, then id."""
    pid = program.program_id
    id_key = (0, pid, "") if isinstance(pid, int) else (1, 0, str(pid))
    sort_index = program.sort_index if program.sort_index is not None else 0
    return (program.start, sort_index, id_key)


class ScheduleIndex:
    """Programs grouped by channel, each list sorted by program_sort_key."""

    def __init__(self, rows: Iterable[Any] = ()):
        self._by_channel: dict[Any, list[ScheduledProgram]] = {}
        self._dirty: set[Any] = set()
        self.skipped = 0
        for row in rows:
            self.add(row)

    def add(self, row: Any) -> Optional[ScheduledProgram]:
        """Add a row. Rows with an unusable start are skipped and counted."""
        program = row if isinstance(row, ScheduledProgram) else ScheduledProgram.from_row(row)
        if program is None:
            self.skipped += 1
            logger.warning(
                f"Skipping program {read_field(row, 'program_id')!r}: "
                f"invalid start {read_field(row, 'start')!r}"
            )
            return None

        self._by_channel.setdefault(program.channel_id, []).append(program)
        self._dirty.add(program.channel_id)
        return program

    def for_channel(self, channel_id: Any) -> list[ScheduledProgram]:
        """Programs of one channel, ascending by start."""
        key = normalize_id(channel_id)
        programs = self._by_channel.get(key)
        if programs is None:
            return []
        if key in self._dirty:
            programs.sort(key=program_sort_key)
            self._dirty.discard(key)
        return list(programs)

    def channel_ids(self) -> list[Any]:
        return list(self._by_channel.keys())

    def between(self, channel_id: Any, start: datetime, end: datetime) -> list[ScheduledProgram]:
        """Programs of a channel starting in [start, end)."""
        return [p for p in self.for_channel(channel_id) if start <= p.start < end]

    def __len__(self) -> int:
        return sum(len(programs) for programs in self._by_channel.values())
