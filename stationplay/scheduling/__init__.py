"""
StationPlay Scheduling Module

Pure schedule logic with no database or clock access.

Components:
- normalize_instant / ParsedInstant: timestamp normalization to UTC
- resolve_duration: duration normalization to whole seconds
- ScheduleIndex: per-channel, time-ordered program view
- ActiveWindowResolver: active and next program with grace period
- chain: sequential start time assignment
"""

from .chain import ChainedItem, chain
from .durations import resolve_duration
from .index import ScheduledProgram, ScheduleIndex, program_sort_key
from .resolver import (
    DEFAULT_GRACE_SECONDS,
    ActiveWindow,
    ActiveWindowResolver,
    find_active_window,
)
from .timeutils import (
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

__all__ = [
    # Time
    "UTC",
    "ParsedInstant",
    "normalize_instant",
    "parse_instant",
    "parse_day",
    "parse_time_of_day",
    "day_bounds",
    "base_instant",
    "to_iso",
    # Durations
    "resolve_duration",
    # Index
    "ScheduledProgram",
    "ScheduleIndex",
    "program_sort_key",
    # Resolution
    "DEFAULT_GRACE_SECONDS",
    "ActiveWindow",
    "ActiveWindowResolver",
    "find_active_window",
    # Chaining
    "ChainedItem",
    "chain",
]
