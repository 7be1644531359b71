"""
Active window resolution.

Given one channel's programs (ascending by start) and an explicit "now",
find the program on air and the one coming up next. Window edges are
widened by a grace period so a "now" a little early or late still lands on
the intended program.

Overlapping windows (possible after manual edits) resolve to the earliest
starting window that contains "now". There is no secondary tie-break.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from stationplay.scheduling.index import ScheduledProgram
from stationplay.scheduling.timeutils import normalize_instant

DEFAULT_GRACE_SECONDS = 120


@dataclass(frozen=True)
class ActiveWindow:
    """What is on now and what comes next on a channel."""

    active: Optional[ScheduledProgram] = None
    next: Optional[ScheduledProgram] = None


def find_active_window(
    programs: Sequence[ScheduledProgram],
    now: datetime,
    grace: timedelta = timedelta(seconds=DEFAULT_GRACE_SECONDS),
    lookahead: Optional[timedelta] = None,
) -> ActiveWindow:
    """
    Scan programs for the active and next program.

    Args:
        programs: One channel's programs, ascending by start.
        now: Current instant (any encoding normalize_instant accepts).
        grace: Tolerance added to both window edges.
        lookahead: If set, "next" must start no later than now + lookahead.

    Returns:
        ActiveWindow; both members None when now is invalid.
    """
    parsed = normalize_instant(now)
    if not parsed.valid:
        return ActiveWindow()
    now = parsed.instant
    horizon = now + lookahead if lookahead is not None else None

    active: Optional[ScheduledProgram] = None
    upcoming: Optional[ScheduledProgram] = None

    for program in programs:
        if active is None and program.contains(now, grace):
            active = program
            continue
        if upcoming is None and program.start > now:
            if horizon is None or program.start <= horizon:
                upcoming = program
        if active is not None and upcoming is not None:
            break

    return ActiveWindow(active=active, next=upcoming)


class ActiveWindowResolver:
    """find_active_window() bound to a configured grace and lookahead."""

    def __init__(
        self,
        grace_seconds: int = DEFAULT_GRACE_SECONDS,
        lookahead_seconds: Optional[int] = None,
    ):
        self.grace = timedelta(seconds=grace_seconds)
        self.lookahead = timedelta(seconds=lookahead_seconds) if lookahead_seconds is not None else None

    def resolve(self, programs: Sequence[ScheduledProgram], now: datetime) -> ActiveWindow:
        return find_active_window(programs, now, grace=self.grace, lookahead=self.lookahead)

    def is_active(self, program: ScheduledProgram, now: datetime) -> bool:
        parsed = normalize_instant(now)
        return parsed.valid and program.contains(parsed.instant, self.grace)
