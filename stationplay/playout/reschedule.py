"""
Reschedule operation.

Re-chains a channel's live programs from the base instant of a UTC day,
keeping their current order (ascending start). Preview computes the new
start times without writing; apply persists them. Apply-to-all runs every
channel in its own transaction and reports per channel, so one failing
channel never undoes or blocks the others.

Changing the order is a separate edit (see edits.reorder_programs); a
reschedule never reorders.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from stationplay.database.connection import SessionFactory, session_scope
from stationplay.database.models import Program
from stationplay.database.repositories import (
    SqlChannelRepository,
    SqlProgramRepository,
    StartAssignment,
)
from stationplay.exceptions import ChannelNotFoundError, InvalidScheduleInputError, RescheduleError
from stationplay.scheduling.chain import ChainedItem, chain
from stationplay.scheduling.index import ScheduledProgram, program_sort_key
from stationplay.scheduling.timeutils import base_instant, parse_day, to_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RescheduleRow:
    """One program's start before and after the reschedule."""

    program: ScheduledProgram
    old_start: datetime
    new_start: datetime
    position: int

    @property
    def shift_seconds(self) -> float:
        return (self.new_start - self.old_start).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "program_id": self.program.program_id,
            "title": self.program.title,
            "duration_seconds": self.program.duration_seconds,
            "position": self.position,
            "old_start": to_iso(self.old_start),
            "new_start": to_iso(self.new_start),
            "shift_seconds": self.shift_seconds,
        }


@dataclass
class ChannelOutcome:
    """Result of rescheduling one channel during apply-to-all."""

    channel_id: Any
    affected: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RescheduleReport:
    """Per-channel results of apply-to-all."""

    day: date
    base: datetime
    outcomes: list[ChannelOutcome] = field(default_factory=list)

    @property
    def affected(self) -> int:
        return sum(o.affected for o in self.outcomes)

    @property
    def errors(self) -> dict[Any, str]:
        return {o.channel_id: o.error for o in self.outcomes if not o.ok}

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "base": to_iso(self.base),
            "affected": self.affected,
            "channels": [
                {"channel_id": o.channel_id, "affected": o.affected, "error": o.error}
                for o in self.outcomes
            ],
            "errors": {str(k): v for k, v in self.errors.items()},
        }


def resolve_base(day: Any, time_of_day: Any = None, default_time: str = "00:00:00") -> tuple[date, datetime]:
    """
    Parse the day and chain base for a reschedule or draft save.

    Raises:
        InvalidScheduleInputError: If the day or time of day is unusable.
    """
    parsed_day = parse_day(day)
    if parsed_day is None:
        raise InvalidScheduleInputError(f"Invalid day (expected YYYY-MM-DD): {day!r}")
    try:
        base = base_instant(parsed_day, time_of_day if time_of_day not in (None, "") else default_time)
    except ValueError as e:
        raise InvalidScheduleInputError(str(e)) from e
    return parsed_day, base


def plan_chain(programs: list[Program], base: datetime) -> list[ChainedItem[ScheduledProgram]]:
    """Order a channel's programs canonically and chain them from base."""
    scheduled = [ScheduledProgram.from_row(p) for p in programs]
    ordered = sorted((s for s in scheduled if s is not None), key=program_sort_key)
    return chain(ordered, base, duration_of=lambda p: p.duration_seconds)


class RescheduleOperation:
    """Preview and apply chained reschedules for one or all channels."""

    def __init__(self, session_factory: SessionFactory, default_base_time: str = "00:00:00"):
        self.session_factory = session_factory
        self.default_base_time = default_base_time

    def preview(self, channel_id: Any, day: Any, time_of_day: Any = None) -> list[RescheduleRow]:
        """Would-be new start times for a channel; nothing is written."""
        _, base = resolve_base(day, time_of_day, self.default_base_time)

        with session_scope(self.session_factory) as session:
            if SqlChannelRepository(session).get(channel_id) is None:
                raise ChannelNotFoundError(channel_id)
            programs = SqlProgramRepository(session).list_for_channel(channel_id)
            planned = plan_chain(programs, base)

        return [
            RescheduleRow(
                program=slot.item,
                old_start=slot.item.start,
                new_start=slot.start,
                position=slot.position,
            )
            for slot in planned
        ]

    def apply(self, channel_id: Any, day: Any, time_of_day: Any = None) -> int:
        """
        Persist the chained start times for one channel.

        Returns:
            Number of programs updated (0 for a channel with no programs).
        """
        _, base = resolve_base(day, time_of_day, self.default_base_time)

        try:
            with session_scope(self.session_factory) as session:
                if SqlChannelRepository(session).get(channel_id) is None:
                    raise ChannelNotFoundError(channel_id)
                affected = self._apply_in_session(session, channel_id, base)
        except SQLAlchemyError as e:
            logger.exception(f"Reschedule failed for channel {channel_id}")
            raise RescheduleError(channel_id, str(e)) from e

        logger.info(f"Rescheduled channel {channel_id} from {to_iso(base)}: {affected} programs")
        return affected

    def apply_all(self, day: Any, time_of_day: Any = None) -> RescheduleReport:
        """
        Reschedule every channel independently from the same base.

        Each channel commits on its own; a failure is recorded in the
        report and processing continues with the next channel.
        """
        parsed_day, base = resolve_base(day, time_of_day, self.default_base_time)
        report = RescheduleReport(day=parsed_day, base=base)

        with session_scope(self.session_factory) as session:
            channel_ids = [c.id for c in SqlChannelRepository(session).list_channels()]

        for channel_id in channel_ids:
            outcome = ChannelOutcome(channel_id=channel_id)
            try:
                with session_scope(self.session_factory) as session:
                    outcome.affected = self._apply_in_session(session, channel_id, base)
            except Exception as e:
                logger.exception(f"Reschedule failed for channel {channel_id}")
                outcome.affected = 0
                outcome.error = f"{type(e).__name__}: {e}"
            report.outcomes.append(outcome)

        logger.info(
            f"Rescheduled {len(channel_ids)} channels from {to_iso(base)}: "
            f"{report.affected} programs, {len(report.errors)} failures"
        )
        return report

    def _apply_in_session(self, session, channel_id: Any, base: datetime) -> int:
        repo = SqlProgramRepository(session)
        planned = plan_chain(repo.list_for_channel(channel_id), base)
        if not planned:
            return 0
        return repo.update_starts(
            [
                StartAssignment(
                    program_id=slot.item.program_id,
                    start_instant=slot.start,
                    sort_index=slot.position,
                )
                for slot in planned
            ]
        )
