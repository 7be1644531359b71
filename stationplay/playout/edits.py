"""
Direct edits to the live schedule.

roll_forward copies a window of a channel's programs N days ahead.
reorder_programs puts a channel's programs in an explicit order and
re-chains them from the earliest start they currently have; it is the edit
a reschedule relies on to change play order. loop_schedule repeats the
channel's opening day after the end of its schedule.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Sequence

from stationplay.database.connection import SessionFactory, session_scope
from stationplay.database.repositories import (
    SqlChannelRepository,
    SqlProgramRepository,
    StartAssignment,
)
from stationplay.exceptions import ChannelNotFoundError, InvalidScheduleInputError
from stationplay.scheduling.chain import chain
from stationplay.scheduling.index import ScheduledProgram, normalize_id, program_sort_key
from stationplay.scheduling.timeutils import normalize_instant, to_iso

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_HOURS = 24
DEFAULT_MAX_INSERTS = 2000


def _require_instant(value: Any, name: str) -> datetime:
    parsed = normalize_instant(value)
    if not parsed.valid:
        raise InvalidScheduleInputError(f"Invalid {name} instant: {value!r}")
    return parsed.instant


def roll_forward(
    session_factory: SessionFactory,
    channel_id: Any,
    start: Any,
    end: Any,
    add_days: int,
    replace: bool = False,
) -> list[ScheduledProgram]:
    """
    Copy the programs starting in [start, end] forward by add_days.

    With replace, live rows of the channel starting between the first and
    last new start (inclusive) are deleted first. Everything runs in one
    transaction.

    Returns:
        The inserted programs, ascending by start.
    """
    window_start = _require_instant(start, "start")
    window_end = _require_instant(end, "end")
    if window_end < window_start:
        raise InvalidScheduleInputError("end must not be before start")
    try:
        days = int(add_days)
    except (TypeError, ValueError) as e:
        raise InvalidScheduleInputError(f"Invalid add_days: {add_days!r}") from e
    if days == 0:
        raise InvalidScheduleInputError("add_days must not be 0")

    shift = timedelta(days=days)

    with session_scope(session_factory) as session:
        if SqlChannelRepository(session).get(channel_id) is None:
            raise ChannelNotFoundError(channel_id)

        repo = SqlProgramRepository(session)
        source = repo.list_for_channel(channel_id, window_start, window_end, end_inclusive=True)
        if not source:
            return []

        rows = [
            {
                "channel_id": int(channel_id),
                "title": p.title,
                "media_reference": p.media_reference,
                "poster_url": p.poster_url,
                "start_instant": normalize_instant(p.start_instant).instant + shift,
                "duration_seconds": p.duration_seconds,
                "sort_index": p.sort_index,
            }
            for p in source
        ]

        removed = 0
        if replace:
            removed = repo.delete_window(
                channel_id, rows[0]["start_instant"], rows[-1]["start_instant"], end_inclusive=True
            )
        inserted = [ScheduledProgram.from_row(p) for p in repo.insert(rows)]

    logger.info(
        f"Rolled {len(rows)} programs of channel {channel_id} forward {days} days "
        f"to {to_iso(rows[0]['start_instant'])} (replaced {removed})"
    )
    return [p for p in inserted if p is not None]


def reorder_programs(
    session_factory: SessionFactory,
    channel_id: Any,
    program_ids: Sequence[Any],
) -> list[ScheduledProgram]:
    """
    Re-chain a channel's programs in the given order.

    program_ids must list every program of the channel exactly once. The
    chain starts at the earliest start among them.

    Returns:
        The programs in their new order with their new starts.
    """
    wanted = [normalize_id(pid) for pid in program_ids]

    with session_scope(session_factory) as session:
        if SqlChannelRepository(session).get(channel_id) is None:
            raise ChannelNotFoundError(channel_id)

        repo = SqlProgramRepository(session)
        scheduled = [ScheduledProgram.from_row(p) for p in repo.list_for_channel(channel_id)]
        by_id = {p.program_id: p for p in scheduled if p is not None}

        if len(wanted) != len(set(wanted)) or set(wanted) != set(by_id):
            raise InvalidScheduleInputError(
                f"program_ids must list each of channel {channel_id}'s {len(by_id)} programs exactly once"
            )
        if not wanted:
            return []

        ordered = [by_id[pid] for pid in wanted]
        base = min(p.start for p in ordered)
        planned = chain(ordered, base, duration_of=lambda p: p.duration_seconds)
        repo.update_starts(
            [
                StartAssignment(
                    program_id=slot.item.program_id,
                    start_instant=slot.start,
                    sort_index=slot.position,
                )
                for slot in planned
            ]
        )

    logger.info(f"Reordered {len(planned)} programs of channel {channel_id} from {to_iso(base)}")
    return [
        ScheduledProgram(
            program_id=slot.item.program_id,
            channel_id=slot.item.channel_id,
            title=slot.item.title,
            media_reference=slot.item.media_reference,
            start=slot.start,
            duration_seconds=slot.duration_seconds,
            sort_index=slot.position,
            poster_url=slot.item.poster_url,
        )
        for slot in planned
    ]


def _require_positive_int(value: Any, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidScheduleInputError(f"Invalid {name}: {value!r}") from e
    if number <= 0:
        raise InvalidScheduleInputError(f"{name} must be positive")
    return number


def loop_schedule(
    session_factory: SessionFactory,
    channel_id: Any,
    blocks: int,
    template_hours: int = DEFAULT_TEMPLATE_HOURS,
    max_inserts: int = DEFAULT_MAX_INSERTS,
) -> list[ScheduledProgram]:
    """
    Append blocks repeats of the channel's opening template to its schedule.

    The template is every program starting within template_hours of the
    channel's earliest start (all programs if none do), minus rows with no
    media or no positive duration. The repeats are chained back to back
    from the latest end of any existing program, in one transaction.

    Raises:
        ChannelNotFoundError: If the channel does not exist.
        InvalidScheduleInputError: If blocks, template_hours or max_inserts
            is not positive, the channel has no usable template, or more
            than max_inserts programs would be inserted.

    Returns:
        The inserted programs, ascending by start.
    """
    repeats = _require_positive_int(blocks, "blocks")
    hours = _require_positive_int(template_hours, "template_hours")
    limit = _require_positive_int(max_inserts, "max_inserts")

    with session_scope(session_factory) as session:
        if SqlChannelRepository(session).get(channel_id) is None:
            raise ChannelNotFoundError(channel_id)

        repo = SqlProgramRepository(session)
        scheduled = sorted(
            (p for p in map(ScheduledProgram.from_row, repo.list_for_channel(channel_id)) if p is not None),
            key=program_sort_key,
        )
        if not scheduled:
            raise InvalidScheduleInputError(f"Channel {channel_id} has no programs to loop")

        cutoff = scheduled[0].start + timedelta(hours=hours)
        window = [p for p in scheduled if p.start < cutoff] or scheduled
        template = [p for p in window if p.duration_seconds > 0 and p.media_reference]
        if not template:
            raise InvalidScheduleInputError(
                f"Channel {channel_id} has no template programs with media and a positive duration"
            )

        count = len(template) * repeats
        if count > limit:
            raise InvalidScheduleInputError(
                f"Looping would insert {count} programs, over the limit of {limit}"
            )

        current_end = max(p.end for p in scheduled)
        planned = chain(template * repeats, current_end, duration_of=lambda p: p.duration_seconds)
        rows = [
            {
                "channel_id": int(channel_id),
                "title": slot.item.title,
                "media_reference": slot.item.media_reference,
                "poster_url": slot.item.poster_url,
                "start_instant": slot.start,
                "duration_seconds": slot.duration_seconds,
                "sort_index": slot.position % len(template),
            }
            for slot in planned
        ]
        inserted = [ScheduledProgram.from_row(p) for p in repo.insert(rows)]

    logger.info(
        f"Looped {len(template)} template programs of channel {channel_id} {repeats} times "
        f"from {to_iso(current_end)} to {to_iso(planned[-1].end)}"
    )
    return [p for p in inserted if p is not None]
