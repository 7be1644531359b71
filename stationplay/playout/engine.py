"""
Playout engine.

PlayoutEngine is the single entry point the API (and any other caller)
uses. Viewer-facing resolution never raises: storage failures are logged
and the channel is put on standby. Admin operations raise typed
StationPlayError subclasses for the caller to report.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, Iterable, Optional, Sequence, Union

from stationplay.config import StationPlayConfig, get_config
from stationplay.database.connection import SessionFactory, session_scope
from stationplay.database.repositories import (
    ChannelInfo,
    SqlChannelRepository,
    SqlProgramRepository,
)
from stationplay.playout.drafts import DraftPublishWorkflow, DraftRow
from stationplay.playout.edits import (
    DEFAULT_MAX_INSERTS,
    DEFAULT_TEMPLATE_HOURS,
    loop_schedule,
    reorder_programs,
    roll_forward,
)
from stationplay.playout.fallback import (
    PlaybackFallbackPolicy,
    PlaybackState,
    Resolution,
    StandbyReason,
)
from stationplay.playout.reschedule import RescheduleOperation, RescheduleReport, RescheduleRow
from stationplay.scheduling.index import ScheduledProgram, ScheduleIndex
from stationplay.scheduling.resolver import ActiveWindowResolver
from stationplay.scheduling.timeutils import normalize_instant

logger = logging.getLogger(__name__)

ALL_CHANNELS = "ALL"


class GuideStatus(str, Enum):
    """Guide row status."""

    LIVE = "live"
    ON = "on"
    UPCOMING = "upcoming"
    IDLE = "idle"


@dataclass(frozen=True)
class GuideRow:
    """One channel's line in the programme guide."""

    channel: ChannelInfo
    status: GuideStatus
    badge: str
    now: Optional[ScheduledProgram] = None
    next: Optional[ScheduledProgram] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "channel_id": self.channel.id,
            "channel_name": self.channel.name,
            "logo_url": self.channel.logo_url,
            "status": self.status.value,
            "badge": self.badge,
            "now": self.now.to_dict() if self.now else None,
            "next": self.next.to_dict() if self.next else None,
        }


def guide_row(
    resolution: Resolution,
    channel: ChannelInfo,
    lookahead: Optional[timedelta] = None,
) -> GuideRow:
    """
    Turn a channel's resolution into its guide line.

    With lookahead, a next program starting later than now + lookahead is
    left off the line.
    """
    upcoming = resolution.next_program
    if upcoming is not None and lookahead is not None and resolution.now is not None:
        if upcoming.start > resolution.now + lookahead:
            upcoming = None

    if resolution.state == PlaybackState.LIVE_OVERRIDE:
        return GuideRow(channel, GuideStatus.LIVE, "LIVE NOW", next=upcoming)
    if resolution.state == PlaybackState.PROGRAM_ACTIVE:
        return GuideRow(channel, GuideStatus.ON, "On now", resolution.program, upcoming)
    if upcoming is not None:
        at = upcoming.start.strftime("%H:%M UTC")
        return GuideRow(channel, GuideStatus.UPCOMING, f"Upcoming at {at}", next=upcoming)
    return GuideRow(channel, GuideStatus.IDLE, "Standby")


class PlayoutEngine:
    """Resolution, reschedule, draft and edit operations over one database."""

    def __init__(
        self,
        session_factory: SessionFactory,
        config: Optional[StationPlayConfig] = None,
    ):
        self.session_factory = session_factory
        self.config = config or get_config()

        scheduling = self.config.scheduling
        self.guide_lookahead = timedelta(hours=scheduling.guide_lookahead_hours)

        self.resolver = ActiveWindowResolver(grace_seconds=scheduling.grace_seconds)
        self.fallback = PlaybackFallbackPolicy(
            self.resolver,
            standby_fallback_media=self.config.playback.standby_fallback_media,
        )
        self.reschedule = RescheduleOperation(
            session_factory,
            default_base_time=scheduling.default_base_time,
        )
        self.drafts = DraftPublishWorkflow(session_factory)

    # Viewer resolution

    def resolve_now(self, channel_id: Any, now: Any) -> Resolution:
        """
        What channel_id should play at now.

        Never raises. An unknown channel, an invalid now or a storage error
        all resolve to STANDBY with the matching reason.
        """
        parsed = normalize_instant(now)
        if not parsed.valid:
            logger.warning(f"Cannot resolve channel {channel_id}: invalid now {now!r}")
            return self.fallback.standby(channel_id, None, StandbyReason.RESOLUTION_ERROR)
        at = parsed.instant

        try:
            with session_scope(self.session_factory) as session:
                channel = SqlChannelRepository(session).get(channel_id)
                if channel is None:
                    return self.fallback.standby(channel_id, at, StandbyReason.CHANNEL_NOT_FOUND)
                rows = SqlProgramRepository(session).list_around(at, self.resolver.grace, channel.id)
                programs = ScheduleIndex(rows).for_channel(channel.id)
        except Exception:
            logger.exception(f"Resolution failed for channel {channel_id}; falling back to standby")
            return self.fallback.standby(channel_id, at, StandbyReason.RESOLUTION_ERROR)

        return self.fallback.evaluate(channel, programs, at)

    def resolve_all(self, now: Any) -> list[Resolution]:
        """Resolutions for every channel, ascending by channel id."""
        return [resolution for _, resolution in self._resolve_channels(now)]

    def resolve_guide(self, now: Any) -> list[GuideRow]:
        """Guide lines for every channel, ascending by channel id."""
        return [
            guide_row(resolution, channel, self.guide_lookahead)
            for channel, resolution in self._resolve_channels(now)
        ]

    def _resolve_channels(self, now: Any) -> list[tuple[ChannelInfo, Resolution]]:
        """
        Resolve all channels at once.

        Reads the same candidates resolve_now reads for a single channel,
        for every channel in one pass, then resolves channels in parallel.
        A failed read yields an empty list.
        """
        parsed = normalize_instant(now)
        if not parsed.valid:
            logger.warning(f"Cannot resolve channels: invalid now {now!r}")
            return []
        at = parsed.instant

        try:
            with session_scope(self.session_factory) as session:
                channels = SqlChannelRepository(session).list_channels()
                rows = SqlProgramRepository(session).list_around(at, self.resolver.grace)
                index = ScheduleIndex(rows)
        except Exception:
            logger.exception("Channel schedule query failed")
            return []

        def resolve_one(channel: ChannelInfo) -> tuple[ChannelInfo, Resolution]:
            return channel, self.fallback.evaluate(channel, index.for_channel(channel.id), at)

        workers = max(1, self.config.playback.resolve_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="resolve") as pool:
            return list(pool.map(resolve_one, channels))

    def report_playback_failure(self, channel_id: Any, program_id: Any) -> None:
        self.fallback.report_failure(channel_id, program_id)

    # Reschedule

    def preview_reschedule(self, channel_id: Any, day: Any, time_of_day: Any = None) -> list[RescheduleRow]:
        return self.reschedule.preview(channel_id, day, time_of_day)

    def apply_reschedule(
        self, channel_id: Any, day: Any, time_of_day: Any = None
    ) -> Union[int, RescheduleReport]:
        """Apply to one channel (affected count) or to ALL (per-channel report)."""
        if isinstance(channel_id, str) and channel_id.strip().upper() == ALL_CHANNELS:
            return self.reschedule.apply_all(day, time_of_day)
        return self.reschedule.apply(channel_id, day, time_of_day)

    # Drafts

    def load_draft(self, channel_id: Any, day: Any) -> int:
        return self.drafts.load_from_published(channel_id, day)

    def get_draft(self, channel_id: Any, day: Any) -> list[DraftRow]:
        return self.drafts.get_draft(channel_id, day)

    def save_draft(self, channel_id: Any, day: Any, base: Any, rows: Iterable[Any]) -> int:
        return self.drafts.save_draft(channel_id, day, base, rows)

    def publish_draft(self, channel_id: Any, day: Any) -> int:
        return self.drafts.publish(channel_id, day)

    # Edits

    def roll_forward(
        self, channel_id: Any, start: Any, end: Any, add_days: int, replace: bool = False
    ) -> list[ScheduledProgram]:
        return roll_forward(self.session_factory, channel_id, start, end, add_days, replace)

    def reorder(self, channel_id: Any, program_ids: Sequence[Any]) -> list[ScheduledProgram]:
        return reorder_programs(self.session_factory, channel_id, program_ids)

    def loop_schedule(
        self,
        channel_id: Any,
        blocks: int,
        template_hours: int = DEFAULT_TEMPLATE_HOURS,
        max_inserts: int = DEFAULT_MAX_INSERTS,
    ) -> list[ScheduledProgram]:
        return loop_schedule(self.session_factory, channel_id, blocks, template_hours, max_inserts)
