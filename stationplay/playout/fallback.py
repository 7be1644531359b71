"""
Playback fallback policy.

Decides per channel, on every resolution tick, what viewers get:

- LIVE_OVERRIDE when the channel is a special override channel and its
  override signal is on (ignores the schedule entirely)
- PROGRAM_ACTIVE when a program's grace-widened window contains now
- STANDBY otherwise, looping the channel's standby media

A reported playback failure drops the channel to STANDBY for the rest of
the failed program's window. The failed program is not retried; the mark
clears once the schedule moves on to a different program (or to nothing).
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Sequence

from stationplay.database.repositories import ChannelInfo
from stationplay.scheduling.index import ScheduledProgram, normalize_id
from stationplay.scheduling.resolver import ActiveWindowResolver
from stationplay.scheduling.timeutils import to_iso

logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    """What a channel is putting on air."""

    LIVE_OVERRIDE = "live_override"
    PROGRAM_ACTIVE = "program_active"
    STANDBY = "standby"


class StandbyReason(str, Enum):
    """Why a channel is in STANDBY."""

    NOTHING_SCHEDULED = "nothing_scheduled"
    PLAYBACK_FAILED = "playback_failed"
    CHANNEL_NOT_FOUND = "channel_not_found"
    RESOLUTION_ERROR = "resolution_error"


@dataclass(frozen=True)
class Resolution:
    """Outcome of one resolution tick for a channel."""

    channel_id: Any
    state: PlaybackState
    now: Optional[datetime]
    program: Optional[ScheduledProgram] = None
    next_program: Optional[ScheduledProgram] = None
    media_reference: Optional[str] = None
    reason: Optional[StandbyReason] = None

    @property
    def offset_seconds(self) -> Optional[float]:
        """Seconds into the active program (negative inside the early grace band)."""
        if self.program is None or self.now is None:
            return None
        return (self.now - self.program.start).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "channel_id": self.channel_id,
            "state": self.state.value,
            "now": to_iso(self.now) if self.now else None,
            "program": self.program.to_dict() if self.program else None,
            "next_program": self.next_program.to_dict() if self.next_program else None,
            "media_reference": self.media_reference,
            "offset_seconds": self.offset_seconds,
            "reason": self.reason.value if self.reason else None,
        }


class PlaybackFallbackPolicy:
    """Per-channel state decision plus playback failure tracking."""

    def __init__(self, resolver: ActiveWindowResolver, standby_fallback_media: Optional[str] = None):
        self.resolver = resolver
        self.standby_fallback_media = standby_fallback_media
        self._failed: dict[Any, Any] = {}
        self._lock = threading.Lock()

    def standby_media_for(self, channel: Optional[ChannelInfo]) -> Optional[str]:
        if channel is not None and channel.standby_media_reference:
            return channel.standby_media_reference
        return self.standby_fallback_media

    def standby(
        self,
        channel_id: Any,
        now: Optional[datetime],
        reason: StandbyReason,
        channel: Optional[ChannelInfo] = None,
        next_program: Optional[ScheduledProgram] = None,
    ) -> Resolution:
        return Resolution(
            channel_id=normalize_id(channel_id),
            state=PlaybackState.STANDBY,
            now=now,
            next_program=next_program,
            media_reference=self.standby_media_for(channel),
            reason=reason,
        )

    def evaluate(
        self,
        channel: ChannelInfo,
        programs: Sequence[ScheduledProgram],
        now: datetime,
    ) -> Resolution:
        """
        Decide the channel's state at now.

        Args:
            channel: Channel flags and standby reference.
            programs: The channel's programs, ascending by start.
            now: Current instant (UTC).
        """
        window = self.resolver.resolve(programs, now)

        if channel.override_engaged:
            return Resolution(
                channel_id=channel.id,
                state=PlaybackState.LIVE_OVERRIDE,
                now=now,
                next_program=window.next,
            )

        active = window.active
        failed_id = self._failed_program(channel.id)

        if failed_id is not None and (active is None or active.program_id != failed_id):
            # Schedule moved past the failed program
            self.clear_failure(channel.id)
            failed_id = None

        if active is None:
            return self.standby(channel.id, now, StandbyReason.NOTHING_SCHEDULED, channel, window.next)

        if failed_id is not None:
            return self.standby(channel.id, now, StandbyReason.PLAYBACK_FAILED, channel, window.next)

        return Resolution(
            channel_id=channel.id,
            state=PlaybackState.PROGRAM_ACTIVE,
            now=now,
            program=active,
            next_program=window.next,
            media_reference=active.media_reference,
        )

    def report_failure(self, channel_id: Any, program_id: Any) -> None:
        """Record that playback of program_id failed on channel_id."""
        key = normalize_id(channel_id)
        with self._lock:
            self._failed[key] = normalize_id(program_id)
        logger.warning(f"Playback failed on channel {key} for program {program_id}; falling back to standby")

    def clear_failure(self, channel_id: Any) -> None:
        with self._lock:
            self._failed.pop(normalize_id(channel_id), None)

    def _failed_program(self, channel_id: Any) -> Any:
        with self._lock:
            return self._failed.get(normalize_id(channel_id))
