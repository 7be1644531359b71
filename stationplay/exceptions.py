"""Exception types raised by StationPlay admin operations."""

from datetime import date
from typing import Any


class StationPlayError(Exception):
    """Base class for StationPlay errors."""


class InvalidScheduleInputError(StationPlayError, ValueError):
    """Admin input (day, base time, program order) that cannot be used."""


class ChannelNotFoundError(StationPlayError):
    """The requested channel does not exist."""

    def __init__(self, channel_id: Any):
        self.channel_id = channel_id
        super().__init__(f"Channel not found: {channel_id}")


class PublishError(StationPlayError):
    """A draft could not be published; the live schedule is unchanged."""

    def __init__(self, channel_id: Any, day: date, reason: str):
        self.channel_id = channel_id
        self.day = day
        self.reason = reason
        super().__init__(f"Publish failed for channel {channel_id} on {day.isoformat()}: {reason}")


class RescheduleError(StationPlayError):
    """Reschedule of a channel failed; its programs are unchanged."""

    def __init__(self, channel_id: Any, reason: str):
        self.channel_id = channel_id
        self.reason = reason
        super().__init__(f"Reschedule failed for channel {channel_id}: {reason}")
