"""
StationPlay Database Models

SQLAlchemy models for:
- Channels (standby media, live override flags)
- Live programs
- Draft programs and publication versions
"""

from stationplay.database.models.base import Base, TimestampMixin
from stationplay.database.models.channel import Channel
from stationplay.database.models.program import DraftProgram, Program, SchedulePublication

__all__ = [
    "Base",
    "TimestampMixin",
    "Channel",
    "Program",
    "DraftProgram",
    "SchedulePublication",
]
