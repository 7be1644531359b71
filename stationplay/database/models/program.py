"""
Program Database Models

Defines the live Program timetable, the per-day DraftProgram staging copy,
and the SchedulePublication version record bumped by every publish.
"""

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stationplay.database.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from stationplay.database.models.channel import Channel


class Program(Base, TimestampMixin):
    """
    A live, viewer-visible program.

    Scheduled window is [start_instant, start_instant + duration_seconds).
    """

    __tablename__ = "programs"
    __table_args__ = (
        Index("ix_programs_channel_start", "channel_id", "start_instant"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("channels.id"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    media_reference: Mapped[str] = mapped_column(Text, nullable=False, default="")
    poster_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    start_instant: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sort_index: Mapped[int | None] = mapped_column(Integer, nullable=True)

    channel: Mapped["Channel"] = relationship("Channel", back_populates="programs")

    def __repr__(self) -> str:
        return f"<Program {self.id} '{self.title}' ch={self.channel_id} at {self.start_instant}>"


class DraftProgram(Base, TimestampMixin):
    """
    Staged program for one (channel, day); invisible to viewers.

    sort_index is the intended play order.
    """

    __tablename__ = "program_drafts"
    __table_args__ = (
        Index("ix_program_drafts_key", "channel_id", "day", "sort_index"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("channels.id"),
        nullable=False,
    )
    day: Mapped[date] = mapped_column(Date, nullable=False)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    media_reference: Mapped[str] = mapped_column(Text, nullable=False, default="")
    poster_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    start_instant: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sort_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<DraftProgram {self.id} ch={self.channel_id} day={self.day} #{self.sort_index}>"


class SchedulePublication(Base, TimestampMixin):
    """
    Published version of one (channel, day).

    The version only moves inside the publish transaction, so a publish
    that started from a stale version cannot commit.
    """

    __tablename__ = "schedule_publications"
    __table_args__ = (
        UniqueConstraint("channel_id", "day", name="uq_schedule_publications_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("channels.id"),
        nullable=False,
    )
    day: Mapped[date] = mapped_column(Date, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    published_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<SchedulePublication ch={self.channel_id} day={self.day} v{self.version}>"
