"""
Repositories over the StationPlay tables.

The engine talks to storage only through these interfaces. The SQLAlchemy
implementations work inside a caller-owned Session, so the caller decides
the transaction boundary (see connection.session_scope).
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Optional, Protocol, Sequence

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.orm import Session

from stationplay.database.models import Channel, DraftProgram, Program, SchedulePublication

logger = logging.getLogger(__name__)


class StaleVersionError(Exception):
    """The publication version moved since the publish started."""


@dataclass(frozen=True)
class ChannelInfo:
    """Detached snapshot of the channel fields playback needs."""

    id: int
    name: str
    standby_media_reference: Optional[str] = None
    is_special_override: bool = False
    override_active: bool = False
    logo_url: Optional[str] = None

    @property
    def override_engaged(self) -> bool:
        return bool(self.is_special_override and self.override_active)

    @classmethod
    def from_model(cls, channel: Channel) -> "ChannelInfo":
        return cls(
            id=channel.id,
            name=channel.name,
            standby_media_reference=channel.standby_media_reference,
            is_special_override=bool(channel.is_special_override),
            override_active=bool(channel.override_active),
            logo_url=channel.logo_url,
        )


@dataclass(frozen=True)
class StartAssignment:
    """New start (and chain position) for one program."""

    program_id: int
    start_instant: datetime
    sort_index: Optional[int] = None


class ChannelRepository(Protocol):
    def get(self, channel_id: Any) -> Optional[ChannelInfo]: ...

    def list_channels(self) -> list[ChannelInfo]: ...


class ProgramRepository(Protocol):
    def list_for_channel(
        self,
        channel_id: Any,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        end_inclusive: bool = False,
    ) -> list[Program]: ...

    def list_window(
        self, start: datetime, end: datetime, end_inclusive: bool = False
    ) -> list[Program]: ...

    def list_around(
        self, at: datetime, grace: timedelta, channel_id: Any = None
    ) -> list[Program]: ...

    def update_starts(self, assignments: Sequence[StartAssignment]) -> int: ...

    def insert(self, rows: Sequence[dict[str, Any]]) -> list[Program]: ...

    def delete_window(
        self, channel_id: Any, start: datetime, end: datetime, end_inclusive: bool = False
    ) -> int: ...


class DraftRepository(Protocol):
    def list_rows(self, channel_id: Any, day: date) -> list[DraftProgram]: ...

    def replace(self, channel_id: Any, day: date, rows: Sequence[dict[str, Any]]) -> int: ...


class PublicationRepository(Protocol):
    def current_version(self, channel_id: Any, day: date) -> int: ...

    def advance(
        self, channel_id: Any, day: date, expected_version: int, count: int, published_at: datetime
    ) -> int: ...


class SqlChannelRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, channel_id: Any) -> Optional[ChannelInfo]:
        try:
            key = int(channel_id)
        except (TypeError, ValueError):
            return None
        channel = self.session.get(Channel, key)
        return ChannelInfo.from_model(channel) if channel else None

    def list_channels(self) -> list[ChannelInfo]:
        channels = self.session.scalars(select(Channel).order_by(Channel.id)).all()
        return [ChannelInfo.from_model(c) for c in channels]


class SqlProgramRepository:
    def __init__(self, session: Session):
        self.session = session

    def list_for_channel(
        self,
        channel_id: Any,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        end_inclusive: bool = False,
    ) -> list[Program]:
        """Programs of a channel starting in [start, end), ascending by start."""
        stmt = select(Program).where(Program.channel_id == int(channel_id))
        if start is not None:
            stmt = stmt.where(Program.start_instant >= start)
        if end is not None:
            stmt = stmt.where(
                Program.start_instant <= end if end_inclusive else Program.start_instant < end
            )
        stmt = stmt.order_by(Program.start_instant, Program.sort_index, Program.id)
        return list(self.session.scalars(stmt).all())

    def list_window(
        self, start: datetime, end: datetime, end_inclusive: bool = False
    ) -> list[Program]:
        """Programs of every channel starting in [start, end)."""
        stmt = (
            select(Program)
            .where(
                Program.start_instant >= start,
                Program.start_instant <= end if end_inclusive else Program.start_instant < end,
            )
            .order_by(Program.channel_id, Program.start_instant, Program.sort_index, Program.id)
        )
        return list(self.session.scalars(stmt).all())

    def list_around(
        self, at: datetime, grace: timedelta, channel_id: Any = None
    ) -> list[Program]:
        """
        Programs that can be on air at `at`, plus each channel's first later program.

        A program only contains `at` if it starts no earlier than
        at - grace - its duration, so the longest stored duration bounds the
        read from below. Everything starting in (at - grace - longest,
        at + grace] is returned, followed by the first program of each
        channel starting after at + grace. With channel_id, one channel only.
        """
        longest_stmt = select(func.max(Program.duration_seconds))
        if channel_id is not None:
            longest_stmt = longest_stmt.where(Program.channel_id == int(channel_id))
        longest = self.session.scalar(longest_stmt) or 0

        lower = at - grace - timedelta(seconds=longest)
        upper = at + grace

        on_air_conditions = [Program.start_instant >= lower, Program.start_instant <= upper]
        later_conditions = [Program.start_instant > upper]
        if channel_id is not None:
            on_air_conditions.append(Program.channel_id == int(channel_id))
            later_conditions.append(Program.channel_id == int(channel_id))

        on_air = self.session.scalars(
            select(Program)
            .where(*on_air_conditions)
            .order_by(Program.channel_id, Program.start_instant, Program.sort_index, Program.id)
        ).all()

        first_later = (
            select(Program.channel_id, func.min(Program.start_instant).label("start_instant"))
            .where(*later_conditions)
            .group_by(Program.channel_id)
            .subquery()
        )
        following = self.session.scalars(
            select(Program)
            .join(
                first_later,
                and_(
                    Program.channel_id == first_later.c.channel_id,
                    Program.start_instant == first_later.c.start_instant,
                ),
            )
            .order_by(Program.channel_id, Program.sort_index, Program.id)
        ).all()

        return list(on_air) + list(following)

    def update_starts(self, assignments: Sequence[StartAssignment]) -> int:
        if not assignments:
            return 0
        self.session.execute(
            update(Program),
            [
                {"id": a.program_id, "start_instant": a.start_instant, "sort_index": a.sort_index}
                for a in assignments
            ],
        )
        return len(assignments)

    def insert(self, rows: Sequence[dict[str, Any]]) -> list[Program]:
        """Add programs and flush so they carry their ids."""
        programs = [Program(**row) for row in rows]
        self.session.add_all(programs)
        self.session.flush()
        return programs

    def delete_window(
        self, channel_id: Any, start: datetime, end: datetime, end_inclusive: bool = False
    ) -> int:
        stmt = delete(Program).where(
            Program.channel_id == int(channel_id),
            Program.start_instant >= start,
            Program.start_instant <= end if end_inclusive else Program.start_instant < end,
        )
        result = self.session.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0


class SqlDraftRepository:
    def __init__(self, session: Session):
        self.session = session

    def list_rows(self, channel_id: Any, day: date) -> list[DraftProgram]:
        stmt = (
            select(DraftProgram)
            .where(DraftProgram.channel_id == int(channel_id), DraftProgram.day == day)
            .order_by(DraftProgram.sort_index, DraftProgram.id)
        )
        return list(self.session.scalars(stmt).all())

    def replace(self, channel_id: Any, day: date, rows: Sequence[dict[str, Any]]) -> int:
        """Drop the stored draft for (channel, day) and store rows instead."""
        self.session.execute(
            delete(DraftProgram)
            .where(DraftProgram.channel_id == int(channel_id), DraftProgram.day == day)
            .execution_options(synchronize_session=False)
        )
        drafts = [DraftProgram(channel_id=int(channel_id), day=day, **row) for row in rows]
        self.session.add_all(drafts)
        self.session.flush()
        return len(drafts)


class SqlPublicationRepository:
    def __init__(self, session: Session):
        self.session = session

    def _get(self, channel_id: Any, day: date) -> Optional[SchedulePublication]:
        return self.session.scalar(
            select(SchedulePublication).where(
                SchedulePublication.channel_id == int(channel_id),
                SchedulePublication.day == day,
            )
        )

    def current_version(self, channel_id: Any, day: date) -> int:
        publication = self._get(channel_id, day)
        return publication.version if publication else 0

    def advance(
        self, channel_id: Any, day: date, expected_version: int, count: int, published_at: datetime
    ) -> int:
        """
        Move the version from expected_version to expected_version + 1.

        Raises:
            StaleVersionError: If another publish got there first.
        """
        new_version = expected_version + 1
        publication = self._get(channel_id, day)

        if publication is None:
            if expected_version != 0:
                raise StaleVersionError(f"expected version {expected_version}, found none")
            self.session.add(
                SchedulePublication(
                    channel_id=int(channel_id),
                    day=day,
                    version=new_version,
                    published_count=count,
                    published_at=published_at,
                )
            )
            self.session.flush()
            return new_version

        result = self.session.execute(
            update(SchedulePublication)
            .where(
                SchedulePublication.id == publication.id,
                SchedulePublication.version == expected_version,
            )
            .values(version=new_version, published_count=count, published_at=published_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StaleVersionError(
                f"expected version {expected_version}, found {publication.version}"
            )
        return new_version
