"""
Unit tests for the SQLAlchemy repositories.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from stationplay.database.connection import check_db, session_scope
from stationplay.database.repositories import (
    SqlChannelRepository,
    SqlProgramRepository,
    SqlPublicationRepository,
    StaleVersionError,
    StartAssignment,
)
from stationplay.scheduling.timeutils import UTC, parse_instant
from tests.fixtures.factories import ChannelFactory, ProgramFactory

DAY = date(2025, 1, 6)
NOW = datetime(2025, 1, 6, 12, tzinfo=timezone.utc)


@pytest.mark.unit
class TestChannelRepository:
    """Tests for SqlChannelRepository."""

    def test_get(self, db, session_factory):
        channel = ChannelFactory.persist(db, name="Main", is_special_override=True, override_active=True)

        with session_scope(session_factory) as session:
            info = SqlChannelRepository(session).get(str(channel.id))

        assert info.name == "Main"
        assert info.override_engaged

    @pytest.mark.parametrize("key", [None, "abc", 999])
    def test_get_missing(self, session_factory, key):
        with session_scope(session_factory) as session:
            assert SqlChannelRepository(session).get(key) is None

    def test_list_channels_ordered(self, db, session_factory):
        for name in ("b", "a", "c"):
            ChannelFactory.persist(db, name=name)

        with session_scope(session_factory) as session:
            names = [c.name for c in SqlChannelRepository(session).list_channels()]

        assert names == ["b", "a", "c"]


@pytest.mark.unit
class TestProgramRepository:
    """Tests for SqlProgramRepository."""

    @pytest.fixture
    def channel(self, db):
        channel = ChannelFactory.persist(db)
        ProgramFactory.persist(db, ProgramFactory.create_sequence(channel.id, "2025-01-06T00:00:00Z", [600, 600, 600]))
        return channel

    def test_window_queries(self, channel, session_factory):
        start = datetime(2025, 1, 6, 0, 10, tzinfo=UTC)
        end = datetime(2025, 1, 6, 0, 20, tzinfo=UTC)

        with session_scope(session_factory) as session:
            repo = SqlProgramRepository(session)
            half_open = repo.list_for_channel(channel.id, start, end)
            closed = repo.list_for_channel(channel.id, start, end, end_inclusive=True)
            everything = repo.list_window(datetime(2025, 1, 1, tzinfo=UTC), datetime(2025, 2, 1, tzinfo=UTC))

        assert len(half_open) == 1
        assert len(closed) == 2
        assert len(everything) == 3

    def test_list_around_bounds(self, db, session_factory):
        busy = ChannelFactory.persist(db, name="Busy")
        quiet = ChannelFactory.persist(db, name="Quiet")
        ProgramFactory.persist(db, [
            ProgramFactory.create(busy.id, "2025-01-01T00:00:00Z", 600, title="Old"),
            ProgramFactory.create(busy.id, "2025-01-06T04:00:00Z", 8 * 3600, title="Long"),
            ProgramFactory.create(busy.id, "2025-01-06T12:30:00Z", 600, title="Soon"),
            ProgramFactory.create(busy.id, "2025-01-07T00:00:00Z", 600, title="Tomorrow"),
            ProgramFactory.create(busy.id, "2025-01-08T00:00:00Z", 600, title="Later"),
            ProgramFactory.create(quiet.id, "2025-01-09T00:00:00Z", 600, title="Far"),
        ])
        grace = timedelta(seconds=120)

        with session_scope(session_factory) as session:
            repo = SqlProgramRepository(session)
            everyone = [p.title for p in repo.list_around(NOW, grace)]
            one = [p.title for p in repo.list_around(NOW, grace, quiet.id)]

        assert everyone == ["Long", "Soon", "Far"]
        assert one == ["Far"]

    def test_list_around_keeps_first_later_program(self, channel, session_factory):
        at = datetime(2025, 1, 5, 23, 0, tzinfo=UTC)

        with session_scope(session_factory) as session:
            rows = SqlProgramRepository(session).list_around(at, timedelta(seconds=120), channel.id)

        assert [parse_instant(p.start_instant) for p in rows] == [datetime(2025, 1, 6, tzinfo=UTC)]

    def test_update_starts(self, channel, session_factory):
        new_start = datetime(2025, 3, 1, tzinfo=UTC)
        with session_scope(session_factory) as session:
            repo = SqlProgramRepository(session)
            first = repo.list_for_channel(channel.id)[0]
            assert repo.update_starts([StartAssignment(first.id, new_start, 9)]) == 1

        with session_scope(session_factory) as session:
            moved = SqlProgramRepository(session).list_for_channel(channel.id)[-1]
            assert parse_instant(moved.start_instant) == new_start
            assert moved.sort_index == 9

    def test_delete_window(self, channel, session_factory):
        with session_scope(session_factory) as session:
            removed = SqlProgramRepository(session).delete_window(
                channel.id, datetime(2025, 1, 6, tzinfo=UTC), datetime(2025, 1, 6, 0, 10, tzinfo=UTC)
            )

        assert removed == 1

    def test_rollback_discards_writes(self, channel, session_factory):
        with pytest.raises(RuntimeError):
            with session_scope(session_factory) as session:
                SqlProgramRepository(session).delete_window(
                    channel.id, datetime(2025, 1, 1, tzinfo=UTC), datetime(2025, 2, 1, tzinfo=UTC)
                )
                raise RuntimeError("abort")

        with session_scope(session_factory) as session:
            assert len(SqlProgramRepository(session).list_for_channel(channel.id)) == 3


@pytest.mark.unit
class TestPublicationRepository:
    """Tests for the optimistic publication version."""

    def test_advance_sequence(self, db, session_factory):
        channel = ChannelFactory.persist(db)

        with session_scope(session_factory) as session:
            repo = SqlPublicationRepository(session)
            assert repo.current_version(channel.id, DAY) == 0
            assert repo.advance(channel.id, DAY, 0, 3, NOW) == 1

        with session_scope(session_factory) as session:
            repo = SqlPublicationRepository(session)
            assert repo.advance(channel.id, DAY, 1, 4, NOW) == 2
            assert repo.current_version(channel.id, DAY) == 2

    def test_stale_version(self, db, session_factory):
        channel = ChannelFactory.persist(db)
        with session_scope(session_factory) as session:
            SqlPublicationRepository(session).advance(channel.id, DAY, 0, 3, NOW)

        with pytest.raises(StaleVersionError):
            with session_scope(session_factory) as session:
                SqlPublicationRepository(session).advance(channel.id, DAY, 0, 3, NOW)

        with pytest.raises(StaleVersionError):
            with session_scope(session_factory) as session:
                SqlPublicationRepository(session).advance(channel.id, date(2025, 1, 7), 2, 3, NOW)


@pytest.mark.unit
def test_check_db(session_factory):
    assert check_db(session_factory) == {"status": "ok"}
