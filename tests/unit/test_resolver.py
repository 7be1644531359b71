"""
Unit tests for active window resolution.
"""

from datetime import datetime, timedelta

import pytest

from stationplay.scheduling.index import ScheduledProgram
from stationplay.scheduling.resolver import ActiveWindowResolver, find_active_window
from stationplay.scheduling.timeutils import UTC, parse_instant

GRACE = timedelta(seconds=120)


def program(pid, start, duration):
    return ScheduledProgram(
        program_id=pid,
        channel_id=1,
        title=f"P{pid}",
        media_reference=f"{pid}.mp4",
        start=parse_instant(start),
        duration_seconds=duration,
    )


@pytest.fixture
def back_to_back():
    return [
        program("A", "2025-01-06T00:00:00Z", 1800),
        program("B", "2025-01-06T00:30:00Z", 1800),
    ]


@pytest.mark.unit
class TestScenarios:
    """The reference schedules."""

    def test_first_half_hour(self, back_to_back):
        window = find_active_window(back_to_back, "2025-01-06T00:15:00Z")

        assert window.active.program_id == "A"
        assert window.next.program_id == "B"

    def test_second_half_hour(self, back_to_back):
        window = find_active_window(back_to_back, "2025-01-06T00:45:00Z")

        assert window.active.program_id == "B"
        assert window.next is None

    def test_early_within_grace(self):
        programs = [program("A", "2025-01-06T10:00:00Z", 600)]

        window = find_active_window(programs, "2025-01-06T09:58:30Z")

        assert window.active.program_id == "A"


@pytest.mark.unit
class TestFindActiveWindow:
    """Tests for find_active_window()."""

    def test_grace_edges(self):
        programs = [program("A", "2025-01-06T10:00:00Z", 600)]

        assert find_active_window(programs, "2025-01-06T09:58:00Z").active is not None
        assert find_active_window(programs, "2025-01-06T09:57:59Z").active is None
        assert find_active_window(programs, "2025-01-06T10:11:59Z").active is not None
        assert find_active_window(programs, "2025-01-06T10:12:00Z").active is None

    def test_nothing_active_returns_next(self):
        programs = [
            program("A", "2025-01-06T08:00:00Z", 600),
            program("B", "2025-01-06T12:00:00Z", 600),
        ]

        window = find_active_window(programs, "2025-01-06T10:00:00Z")

        assert window.active is None
        assert window.next.program_id == "B"

    def test_overlap_earliest_start_wins(self):
        programs = [
            program("A", "2025-01-06T00:00:00Z", 3600),
            program("B", "2025-01-06T00:20:00Z", 600),
        ]

        window = find_active_window(programs, "2025-01-06T00:25:00Z")

        assert window.active.program_id == "A"
        assert window.next is None

    def test_next_excludes_active_inside_early_grace(self):
        programs = [
            program("A", "2025-01-06T10:00:00Z", 600),
            program("B", "2025-01-06T10:10:00Z", 600),
        ]

        window = find_active_window(programs, "2025-01-06T09:59:00Z")

        assert window.active.program_id == "A"
        assert window.next.program_id == "B"

    def test_zero_duration_active_only_near_start(self):
        programs = [program("Z", "2025-01-06T10:00:00Z", 0)]

        assert find_active_window(programs, "2025-01-06T10:01:00Z").active is not None
        assert find_active_window(programs, "2025-01-06T10:02:00Z").active is None

    def test_lookahead_bounds_next(self):
        programs = [program("A", "2025-01-08T00:00:00Z", 600)]
        now = "2025-01-06T00:00:00Z"

        assert find_active_window(programs, now).next is not None
        assert find_active_window(programs, now, lookahead=timedelta(hours=24)).next is None

    def test_invalid_now_is_empty(self, back_to_back):
        window = find_active_window(back_to_back, "not a time")

        assert window.active is None
        assert window.next is None

    def test_empty_schedule(self):
        window = find_active_window([], datetime(2025, 1, 6, tzinfo=UTC))

        assert window.active is None
        assert window.next is None


@pytest.mark.unit
class TestResolverSoundness:
    """The active program's grace-widened window always contains now."""

    def test_never_returns_program_outside_window(self):
        base = parse_instant("2025-01-06T00:00:00Z")
        durations = [0, 45, 600, 1800, 5, 3600, 0, 900]
        programs = []
        offset = 0
        for i, duration in enumerate(durations):
            # Gaps and overlaps alternate
            programs.append(program(i, base + timedelta(seconds=offset), duration))
            offset += duration + (300 if i % 2 else -60)
        programs.sort(key=lambda p: p.start)

        for step in range(-600, offset + 600, 37):
            now = base + timedelta(seconds=step)
            window = find_active_window(programs, now)
            if window.active is not None:
                assert window.active.start - GRACE <= now < window.active.end + GRACE
            else:
                assert not any(p.contains(now, GRACE) for p in programs)
            if window.next is not None:
                assert window.next.start > now
                assert window.next is not window.active


@pytest.mark.unit
class TestActiveWindowResolver:
    """Tests for the configured resolver."""

    def test_custom_grace(self):
        resolver = ActiveWindowResolver(grace_seconds=30)
        programs = [program("A", "2025-01-06T10:00:00Z", 600)]

        assert resolver.resolve(programs, "2025-01-06T09:59:40Z").active is not None
        assert resolver.resolve(programs, "2025-01-06T09:59:00Z").active is None

    def test_is_active(self):
        resolver = ActiveWindowResolver()
        a = program("A", "2025-01-06T10:00:00Z", 600)

        assert resolver.is_active(a, "2025-01-06T10:05:00Z")
        assert not resolver.is_active(a, "2025-01-06T11:00:00Z")
        assert not resolver.is_active(a, "bogus")
