"""
Unit tests for the playback fallback policy.
"""

import pytest

from stationplay.database.repositories import ChannelInfo
from stationplay.playout.fallback import (
    PlaybackFallbackPolicy,
    PlaybackState,
    StandbyReason,
)
from stationplay.scheduling.index import ScheduledProgram
from stationplay.scheduling.resolver import ActiveWindowResolver
from stationplay.scheduling.timeutils import parse_instant


def program(pid, start, duration=1800):
    return ScheduledProgram(
        program_id=pid,
        channel_id=1,
        title=f"P{pid}",
        media_reference=f"media/{pid}.mp4",
        start=parse_instant(start),
        duration_seconds=duration,
    )


@pytest.fixture
def policy():
    return PlaybackFallbackPolicy(ActiveWindowResolver(), standby_fallback_media="standby/default.mp4")


@pytest.fixture
def channel():
    return ChannelInfo(id=1, name="One", standby_media_reference="standby/one.mp4")


@pytest.fixture
def schedule():
    return [program(10, "2025-01-06T00:00:00Z"), program(11, "2025-01-06T00:30:00Z")]


@pytest.mark.unit
class TestStates:
    """Tests for the per-tick state decision."""

    def test_program_active(self, policy, channel, schedule):
        resolution = policy.evaluate(channel, schedule, parse_instant("2025-01-06T00:15:00Z"))

        assert resolution.state == PlaybackState.PROGRAM_ACTIVE
        assert resolution.program.program_id == 10
        assert resolution.next_program.program_id == 11
        assert resolution.media_reference == "media/10.mp4"
        assert resolution.offset_seconds == 900

    def test_standby_uses_channel_reference(self, policy, channel, schedule):
        resolution = policy.evaluate(channel, schedule, parse_instant("2025-01-06T03:00:00Z"))

        assert resolution.state == PlaybackState.STANDBY
        assert resolution.reason == StandbyReason.NOTHING_SCHEDULED
        assert resolution.media_reference == "standby/one.mp4"
        assert resolution.program is None

    def test_standby_falls_back_to_default_media(self, policy, schedule):
        bare = ChannelInfo(id=2, name="Two")

        resolution = policy.evaluate(bare, [], parse_instant("2025-01-06T03:00:00Z"))

        assert resolution.media_reference == "standby/default.mp4"

    def test_override_beats_active_program(self, policy, schedule):
        live = ChannelInfo(id=1, name="Live", is_special_override=True, override_active=True)

        resolution = policy.evaluate(live, schedule, parse_instant("2025-01-06T00:15:00Z"))

        assert resolution.state == PlaybackState.LIVE_OVERRIDE
        assert resolution.program is None

    def test_override_flag_alone_is_not_enough(self, policy, schedule):
        for flags in ({"is_special_override": True}, {"override_active": True}):
            channel = ChannelInfo(id=1, name="Maybe", **flags)

            resolution = policy.evaluate(channel, schedule, parse_instant("2025-01-06T00:15:00Z"))

            assert resolution.state == PlaybackState.PROGRAM_ACTIVE

    def test_to_dict(self, policy, channel, schedule):
        data = policy.evaluate(channel, schedule, parse_instant("2025-01-06T00:15:00Z")).to_dict()

        assert data["state"] == "program_active"
        assert data["now"] == "2025-01-06T00:15:00Z"
        assert data["program"]["id"] == 10
        assert data["reason"] is None


@pytest.mark.unit
class TestPlaybackFailure:
    """A failed program is not retried until the schedule moves on."""

    def test_failure_degrades_to_standby_for_rest_of_window(self, policy, channel, schedule):
        policy.report_failure(1, 10)

        for at in ("2025-01-06T00:15:00Z", "2025-01-06T00:29:00Z"):
            resolution = policy.evaluate(channel, schedule, parse_instant(at))
            assert resolution.state == PlaybackState.STANDBY
            assert resolution.reason == StandbyReason.PLAYBACK_FAILED
            assert resolution.next_program.program_id == 11

    def test_next_program_plays_and_clears_mark(self, policy, channel, schedule):
        policy.report_failure("1", "10")

        resolution = policy.evaluate(channel, schedule, parse_instant("2025-01-06T00:45:00Z"))

        assert resolution.state == PlaybackState.PROGRAM_ACTIVE
        assert resolution.program.program_id == 11
        # Mark is gone: going back in time plays program 10 again
        again = policy.evaluate(channel, schedule, parse_instant("2025-01-06T00:15:00Z"))
        assert again.state == PlaybackState.PROGRAM_ACTIVE

    def test_failure_of_other_program_is_cleared(self, policy, channel, schedule):
        policy.report_failure(1, 99)

        resolution = policy.evaluate(channel, schedule, parse_instant("2025-01-06T00:15:00Z"))

        assert resolution.state == PlaybackState.PROGRAM_ACTIVE

    def test_failures_are_per_channel(self, policy, schedule):
        other = ChannelInfo(id=2, name="Two")
        policy.report_failure(1, 10)

        resolution = policy.evaluate(other, schedule, parse_instant("2025-01-06T00:15:00Z"))

        assert resolution.state == PlaybackState.PROGRAM_ACTIVE
