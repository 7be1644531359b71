"""
Unit tests for duration resolution.
"""

from datetime import timedelta

import pytest

from stationplay.scheduling.durations import resolve_duration


@pytest.mark.unit
class TestResolveDuration:
    """Tests for resolve_duration()."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (1800, 1800),
            (1799.6, 1800),
            (0, 0),
            ("1800", 1800),
            ("00:30:00", 1800),
            ("1:02:03", 3723),
            ("30:00", 1800),
            ("90:00", 5400),
            ("PT30M", 1800),
            ("PT1H30M", 5400),
            ("pt45s", 45),
            ("P1DT1S", 86401),
            ("1800 sec", 1800),
            ("about 25.4 minutes", 25),
            (timedelta(minutes=30), 1800),
        ],
    )
    def test_supported_encodings(self, value, expected):
        assert resolve_duration(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, "", "n/a", -5, -0.5, "-30", "- 30", float("inf"), float("nan"), True, [1800], "P"],
    )
    def test_unusable_or_negative_is_zero(self, value):
        assert resolve_duration(value) == 0

    def test_result_is_int(self):
        assert isinstance(resolve_duration(12.5), int)
        assert isinstance(resolve_duration("PT1.5S"), int)

    @pytest.mark.parametrize(
        "value,expected",
        [(2.5, 3), (3.5, 4), (0.5, 1), (0.4, 0), ("PT2.5S", 3), ("12.5 sec", 13)],
    )
    def test_fractions_round_half_up(self, value, expected):
        assert resolve_duration(value) == expected

    @pytest.mark.parametrize("value,expected", [("1e3", 1000), ("1.8E3 s", 1800), ("2 episodes", 2)])
    def test_free_text_exponent(self, value, expected):
        assert resolve_duration(value) == expected
