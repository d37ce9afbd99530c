"""
Tests for interaction time features.
"""

from datetime import datetime

import pytest

from blockgraph.core.time_metadata import day_segment, season, time_snapshot
from blockgraph.models.telemetry import DaySegment, Season


@pytest.mark.unit
class TestDaySegment:
    @pytest.mark.parametrize(
        ("hour", "expected"),
        [
            (5, DaySegment.EARLY_MORNING),
            (8, DaySegment.EARLY_MORNING),
            (9, DaySegment.MORNING),
            (11, DaySegment.MORNING),
            (12, DaySegment.MIDDAY),
            (14, DaySegment.MIDDAY),
            (15, DaySegment.AFTERNOON),
            (17, DaySegment.AFTERNOON),
            (18, DaySegment.EVENING),
            (21, DaySegment.EVENING),
            (22, DaySegment.NIGHT),
            (0, DaySegment.NIGHT),
            (4, DaySegment.NIGHT),
        ],
    )
    def test_segments(self, hour, expected):
        assert day_segment(hour) == expected

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            day_segment(24)
        with pytest.raises(ValueError):
            day_segment(-1)


@pytest.mark.unit
class TestSeason:
    @pytest.mark.parametrize(
        ("month", "expected"),
        [(1, Season.WINTER), (3, Season.SPRING), (7, Season.SUMMER), (10, Season.FALL)],
    )
    def test_seasons(self, month, expected):
        assert season(month) == expected


@pytest.mark.unit
class TestTimeSnapshot:
    def test_weekday_work_hours(self):
        # Wednesday 10:30
        snapshot = time_snapshot(datetime(2024, 5, 15, 10, 30))

        assert snapshot.hour == 10
        assert snapshot.minute == 30
        assert snapshot.day_of_week == 3
        assert snapshot.day_segment == DaySegment.MORNING
        assert snapshot.season == Season.SPRING
        assert snapshot.is_weekend is False
        assert snapshot.is_work_hours is True

    def test_sunday_is_zero_and_weekend(self):
        snapshot = time_snapshot(datetime(2024, 5, 19, 10, 0))

        assert snapshot.day_of_week == 0
        assert snapshot.is_weekend is True
        assert snapshot.is_work_hours is False

    def test_saturday(self):
        assert time_snapshot(datetime(2024, 5, 18, 12, 0)).day_of_week == 6

    def test_evening_is_not_work_hours(self):
        snapshot = time_snapshot(datetime(2024, 5, 15, 17, 0))
        assert snapshot.is_work_hours is False

    def test_defaults_to_now(self):
        assert 0 <= time_snapshot().hour <= 23
