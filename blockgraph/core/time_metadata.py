"""Time features recorded with every block interaction."""

from datetime import datetime

from blockgraph.models.telemetry import DaySegment, Season, TimeSnapshot

# Inclusive hour ranges; NIGHT wraps past midnight.
DAY_SEGMENTS: dict[DaySegment, tuple[int, int]] = {
    DaySegment.EARLY_MORNING: (5, 8),
    DaySegment.MORNING: (9, 11),
    DaySegment.MIDDAY: (12, 14),
    DaySegment.AFTERNOON: (15, 17),
    DaySegment.EVENING: (18, 21),
    DaySegment.NIGHT: (22, 4),
}

SEASONS: dict[Season, tuple[int, ...]] = {
    Season.SPRING: (3, 4, 5),
    Season.SUMMER: (6, 7, 8),
    Season.FALL: (9, 10, 11),
    Season.WINTER: (12, 1, 2),
}

WORK_HOURS = range(9, 17)


def day_segment(hour: int) -> DaySegment:
    """Segment of the day containing ``hour`` (0-23)."""
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour out of range: {hour}")
    for segment, (start, end) in DAY_SEGMENTS.items():
        if end < start:
            if hour >= start or hour <= end:
                return segment
        elif start <= hour <= end:
            return segment
    raise ValueError(f"Hour out of range: {hour}")


def season(month: int) -> Season:
    """Season containing ``month`` (1-12)."""
    for name, months in SEASONS.items():
        if month in months:
            return name
    raise ValueError(f"Month out of range: {month}")


def time_snapshot(moment: datetime | None = None) -> TimeSnapshot:
    """
    Compute the time features of an interaction.

    Args:
        moment: Interaction time (default: now)

    Returns:
        TimeSnapshot with day_of_week counted from Sunday = 0
    """
    moment = moment or datetime.now()
    day_of_week = (moment.weekday() + 1) % 7
    is_weekend = day_of_week in (0, 6)

    return TimeSnapshot(
        hour=moment.hour,
        minute=moment.minute,
        day_of_week=day_of_week,
        day_segment=day_segment(moment.hour),
        season=season(moment.month),
        is_weekend=is_weekend,
        is_work_hours=not is_weekend and moment.hour in WORK_HOURS,
    )
