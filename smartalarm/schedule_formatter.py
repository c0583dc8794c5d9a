"""Human-readable one-line descriptions of schedules."""

from __future__ import annotations

from datetime import date, time
from typing import Iterable, Optional

from smartalarm.notification import (
    DateRange,
    IntervalSchedule,
    NthWeekSchedule,
    OnceSchedule,
    Schedule,
    WeeklySchedule,
    Weekday,
    weekday_display_name,
)


def _date_text(value: Optional[date]) -> str:
    return value.strftime("%Y-%m-%d") if value is not None else "-"


def _time_text(value: Optional[time]) -> str:
    return value.strftime("%H:%M") if value is not None else "--:--"


def _days_text(days: Iterable[Weekday]) -> str:
    return ", ".join(weekday_display_name(day) for day in days)


def _range_text(value: Optional[DateRange]) -> str:
    if value is None or (value.start is None and value.end is None):
        return ""
    return f", {_date_text(value.start)}..{_date_text(value.end)}"


def format_schedule(schedule: Schedule) -> str:
    """Describe ``schedule`` in a short line of text."""
    if isinstance(schedule, OnceSchedule):
        return f"Once {_date_text(schedule.date)} {_time_text(schedule.time)}"
    if isinstance(schedule, WeeklySchedule):
        return (
            f"Weekly {_days_text(schedule.days)} {_time_text(schedule.time)}"
            f"{_range_text(schedule.date_range)}"
        )
    if isinstance(schedule, NthWeekSchedule):
        return (
            f"Every {schedule.every_weeks} weeks on "
            f"{weekday_display_name(schedule.weekday)} {_time_text(schedule.time)}"
        )
    if isinstance(schedule, IntervalSchedule):
        suffix = f", {_days_text(schedule.limit.days)}" if schedule.limit is not None else ""
        return (
            f"Every {schedule.every_minutes} min, "
            f"{_time_text(schedule.from_time)}..{_time_text(schedule.to_time)}{suffix}"
        )
    raise TypeError(f"unknown schedule type: {type(schedule).__name__}")