"""Decide when notifications are due and when they fire next."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Sequence

from smartalarm.notification import (
    CountFrom,
    DateRange,
    IntervalSchedule,
    Notification,
    NthWeekSchedule,
    OnceSchedule,
    RuntimeState,
    Weekday,
    WeeklySchedule,
    ceil_to_next_minute,
    monday_of_week,
    normalize_to_minute,
)

_WEEKLY_SEARCH_DAYS = 366 * 5
_NTH_WEEK_SEARCH_DAYS = 366 * 25


class TriggerKind(Enum):
    NONE = "none"
    NORMAL = "normal"
    SNOOZE = "snooze"


@dataclass(frozen=True)
class TriggerDecision:
    kind: TriggerKind = TriggerKind.NONE
    due: bool = False


def _minute_of(moment: datetime) -> time:
    return moment.time().replace(second=0, microsecond=0)


def _contains_weekday(days: Sequence[Weekday], day: date) -> bool:
    return Weekday(day.isoweekday()) in days


def _date_in_range(day: date, date_range: Optional[DateRange]) -> bool:
    if date_range is None:
        return True
    if date_range.start is not None and day < date_range.start:
        return False
    if date_range.end is not None and day > date_range.end:
        return False
    return True


def _interval_limit_allows(schedule: IntervalSchedule, day: date) -> bool:
    limit = schedule.limit
    if limit is None:
        return True
    if not _contains_weekday(limit.days, day):
        return False
    return _date_in_range(day, limit.date_range)


def _time_within_window(value: time, start: time, end: time) -> bool:
    if start > end:
        return False
    return start <= value <= end


def _minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def _seconds_between(earlier: datetime, later: datetime) -> int:
    return int((later - earlier).total_seconds())


def _first_grid_time_at_or_after(grid_start: datetime, every_minutes: int, lower: datetime) -> datetime:
    if lower <= grid_start:
        return grid_start
    seconds = _seconds_between(grid_start, lower)
    interval_seconds = every_minutes * 60
    steps = -(-seconds // interval_seconds)
    return grid_start + timedelta(seconds=steps * interval_seconds)


def _interval_reset_base(
    notification: Notification, schedule: IntervalSchedule, runtime: RuntimeState, day: date
) -> Optional[datetime]:
    reset_at = runtime.interval_reset_at.get(notification.id)
    if reset_at is None or reset_at.date() != day:
        return None
    if schedule.from_time is None or schedule.to_time is None:
        return None
    if not _time_within_window(_minute_of(reset_at), schedule.from_time, schedule.to_time):
        return None
    return ceil_to_next_minute(reset_at + timedelta(minutes=schedule.every_minutes))


def _interval_trigger_due(schedule: IntervalSchedule, now: datetime) -> bool:
    if schedule.from_time is None or schedule.to_time is None:
        return False
    now_time = _minute_of(now)
    if not _time_within_window(now_time, schedule.from_time, schedule.to_time):
        return False
    delta = _minutes_of_day(now_time) - _minutes_of_day(schedule.from_time)
    return delta >= 0 and delta % schedule.every_minutes == 0


def _interval_reset_due(
    notification: Notification, schedule: IntervalSchedule, now: datetime, runtime: RuntimeState
) -> bool:
    base = _interval_reset_base(notification, schedule, runtime, now.date())
    if base is None:
        return False
    now_minute = normalize_to_minute(now)
    if now_minute < base or not _time_within_window(now_minute.time(), schedule.from_time, schedule.to_time):
        return False
    return _seconds_between(base, now_minute) % (schedule.every_minutes * 60) == 0


def _interval_confirmation_due(
    notification: Notification, schedule: IntervalSchedule, now: datetime, runtime: RuntimeState
) -> bool:
    last_dismissed = runtime.last_dismissed_at.get(notification.id)
    if last_dismissed is None:
        return _interval_trigger_due(schedule, now)
    if schedule.from_time is None or schedule.to_time is None:
        return False
    now_minute = normalize_to_minute(now)
    last_minute = normalize_to_minute(last_dismissed)
    same_day = last_minute.date() == now_minute.date()
    last_inside = _time_within_window(last_minute.time(), schedule.from_time, schedule.to_time)
    if not same_day or not last_inside:
        return _interval_trigger_due(schedule, now)
    following = normalize_to_minute(last_minute + timedelta(minutes=schedule.every_minutes))
    if not _time_within_window(following.time(), schedule.from_time, schedule.to_time):
        return False
    return following == now_minute


def _nth_week_matches(schedule: NthWeekSchedule, day: date) -> bool:
    reference_week = monday_of_week(schedule.reference_date)
    candidate_week = monday_of_week(day)
    if candidate_week < reference_week:
        return False
    week_diff = (candidate_week - reference_week).days // 7
    return week_diff % schedule.every_weeks == 0


def _next_once(schedule: OnceSchedule, start: datetime) -> Optional[datetime]:
    if schedule.date is None or schedule.time is None:
        return None
    candidate = datetime.combine(schedule.date, schedule.time)
    return candidate if candidate >= start else None


def _next_weekly(schedule: WeeklySchedule, start: datetime) -> Optional[datetime]:
    if schedule.time is None or not schedule.days:
        return None
    for offset in range(_WEEKLY_SEARCH_DAYS + 1):
        day = start.date() + timedelta(days=offset)
        if not _contains_weekday(schedule.days, day) or not _date_in_range(day, schedule.date_range):
            continue
        candidate = datetime.combine(day, schedule.time)
        if candidate >= start:
            return candidate
    return None


def _next_nth_week(schedule: NthWeekSchedule, start: datetime) -> Optional[datetime]:
    if schedule.time is None or schedule.reference_date is None:
        return None
    start_date = max(start.date(), schedule.reference_date)
    for offset in range(_NTH_WEEK_SEARCH_DAYS + 1):
        day = start_date + timedelta(days=offset)
        if schedule.end_date is not None and day > schedule.end_date:
            return None
        if day.isoweekday() != int(schedule.weekday):
            continue
        if not _nth_week_matches(schedule, day):
            continue
        candidate = datetime.combine(day, schedule.time)
        if candidate >= start:
            return candidate
    return None


def _next_interval(
    notification: Notification, schedule: IntervalSchedule, start: datetime, runtime: RuntimeState
) -> Optional[datetime]:
    window_start, window_end = schedule.from_time, schedule.to_time
    if window_start is None or window_end is None or window_start > window_end:
        return None
    for offset in range(_WEEKLY_SEARCH_DAYS + 1):
        day = start.date() + timedelta(days=offset)
        if not _interval_limit_allows(schedule, day):
            continue
        lower = start if offset == 0 else datetime.combine(day, window_start)
        grid_start = _interval_reset_base(notification, schedule, runtime, day)
        if grid_start is None and schedule.count_from is CountFrom.CONFIRMATION:
            last_dismissed = runtime.last_dismissed_at.get(notification.id)
            if last_dismissed is not None:
                last_minute = normalize_to_minute(last_dismissed)
                if last_minute.date() == day and _time_within_window(last_minute.time(), window_start, window_end):
                    grid_start = normalize_to_minute(last_minute + timedelta(minutes=schedule.every_minutes))
        if grid_start is None:
            grid_start = datetime.combine(day, window_start)
        candidate = _first_grid_time_at_or_after(grid_start, schedule.every_minutes, lower)
        if candidate.date() == day and _time_within_window(candidate.time(), window_start, window_end):
            return candidate
    return None


def is_normal_due(notification: Notification, now: datetime, runtime: RuntimeState) -> bool:
    """True when the schedule itself (not a snooze) fires in the minute of ``now``."""
    now_minute = normalize_to_minute(now)
    if runtime.last_triggered_minute.get(notification.id) == now_minute:
        return False

    schedule = notification.schedule
    now_time = _minute_of(now)
    today = now.date()
    if isinstance(schedule, OnceSchedule):
        if schedule.date is None or schedule.time is None:
            return False
        return schedule.date == today and schedule.time == now_time
    if isinstance(schedule, WeeklySchedule):
        if schedule.time is None or not _contains_weekday(schedule.days, today):
            return False
        return _date_in_range(today, schedule.date_range) and schedule.time == now_time
    if isinstance(schedule, NthWeekSchedule):
        if schedule.time is None or schedule.reference_date is None or schedule.time != now_time:
            return False
        if schedule.end_date is not None and today > schedule.end_date:
            return False
        if today < schedule.reference_date:
            return False
        if today.isoweekday() != int(schedule.weekday):
            return False
        return _nth_week_matches(schedule, today)
    if isinstance(schedule, IntervalSchedule):
        if not _interval_limit_allows(schedule, today):
            return False
        if _interval_reset_base(notification, schedule, runtime, today) is not None:
            return _interval_reset_due(notification, schedule, now, runtime)
        if schedule.count_from is CountFrom.CONFIRMATION:
            return _interval_confirmation_due(notification, schedule, now, runtime)
        return _interval_trigger_due(schedule, now)
    raise TypeError(f"unknown schedule type: {type(schedule).__name__}")


def evaluate(notification: Notification, now: datetime, runtime: RuntimeState) -> TriggerDecision:
    """Decide whether ``notification`` fires now, and why."""
    if not runtime.notifications_enabled or not notification.enabled:
        return TriggerDecision()
    if is_normal_due(notification, now, runtime):
        return TriggerDecision(TriggerKind.NORMAL, True)
    snooze_at = runtime.pending_snooze.get(notification.id)
    if snooze_at is not None and normalize_to_minute(now) >= normalize_to_minute(snooze_at):
        return TriggerDecision(TriggerKind.SNOOZE, True)
    return TriggerDecision()


def is_once_overdue(notification: Notification, now: datetime) -> bool:
    """True for a one-off notification whose moment lies before the current minute."""
    schedule = notification.schedule
    if not isinstance(schedule, OnceSchedule) or schedule.date is None or schedule.time is None:
        return False
    return datetime.combine(schedule.date, schedule.time) < normalize_to_minute(now)


def next_occurrence(notification: Notification, start: datetime, runtime: RuntimeState) -> Optional[datetime]:
    """The next minute at or after ``start`` at which ``notification`` fires, or None."""
    if not runtime.notifications_enabled or not notification.enabled:
        return None
    search_from = normalize_to_minute(start)
    if runtime.last_triggered_minute.get(notification.id) == search_from:
        search_from += timedelta(minutes=1)

    schedule = notification.schedule
    if isinstance(schedule, OnceSchedule):
        next_normal = _next_once(schedule, search_from)
    elif isinstance(schedule, WeeklySchedule):
        next_normal = _next_weekly(schedule, search_from)
    elif isinstance(schedule, NthWeekSchedule):
        next_normal = _next_nth_week(schedule, search_from)
    elif isinstance(schedule, IntervalSchedule):
        next_normal = _next_interval(notification, schedule, search_from, runtime)
    else:
        raise TypeError(f"unknown schedule type: {type(schedule).__name__}")

    snooze_at = runtime.pending_snooze.get(notification.id)
    if snooze_at is not None:
        next_snooze = normalize_to_minute(snooze_at)
        if next_snooze >= search_from and (next_normal is None or next_snooze < next_normal):
            return next_snooze
    return next_normal