from datetime import date, time

import pytest

from smartalarm.notification import (
    CustomSound,
    DateRange,
    IntervalSchedule,
    IntervalScheduleLimit,
    Notification,
    NthWeekSchedule,
    OnceSchedule,
    WeeklySchedule,
    Weekday,
)
from smartalarm.validator import (
    ValidationError,
    ValidationErrorCode,
    ValidationResult,
    validate,
)


def make(**kwargs):
    base = dict(message="Stand up", schedule=OnceSchedule(date(2024, 1, 2), time(9, 0)))
    base.update(kwargs)
    return Notification(**base)


def paths(result):
    return [error.field_path for error in result.errors]


def test_valid_notification():
    result = validate(make())
    assert result.ok
    assert result.errors == []


def test_result_add():
    result = ValidationResult()
    result.add(ValidationErrorCode.INVALID, "color")
    assert not result.ok
    assert result.errors == [ValidationError(ValidationErrorCode.INVALID, "color")]


@pytest.mark.parametrize("message", ["", "   ", "\t\n"])
def test_message_required(message):
    result = validate(make(message=message))
    assert result.errors == [ValidationError(ValidationErrorCode.REQUIRED, "message")]


@pytest.mark.parametrize("play_count,ok", [(-1, False), (0, True), (999, True), (1000, False)])
def test_play_count_range(play_count, ok):
    result = validate(make(play_count=play_count))
    assert result.ok is ok
    if not ok:
        assert result.errors[0].code == ValidationErrorCode.OUT_OF_RANGE
        assert paths(result) == ["playCount"]


@pytest.mark.parametrize("volume,ok", [(-1, False), (0, True), (100, True), (101, False)])
def test_volume_range(volume, ok):
    result = validate(make(volume=volume))
    assert result.ok is ok
    assert ("volume" in paths(result)) is not ok


def test_invalid_color():
    result = validate(make(color="red"))
    assert result.errors == [ValidationError(ValidationErrorCode.INVALID, "color")]


def test_custom_sound_requires_pattern():
    result = validate(make(sound=CustomSound("  ")))
    assert paths(result) == ["sound.custom.pattern"]
    assert validate(make(sound=CustomSound("440/100"))).ok


def test_once_missing_fields():
    result = validate(make(schedule=OnceSchedule(None, None)))
    assert paths(result) == ["schedule.once.date", "schedule.once.time"]
    assert all(e.code == ValidationErrorCode.REQUIRED for e in result.errors)


def test_weekly_requires_days_and_time():
    result = validate(make(schedule=WeeklySchedule()))
    assert paths(result) == ["schedule.weekly.days", "schedule.weekly.time"]
    ok = validate(make(schedule=WeeklySchedule([Weekday.MON], time(8, 0))))
    assert ok.ok


@pytest.mark.parametrize("weeks,ok", [(0, False), (1, True), (999, True), (1000, False)])
def test_nth_week_range(weeks, ok):
    schedule = NthWeekSchedule(weeks, Weekday.TUE, time(8, 0), date(2024, 1, 1))
    result = validate(make(schedule=schedule))
    assert result.ok is ok
    assert ("schedule.nthWeek.everyWeeks" in paths(result)) is not ok


def test_nth_week_missing_fields():
    result = validate(make(schedule=NthWeekSchedule()))
    assert paths(result) == ["schedule.nthWeek.time", "schedule.nthWeek.referenceDate"]


@pytest.mark.parametrize("minutes,ok", [(0, False), (1, True), (1440, True), (1441, False)])
def test_interval_every_minutes(minutes, ok):
    result = validate(make(schedule=IntervalSchedule(every_minutes=minutes)))
    assert result.ok is ok
    assert ("schedule.interval.everyMinutes" in paths(result)) is not ok


def test_interval_window_and_snooze():
    schedule = IntervalSchedule(from_time=None, to_time=None, snooze_minutes=1441)
    result = validate(make(schedule=schedule))
    assert paths(result) == [
        "schedule.interval.from",
        "schedule.interval.to",
        "schedule.interval.snoozeMinutes",
    ]


def test_interval_limit_days_required_with_range():
    limit = IntervalScheduleLimit([], DateRange(start=date(2024, 1, 1)))
    result = validate(make(schedule=IntervalSchedule(limit=limit)))
    assert result.errors == [
        ValidationError(ValidationErrorCode.REQUIRED, "schedule.interval.schedule.days")
    ]


def test_interval_limit_without_range_is_fine():
    result = validate(make(schedule=IntervalSchedule(limit=IntervalScheduleLimit())))
    assert result.ok


def test_errors_accumulate_in_order():
    result = validate(make(message="", volume=200, color="#12345"))
    assert paths(result) == ["message", "volume", "color"]