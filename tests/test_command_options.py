import uuid
from datetime import date, time

import pytest

from smartalarm.command_options import (
    OptionError,
    apply_common_options,
    parse_bool,
    parse_date,
    parse_days,
    parse_int,
    parse_schedule,
    parse_sound,
    parse_time,
    parse_uuid,
)
from smartalarm.notification import (
    CountFrom,
    CustomSound,
    DateRange,
    IntervalSchedule,
    IntervalScheduleLimit,
    Notification,
    NthWeekSchedule,
    OnceSchedule,
    PresetSound,
    SoundPreset,
    Weekday,
    WeeklySchedule,
)


def _notification():
    return Notification(message="base", schedule=OnceSchedule(date(2024, 1, 1), time(9, 0)))


def test_parse_int_absent_is_none():
    assert parse_int({}, "volume", 0, 100) is None


@pytest.mark.parametrize("text, expected", [("5", 5), (" 7 ", 7), ("+3", 3), ("100", 100)])
def test_parse_int_valid(text, expected):
    assert parse_int({"volume": text}, "volume", 0, 100) == expected


@pytest.mark.parametrize("text", ["101", "-1", "abc", "1_0", ""])
def test_parse_int_invalid(text):
    with pytest.raises(OptionError, match="volume must be in range 0..100"):
        parse_int({"volume": text}, "volume", 0, 100)


@pytest.mark.parametrize("text", ["true", "YES", " 1 "])
def test_parse_bool_true(text):
    assert parse_bool({"enabled": text}, "enabled") is True


@pytest.mark.parametrize("text", ["false", "No", "0"])
def test_parse_bool_false(text):
    assert parse_bool({"enabled": text}, "enabled") is False


def test_parse_bool_invalid():
    with pytest.raises(OptionError, match="enabled must be true or false"):
        parse_bool({"enabled": "maybe"}, "enabled")


def test_parse_date_valid_and_invalid():
    assert parse_date({"date": "2024-02-29"}, "date") == date(2024, 2, 29)
    assert parse_date({}, "date") is None
    for text in ("2023-02-29", "2024-2-5", "24-01-01"):
        with pytest.raises(OptionError, match="date must use yyyy-MM-dd"):
            parse_date({"date": text}, "date")


def test_parse_time_valid_and_invalid():
    assert parse_time({"time": "07:30"}, "time") == time(7, 30)
    for text in ("24:00", "7:30", "07:60"):
        with pytest.raises(OptionError, match="time must use HH:mm"):
            parse_time({"time": text}, "time")


def test_parse_uuid_with_and_without_braces():
    ident = uuid.uuid4()
    assert parse_uuid({"uuid": str(ident)}) == ident
    assert parse_uuid({"uuid": "{" + str(ident) + "}"}) == ident


def test_parse_uuid_errors():
    with pytest.raises(OptionError, match="uuid is required"):
        parse_uuid({})
    with pytest.raises(OptionError, match="uuid is invalid"):
        parse_uuid({"uuid": "nope"})
    with pytest.raises(OptionError, match="uuid is invalid"):
        parse_uuid({"uuid": str(uuid.UUID(int=0))})


def test_parse_days():
    assert parse_days({"days": "mon,wed,mon"}) == [Weekday.MON, Weekday.WED]
    assert parse_days({"days": "mon,,tue"}) == [Weekday.MON, Weekday.TUE]
    assert parse_days({"days": ""}) == []
    assert parse_days({}) is None
    with pytest.raises(OptionError, match="days contains an invalid weekday"):
        parse_days({"days": "mon,xyz"})


def test_parse_sound_presets_and_custom():
    assert parse_sound({}) is None
    assert parse_sound({"sound": "Urgent"}) == PresetSound(SoundPreset.URGENT)
    pattern = "880/140/sine, _/90"
    assert parse_sound({"sound": "custom", "pattern": pattern}) == CustomSound(pattern)


@pytest.mark.parametrize(
    "options, message",
    [
        ({"pattern": "880/100"}, "sound must be custom when pattern is provided"),
        ({"sound": "custom"}, "pattern is required for custom sound"),
        ({"sound": "custom", "pattern": "880/0"}, "Invalid duration"),
        ({"sound": "bogus"}, "sound preset is invalid"),
        ({"sound": "urgent", "pattern": "880/100"}, "pattern is only valid with custom sound"),
    ],
)
def test_parse_sound_errors(options, message):
    with pytest.raises(OptionError, match=message):
        parse_sound(options)


def test_parse_schedule_requires_type():
    with pytest.raises(OptionError, match="schedule-type is required"):
        parse_schedule({})
    with pytest.raises(OptionError, match="schedule-type is invalid"):
        parse_schedule({"schedule-type": "hourly"})


def test_parse_once():
    schedule = parse_schedule({"schedule-type": " ONCE ", "date": "2024-05-01", "time": "08:15"})
    assert schedule == OnceSchedule(date(2024, 5, 1), time(8, 15))


def test_parse_once_reports_last_error():
    with pytest.raises(OptionError, match="time must use HH:mm"):
        parse_schedule({"schedule-type": "once", "date": "bad", "time": "bad"})


def test_parse_weekly_without_and_with_range():
    base = {"schedule-type": "weekly", "days": "mon,fri", "time": "08:00"}
    assert parse_schedule(base) == WeeklySchedule([Weekday.MON, Weekday.FRI], time(8, 0), None)
    ranged = parse_schedule({**base, "start-date": "2024-01-01"})
    assert ranged.date_range == DateRange(date(2024, 1, 1), None)


def test_parse_nth_week():
    schedule = parse_schedule(
        {
            "schedule-type": "nth-week",
            "every-weeks": "2",
            "weekday": "tue",
            "time": "10:00",
            "reference-date": "2024-01-02",
            "end-date": "2024-12-31",
        }
    )
    assert schedule == NthWeekSchedule(2, Weekday.TUE, time(10, 0), date(2024, 1, 2), date(2024, 12, 31))


def test_parse_nth_week_missing_fields():
    with pytest.raises(OptionError, match="every-weeks, weekday, time and reference-date are required"):
        parse_schedule({"schedule-type": "nth-week", "time": "10:00"})


def test_parse_interval():
    options = {
        "schedule-type": "interval",
        "every-minutes": "30",
        "from": "09:00",
        "to": "17:00",
        "count-from": "confirmation",
        "snooze-minutes": "5",
    }
    schedule = parse_schedule(options)
    assert schedule == IntervalSchedule(30, time(9, 0), time(17, 0), CountFrom.CONFIRMATION, 5, None)


def test_parse_interval_limit():
    options = {
        "schedule-type": "interval",
        "every-minutes": "30",
        "from": "09:00",
        "to": "17:00",
        "count-from": "trigger",
        "days": "sat,sun",
        "end-date": "2024-06-30",
    }
    schedule = parse_schedule(options)
    assert schedule.limit == IntervalScheduleLimit([Weekday.SAT, Weekday.SUN], DateRange(None, date(2024, 6, 30)))


def test_parse_interval_limit_needs_days():
    options = {
        "schedule-type": "interval",
        "every-minutes": "30",
        "from": "09:00",
        "to": "17:00",
        "count-from": "trigger",
        "start-date": "2024-01-01",
    }
    with pytest.raises(OptionError, match="days is required when interval schedule limit is used"):
        parse_schedule(options)


def test_parse_interval_missing_count_from():
    with pytest.raises(OptionError, match="every-minutes, from, to and count-from are required"):
        parse_schedule({"schedule-type": "interval", "every-minutes": "30", "from": "09:00", "to": "17:00"})


def test_apply_common_options_requires_message_on_add():
    with pytest.raises(OptionError, match="message is required"):
        apply_common_options(Notification(), {}, True)


def test_apply_common_options_patches_fields():
    notification = _notification()
    apply_common_options(
        notification,
        {"enabled": "no", "color": "#abcdef", "volume": "40", "play-count": "3", "sound": "double_beep"},
        False,
    )
    assert notification.message == "base"
    assert notification.enabled is False
    assert notification.color == "#ABCDEF"
    assert notification.volume == 40
    assert notification.play_count == 3
    assert notification.sound == PresetSound(SoundPreset.DOUBLE_BEEP)


@pytest.mark.parametrize(
    "options, message",
    [
        ({"enabled": "sometimes"}, "enabled must be true or false"),
        ({"color": "red"}, "color must use #RRGGBB"),
        ({"volume": "150"}, "volume must be in range 0..100"),
        ({"play-count": "1000"}, "play-count must be in range 0..999"),
        ({"pattern": "880/100"}, "sound must be custom when pattern is provided"),
    ],
)
def test_apply_common_options_errors(options, message):
    with pytest.raises(OptionError, match=message):
        apply_common_options(_notification(), options, False)