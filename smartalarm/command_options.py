"""Parsing of command options into notification fields and schedules.

Options arrive as a mapping of option names (without the leading ``--``)
to string values. Every parser returns None when its option is absent
and raises OptionError when it is present but invalid.
"""

from __future__ import annotations

import re
import uuid
from datetime import date, time
from typing import Callable, Mapping, Optional, TypeVar

from smartalarm.notification import (
    CustomSound,
    DateRange,
    IntervalSchedule,
    IntervalScheduleLimit,
    Notification,
    NthWeekSchedule,
    OnceSchedule,
    PresetSound,
    Schedule,
    SoundSpec,
    Weekday,
    WeeklySchedule,
    canonical_hex_color,
    count_from_from_string,
    is_canonical_hex_color,
    sound_preset_from_string,
    weekday_from_string,
)
from smartalarm.sound_pattern import PatternError, parse_pattern

Options = Mapping[str, object]
_T = TypeVar("_T")

_INT_RE = re.compile(r"\s*[+-]?[0-9]+\s*")
_DATE_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")
_TIME_RE = re.compile(r"([0-9]{2}):([0-9]{2})")
_HEX = "[0-9a-fA-F]"
_UUID_BODY = f"{_HEX}{{8}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{12}}"
_UUID_RE = re.compile(rf"\{{({_UUID_BODY})\}}|({_UUID_BODY})")


class OptionError(ValueError):
    """Raised when a command option has an invalid value."""


def _option_string(options: Options, key: str) -> Optional[str]:
    value = options.get(key)
    return value if isinstance(value, str) else None


def _present(value: Optional[_T], message: str) -> _T:
    if value is None:
        raise OptionError(message)
    return value


def _gather(errors: list[str], parser: Callable[..., Optional[_T]], *args) -> Optional[_T]:
    """Run ``parser``; record its error message instead of raising."""
    try:
        return parser(*args)
    except OptionError as exc:
        errors.append(str(exc))
        return None


def _range_message(key: str, low: int, high: int) -> str:
    return f"{key} must be in range {low}..{high}"


def parse_int(options: Options, key: str, low: int, high: int) -> Optional[int]:
    """An integer option within ``low..high``."""
    value = _option_string(options, key)
    if value is None:
        return None
    if not _INT_RE.fullmatch(value):
        raise OptionError(_range_message(key, low, high))
    parsed = int(value)
    if not low <= parsed <= high:
        raise OptionError(_range_message(key, low, high))
    return parsed


def parse_bool(options: Options, key: str) -> Optional[bool]:
    """A boolean option: true/yes/1 or false/no/0, in any case."""
    value = _option_string(options, key)
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in ("true", "yes", "1"):
        return True
    if normalized in ("false", "no", "0"):
        return False
    raise OptionError(f"{key} must be true or false")


def parse_date(options: Options, key: str) -> Optional[date]:
    """A date option in ``yyyy-MM-dd`` form."""
    value = _option_string(options, key)
    if value is None:
        return None
    match = _DATE_RE.fullmatch(value)
    try:
        if match is None:
            raise ValueError(value)
        return date(*(int(part) for part in match.groups()))
    except ValueError:
        raise OptionError(f"{key} must use yyyy-MM-dd") from None


def parse_time(options: Options, key: str) -> Optional[time]:
    """A time option in ``HH:mm`` form."""
    value = _option_string(options, key)
    if value is None:
        return None
    match = _TIME_RE.fullmatch(value)
    try:
        if match is None:
            raise ValueError(value)
        return time(*(int(part) for part in match.groups()))
    except ValueError:
        raise OptionError(f"{key} must use HH:mm") from None


def parse_uuid(options: Options) -> uuid.UUID:
    """The required ``uuid`` option, with or without braces."""
    value = _option_string(options, "uuid")
    if value is None:
        raise OptionError("uuid is required")
    match = _UUID_RE.fullmatch(value)
    if match is None:
        raise OptionError("uuid is invalid")
    parsed = uuid.UUID(match.group(1) or match.group(2))
    if parsed.int == 0:
        raise OptionError("uuid is invalid")
    return parsed


def parse_days(options: Options) -> Optional[list[Weekday]]:
    """A comma-separated weekday list; duplicates are dropped, order is kept."""
    value = _option_string(options, "days")
    if value is None:
        return None
    days: list[Weekday] = []
    for part in filter(None, value.split(",")):
        weekday = weekday_from_string(part)
        if weekday is None:
            raise OptionError("days contains an invalid weekday")
        if weekday not in days:
            days.append(weekday)
    return days


def parse_sound(options: Options) -> Optional[SoundSpec]:
    """The sound given by ``sound`` and ``pattern``; None when ``sound`` is absent."""
    sound = _option_string(options, "sound")
    pattern = _option_string(options, "pattern")
    if sound is None:
        if pattern is not None:
            raise OptionError("sound must be custom when pattern is provided")
        return None

    normalized = sound.strip().lower()
    if normalized == "custom":
        if pattern is None or not pattern.strip():
            raise OptionError("pattern is required for custom sound")
        try:
            parse_pattern(pattern)
        except PatternError as exc:
            raise OptionError(str(exc)) from None
        return CustomSound(pattern)

    preset = sound_preset_from_string(normalized)
    if preset is None:
        raise OptionError("sound preset is invalid")
    if pattern is not None:
        raise OptionError("pattern is only valid with custom sound")
    return PresetSound(preset)


def _parse_date_range(options: Options) -> DateRange:
    date_range = DateRange()
    if "start-date" in options:
        date_range.start = _present(parse_date(options, "start-date"), "start-date must use yyyy-MM-dd")
    if "end-date" in options:
        date_range.end = _present(parse_date(options, "end-date"), "end-date must use yyyy-MM-dd")
    return date_range


def _fail(errors: list[str], default: str) -> OptionError:
    return OptionError(errors[-1] if errors else default)


def _parse_once(options: Options) -> OnceSchedule:
    errors: list[str] = []
    day = _gather(errors, parse_date, options, "date")
    at = _gather(errors, parse_time, options, "time")
    if day is None or at is None:
        raise _fail(errors, "date and time are required")
    return OnceSchedule(day, at)


def _parse_weekly(options: Options) -> WeeklySchedule:
    errors: list[str] = []
    days = _gather(errors, parse_days, options)
    at = _gather(errors, parse_time, options, "time")
    if days is None or at is None:
        raise _fail(errors, "days and time are required")
    schedule = WeeklySchedule(days=days, time=at)
    date_range = _parse_date_range(options)
    if date_range.start is not None or date_range.end is not None:
        schedule.date_range = date_range
    return schedule


def _parse_nth_week(options: Options) -> NthWeekSchedule:
    errors: list[str] = []
    every_weeks = _gather(errors, parse_int, options, "every-weeks", 1, 999)
    weekday_text = _option_string(options, "weekday")
    weekday = weekday_from_string(weekday_text) if weekday_text is not None else None
    at = _gather(errors, parse_time, options, "time")
    reference = _gather(errors, parse_date, options, "reference-date")
    if every_weeks is None or weekday is None or at is None or reference is None:
        raise _fail(errors, "every-weeks, weekday, time and reference-date are required")
    schedule = NthWeekSchedule(every_weeks=every_weeks, weekday=weekday, time=at, reference_date=reference)
    if "end-date" in options:
        schedule.end_date = _present(parse_date(options, "end-date"), "end-date must use yyyy-MM-dd")
    return schedule


def _parse_interval(options: Options) -> IntervalSchedule:
    errors: list[str] = []
    every_minutes = _gather(errors, parse_int, options, "every-minutes", 1, 1440)
    window_start = _gather(errors, parse_time, options, "from")
    window_end = _gather(errors, parse_time, options, "to")
    count_from_text = _option_string(options, "count-from")
    count_from = count_from_from_string(count_from_text) if count_from_text is not None else None
    if every_minutes is None or window_start is None or window_end is None or count_from is None:
        raise _fail(errors, "every-minutes, from, to and count-from are required")
    schedule = IntervalSchedule(
        every_minutes=every_minutes,
        from_time=window_start,
        to_time=window_end,
        count_from=count_from,
    )
    if "snooze-minutes" in options:
        schedule.snooze_minutes = _present(
            parse_int(options, "snooze-minutes", 0, 1440), _range_message("snooze-minutes", 0, 1440)
        )
    if any(key in options for key in ("days", "start-date", "end-date")):
        days = _gather([], parse_days, options)
        if not days:
            raise OptionError("days is required when interval schedule limit is used")
        schedule.limit = IntervalScheduleLimit(days, _parse_date_range(options))
    return schedule


_SCHEDULE_PARSERS: dict[str, Callable[[Options], Schedule]] = {
    "once": _parse_once,
    "weekly": _parse_weekly,
    "nth-week": _parse_nth_week,
    "interval": _parse_interval,
}


def parse_schedule(options: Options) -> Schedule:
    """The schedule described by ``schedule-type`` and its options."""
    type_text = _option_string(options, "schedule-type")
    if type_text is None:
        raise OptionError("schedule-type is required")
    parser = _SCHEDULE_PARSERS.get(type_text.strip().lower())
    if parser is None:
        raise OptionError("schedule-type is invalid")
    return parser(options)


def apply_common_options(notification: Notification, options: Options, require_message: bool) -> None:
    """Patch ``notification`` in place with the common notification options."""
    if "enabled" in options:
        notification.enabled = _present(parse_bool(options, "enabled"), "enabled must be true or false")

    message = _option_string(options, "message")
    if message is not None:
        notification.message = message
    elif require_message:
        raise OptionError("message is required")

    color = _option_string(options, "color")
    if color is not None:
        if not is_canonical_hex_color(color):
            raise OptionError("color must use #RRGGBB")
        notification.color = canonical_hex_color(color)

    if "volume" in options:
        notification.volume = _present(parse_int(options, "volume", 0, 100), _range_message("volume", 0, 100))
    if "play-count" in options:
        notification.play_count = _present(
            parse_int(options, "play-count", 0, 999), _range_message("play-count", 0, 999)
        )
    if "sound" in options or "pattern" in options:
        notification.sound = _present(parse_sound(options), "sound is invalid")