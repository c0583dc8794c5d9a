"""Notification model: enums, schedules, sounds and small value helpers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum, IntEnum
from typing import Optional, Union

DEFAULT_COLOR = "#D94841"
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class Weekday(IntEnum):
    """Day of the week, numbered like ``date.isoweekday()``."""

    MON = 1
    TUE = 2
    WED = 3
    THU = 4
    FRI = 5
    SAT = 6
    SUN = 7


class NotificationPosition(Enum):
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"
    CENTER = "center"


class CountFrom(Enum):
    TRIGGER = "trigger"
    CONFIRMATION = "confirmation"


class SoundPreset(Enum):
    CLASSIC_BEEP = "classic_beep"
    DOUBLE_BEEP = "double_beep"
    DIGITAL_ALERT = "digital_alert"
    GENTLE_CHIME = "gentle_chime"
    URGENT = "urgent"
    SOFT_PULSE = "soft_pulse"
    HIGH_LOW_ALERT = "high_low_alert"
    TRIPLE_PULSE = "triple_pulse"


class Waveform(Enum):
    SINE = "sine"
    SQUARE = "square"
    TRIANGLE = "triangle"
    SAWTOOTH = "sawtooth"


@dataclass
class DateRange:
    start: Optional[date] = None
    end: Optional[date] = None


@dataclass
class OnceSchedule:
    date: Optional[date] = None
    time: Optional[time] = None


@dataclass
class WeeklySchedule:
    days: list[Weekday] = field(default_factory=list)
    time: Optional[time] = None
    date_range: Optional[DateRange] = None


@dataclass
class NthWeekSchedule:
    every_weeks: int = 1
    weekday: Weekday = Weekday.MON
    time: Optional[time] = None
    reference_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass
class IntervalScheduleLimit:
    days: list[Weekday] = field(default_factory=list)
    date_range: DateRange = field(default_factory=DateRange)


@dataclass
class IntervalSchedule:
    every_minutes: int = 40
    from_time: Optional[time] = time(0, 0)
    to_time: Optional[time] = time(23, 59)
    count_from: CountFrom = CountFrom.TRIGGER
    snooze_minutes: int = 0
    limit: Optional[IntervalScheduleLimit] = None


Schedule = Union[OnceSchedule, WeeklySchedule, NthWeekSchedule, IntervalSchedule]


@dataclass
class PresetSound:
    preset: SoundPreset = SoundPreset.GENTLE_CHIME


@dataclass
class CustomSound:
    pattern: str = ""


SoundSpec = Union[PresetSound, CustomSound]


def _default_schedule() -> OnceSchedule:
    return OnceSchedule(date.today(), None)


@dataclass
class Notification:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    enabled: bool = True
    message: str = ""
    color: str = DEFAULT_COLOR
    volume: int = 70
    play_count: int = 0
    sound: SoundSpec = field(default_factory=PresetSound)
    schedule: Schedule = field(default_factory=_default_schedule)


@dataclass
class GlobalSettings:
    default_snooze_minutes: int = 1
    notification_position: NotificationPosition = NotificationPosition.TOP_RIGHT


@dataclass
class AppConfig:
    settings: GlobalSettings = field(default_factory=GlobalSettings)
    notifications: list[Notification] = field(default_factory=list)


@dataclass
class RuntimeState:
    """State that lives only while the application runs."""

    notifications_enabled: bool = True
    last_triggered_minute: dict[uuid.UUID, datetime] = field(default_factory=dict)
    pending_snooze: dict[uuid.UUID, datetime] = field(default_factory=dict)
    last_dismissed_at: dict[uuid.UUID, datetime] = field(default_factory=dict)
    interval_reset_at: dict[uuid.UUID, datetime] = field(default_factory=dict)
    runtime_only_notifications: dict[uuid.UUID, Notification] = field(default_factory=dict)
    runtime_only_snooze_minutes: dict[uuid.UUID, int] = field(default_factory=dict)


def _normalized(value: str) -> str:
    return value.strip().lower()


def weekday_to_string(weekday: Weekday) -> str:
    return weekday.name.lower()


def weekday_display_name(weekday: Weekday) -> str:
    return weekday.name.capitalize()


def weekday_from_string(value: str) -> Optional[Weekday]:
    """Parse a short weekday name such as ``mon``; return None if unknown."""
    return Weekday.__members__.get(_normalized(value).upper()) if _normalized(value) else None


def all_weekdays() -> list[Weekday]:
    return list(Weekday)


def notification_position_to_string(position: NotificationPosition) -> str:
    return position.value


def notification_position_from_string(value: str) -> Optional[NotificationPosition]:
    try:
        return NotificationPosition(_normalized(value))
    except ValueError:
        return None


def count_from_to_string(count_from: CountFrom) -> str:
    return count_from.value


def count_from_from_string(value: str) -> Optional[CountFrom]:
    try:
        return CountFrom(_normalized(value))
    except ValueError:
        return None


_PRESET_DISPLAY_NAMES = {
    SoundPreset.CLASSIC_BEEP: "Classic beep",
    SoundPreset.DOUBLE_BEEP: "Double beep",
    SoundPreset.DIGITAL_ALERT: "Digital alert",
    SoundPreset.GENTLE_CHIME: "Gentle chime",
    SoundPreset.URGENT: "Urgent",
    SoundPreset.SOFT_PULSE: "Soft pulse",
    SoundPreset.HIGH_LOW_ALERT: "High-low alert",
    SoundPreset.TRIPLE_PULSE: "Triple pulse",
}


def sound_preset_to_string(preset: SoundPreset) -> str:
    return preset.value


def sound_preset_display_name(preset: SoundPreset) -> str:
    return _PRESET_DISPLAY_NAMES[preset]


def sound_preset_from_string(value: str) -> Optional[SoundPreset]:
    try:
        return SoundPreset(_normalized(value))
    except ValueError:
        return None


def waveform_to_string(waveform: Waveform) -> str:
    return waveform.value


def waveform_from_string(value: str) -> Optional[Waveform]:
    try:
        return Waveform(_normalized(value))
    except ValueError:
        return None


def monday_of_week(day: date) -> date:
    return day - timedelta(days=day.isoweekday() - 1)


def normalize_to_minute(moment: datetime) -> datetime:
    return moment.replace(second=0, microsecond=0)


def ceil_to_next_minute(moment: datetime) -> datetime:
    normalized = normalize_to_minute(moment)
    if moment.second > 0 or moment.microsecond > 0:
        normalized += timedelta(minutes=1)
    return normalized


def _parse_hex_rgb(value: str) -> Optional[tuple[int, int, int]]:
    """Parse the hexadecimal colour notations; return 8-bit RGB or None."""
    if not value.startswith("#"):
        return None
    digits = value[1:]
    if not digits or any(ch not in _HEX_DIGITS for ch in digits):
        return None
    size = len(digits)
    if size == 8:  # #AARRGGBB, alpha is dropped
        digits = digits[2:]
        size = 6
    if size not in (3, 6, 9, 12):
        return None
    width = size // 3
    channels = [int(digits[i * width:(i + 1) * width], 16) for i in range(3)]
    if width == 1:
        channels = [c * 17 for c in channels]
    elif width == 3:
        channels = [c >> 4 for c in channels]
    elif width == 4:
        channels = [c >> 8 for c in channels]
    return channels[0], channels[1], channels[2]


def is_canonical_hex_color(value: str) -> bool:
    """True for strings of the form ``#RRGGBB`` (either case)."""
    if len(value) != 7 or not value.startswith("#"):
        return False
    return all(ch in _HEX_DIGITS for ch in value[1:])


def canonical_hex_color(value: str) -> str:
    """Return the colour as upper-case ``#RRGGBB``, or the default colour."""
    rgb = _parse_hex_rgb(value)
    if rgb is None:
        return DEFAULT_COLOR
    return "#{:02X}{:02X}{:02X}".format(*rgb)