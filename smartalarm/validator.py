"""Validation of notifications before they are saved."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Optional

from smartalarm.notification import (
    CustomSound,
    IntervalSchedule,
    Notification,
    NthWeekSchedule,
    OnceSchedule,
    WeeklySchedule,
    is_canonical_hex_color,
)


class ValidationErrorCode(Enum):
    REQUIRED = "required"
    OUT_OF_RANGE = "out_of_range"
    INVALID = "invalid"


@dataclass(frozen=True)
class ValidationError:
    code: ValidationErrorCode
    field_path: str


@dataclass
class ValidationResult:
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, code: ValidationErrorCode, field_path: str) -> None:
        self.errors.append(ValidationError(code, field_path))


def _require(value: Optional[date | time], field_path: str, result: ValidationResult) -> None:
    if value is None:
        result.add(ValidationErrorCode.REQUIRED, field_path)


def validate(notification: Notification) -> ValidationResult:
    """Collect every problem with ``notification``; an empty result means valid."""
    result = ValidationResult()
    if not notification.message.strip():
        result.add(ValidationErrorCode.REQUIRED, "message")
    if not 0 <= notification.play_count <= 999:
        result.add(ValidationErrorCode.OUT_OF_RANGE, "playCount")
    if not 0 <= notification.volume <= 100:
        result.add(ValidationErrorCode.OUT_OF_RANGE, "volume")
    if not is_canonical_hex_color(notification.color):
        result.add(ValidationErrorCode.INVALID, "color")
    sound = notification.sound
    if isinstance(sound, CustomSound) and not sound.pattern.strip():
        result.add(ValidationErrorCode.REQUIRED, "sound.custom.pattern")

    schedule = notification.schedule
    if isinstance(schedule, OnceSchedule):
        _require(schedule.date, "schedule.once.date", result)
        _require(schedule.time, "schedule.once.time", result)
    elif isinstance(schedule, WeeklySchedule):
        if not schedule.days:
            result.add(ValidationErrorCode.REQUIRED, "schedule.weekly.days")
        _require(schedule.time, "schedule.weekly.time", result)
    elif isinstance(schedule, NthWeekSchedule):
        if not 1 <= schedule.every_weeks <= 999:
            result.add(ValidationErrorCode.OUT_OF_RANGE, "schedule.nthWeek.everyWeeks")
        _require(schedule.time, "schedule.nthWeek.time", result)
        _require(schedule.reference_date, "schedule.nthWeek.referenceDate", result)
    elif isinstance(schedule, IntervalSchedule):
        if not 1 <= schedule.every_minutes <= 1440:
            result.add(ValidationErrorCode.OUT_OF_RANGE, "schedule.interval.everyMinutes")
        _require(schedule.from_time, "schedule.interval.from", result)
        _require(schedule.to_time, "schedule.interval.to", result)
        if not 0 <= schedule.snooze_minutes <= 1440:
            result.add(ValidationErrorCode.OUT_OF_RANGE, "schedule.interval.snoozeMinutes")
        limit = schedule.limit
        if limit is not None and not limit.days:
            if limit.date_range.start is not None or limit.date_range.end is not None:
                result.add(ValidationErrorCode.REQUIRED, "schedule.interval.schedule.days")
    return result