"""Lenient parsing of typed ``HH:MM`` time input."""

from __future__ import annotations

from datetime import time
from typing import Optional


def _to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def filtered_text(text: str) -> str:
    """Keep at most four digits; the first non-digit becomes a single colon."""
    result = []
    colon_used = False
    digit_count = 0
    for ch in text:
        if ch.isdecimal():
            if digit_count < 4:
                result.append(ch)
                digit_count += 1
        elif not colon_used:
            result.append(":")
            colon_used = True
    return "".join(result)


def normalize_time(text: str) -> Optional[time]:
    """Turn loosely typed input into a time, clamped to 00:00..23:59.

    Returns None when the input holds nothing usable.
    """
    trimmed = text.strip()
    if not trimmed:
        return None

    if ":" in trimmed:
        parts = trimmed.split(":")
        hour_text = parts[0]
        minute_text = parts[1] if len(parts) > 1 else ""
        hours = _to_int(hour_text[:2]) if hour_text else 0
        minutes = _to_int(minute_text[:2]) if minute_text else 0
    else:
        digits = "".join(ch for ch in trimmed if ch.isdecimal())[:4]
        if not digits:
            return None
        if len(digits) <= 2:
            hours, minutes = int(digits), 0
        elif len(digits) == 3:
            hours, minutes = int(digits[:2]), int(digits[-1:])
        else:
            hours, minutes = int(digits[:2]), int(digits[-2:])

    return time(_clamp(hours, 0, 23), _clamp(minutes, 0, 59))


def format_time(value: Optional[time]) -> str:
    return value.strftime("%H:%M") if value is not None else ""