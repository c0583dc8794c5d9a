"""Parsing of textual sound patterns such as ``C5/220/sine, _/90, 880/140``."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional

from smartalarm.notification import Waveform, waveform_from_string

MAX_SEGMENTS = 128
MAX_DURATION_MS = 60000

_NOTE_RE = re.compile(r"([A-Ga-g])([#b]?)([0-8])")
_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_SEMITONES = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}


class PatternError(ValueError):
    """Raised when a sound pattern cannot be parsed."""


@dataclass(frozen=True)
class SoundSegment:
    pause: bool = False
    frequency: float = 0.0
    duration_ms: int = 0
    waveform: Waveform = Waveform.SINE


def _note_frequency(note: str) -> Optional[float]:
    match = _NOTE_RE.fullmatch(note.strip())
    if match is None:
        return None
    letter, accidental, octave = match.groups()
    semitone = _SEMITONES[letter.upper()]
    if accidental == "#":
        semitone += 1
    elif accidental == "b":
        semitone -= 1
    midi = (int(octave) + 1) * 12 + semitone
    if not 21 <= midi <= 108:
        return None
    return 440.0 * 2.0 ** ((midi - 69) / 12.0)


def _parse_frequency(value: str) -> Optional[float]:
    if _FLOAT_RE.fullmatch(value):
        numeric = float(value)
        if not math.isfinite(numeric) or not 20.0 <= numeric <= 20000.0:
            return None
        return numeric
    note = _note_frequency(value)
    if note is None or not 20.0 <= note <= 20000.0:
        return None
    return note


def parse_pattern(pattern: str) -> list[SoundSegment]:
    """Parse comma-separated ``tone/duration[/waveform]`` segments.

    A tone is a frequency in Hz, a note name such as ``A4`` or ``C#5``,
    or ``_`` for a pause. Raises PatternError on any invalid input.
    """
    parts = pattern.split(",")
    if not parts or len(parts) > MAX_SEGMENTS:
        raise PatternError("Pattern must contain 1..128 segments")

    segments = []
    total_duration = 0
    for raw_part in parts:
        part = raw_part.strip()
        if not part:
            raise PatternError("Empty segment")
        tokens = part.split("/")
        if not 2 <= len(tokens) <= 3:
            raise PatternError("Invalid segment format")

        duration_text = tokens[1].strip()
        if not _INT_RE.fullmatch(duration_text):
            raise PatternError("Invalid duration")
        duration = int(duration_text)
        if not 1 <= duration <= 10000:
            raise PatternError("Invalid duration")
        total_duration += duration
        if total_duration > MAX_DURATION_MS:
            raise PatternError("Pattern is too long")

        tone = tokens[0].strip()
        pause = tone == "_"
        frequency = 0.0
        if not pause:
            parsed = _parse_frequency(tone)
            if parsed is None:
                raise PatternError("Invalid frequency")
            frequency = parsed

        waveform = Waveform.SINE
        if len(tokens) == 3:
            parsed_waveform = waveform_from_string(tokens[2].strip())
            if parsed_waveform is None:
                raise PatternError("Invalid waveform")
            waveform = parsed_waveform

        segments.append(SoundSegment(pause, frequency, duration, waveform))
    return segments