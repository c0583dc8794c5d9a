"""Built-in sound presets and their patterns."""

from __future__ import annotations

from dataclasses import dataclass

from smartalarm.notification import SoundPreset, sound_preset_display_name

_FALLBACK_PATTERN = "C5/220/sine, E5/220/sine, G5/360/sine"

_PATTERNS = {
    SoundPreset.CLASSIC_BEEP: "880/250/sine",
    SoundPreset.DOUBLE_BEEP: "880/140/sine, _/90, 880/140/sine",
    SoundPreset.DIGITAL_ALERT: "950/90/square, _/50, 1200/90/square, _/50, 950/120/square",
    SoundPreset.GENTLE_CHIME: "C5/220/sine, E5/220/sine, G5/360/sine",
    SoundPreset.URGENT: "1200/120/square, _/60, 1200/120/square, _/60, 850/220/square",
    SoundPreset.SOFT_PULSE: "440/180/sine, _/120, 554/180/sine",
    SoundPreset.HIGH_LOW_ALERT: (
        "880/150/sine, _/50/sine, 660/150/sine, _/150/sine, 880/150/sine, _/50/sine, 660/150/sine"
    ),
    SoundPreset.TRIPLE_PULSE: (
        "600/80/sine, _/120/sine, 600/80/sine, _/120/sine, 600/80/sine, "
        "_/320/sine, 800/80/sine, _/120/sine, 800/80/sine"
    ),
}


@dataclass(frozen=True)
class SoundPresetInfo:
    preset: SoundPreset
    display_name: str
    pattern: str


def presets() -> list[SoundPresetInfo]:
    """All built-in presets in display order."""
    return [
        SoundPresetInfo(preset, sound_preset_display_name(preset), pattern)
        for preset, pattern in _PATTERNS.items()
    ]


def pattern_for(preset: SoundPreset) -> str:
    """The sound pattern of ``preset``; the gentle chime if it is unknown."""
    return _PATTERNS.get(preset, _FALLBACK_PATTERN)