"""Synthesis of PCM audio from parsed sound segments."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from smartalarm.notification import Waveform
from smartalarm.sound_pattern import SoundSegment

SAMPLE_RATE = 44100
NOTE_FADE_MS = 25


class SampleFormat(Enum):
    UINT8 = "uint8"
    INT16 = "int16"
    INT32 = "int32"
    FLOAT = "float"

    @property
    def bytes_per_sample(self) -> int:
        return _SAMPLE_LAYOUT[self][0]

    @property
    def struct_code(self) -> str:
        return _SAMPLE_LAYOUT[self][1]


_SAMPLE_LAYOUT = {
    SampleFormat.UINT8: (1, "B"),
    SampleFormat.INT16: (2, "h"),
    SampleFormat.INT32: (4, "i"),
    SampleFormat.FLOAT: (4, "f"),
}


@dataclass(frozen=True)
class AudioFormat:
    """Layout of interleaved little-endian PCM data."""

    sample_rate: int = SAMPLE_RATE
    channel_count: int = 1
    sample_format: SampleFormat = SampleFormat.INT16

    @property
    def is_valid(self) -> bool:
        return self.sample_rate > 0 and self.channel_count > 0

    @property
    def bytes_per_sample(self) -> int:
        return self.sample_format.bytes_per_sample

    @property
    def bytes_per_second(self) -> int:
        return self.sample_rate * self.channel_count * self.bytes_per_sample


def default_format() -> AudioFormat:
    return AudioFormat(SAMPLE_RATE, 1, SampleFormat.INT16)


def _clamp(value, low, high):
    return max(low, min(value, high))


def _sample_for(waveform: Waveform, phase: float) -> float:
    if waveform is Waveform.SINE:
        return math.sin(phase)
    if waveform is Waveform.SQUARE:
        return 1.0 if math.sin(phase) >= 0.0 else -1.0
    if waveform is Waveform.TRIANGLE:
        return (2.0 / math.pi) * math.asin(math.sin(phase))
    if waveform is Waveform.SAWTOOTH:
        cycles = phase / (2.0 * math.pi)
        return 2.0 * (cycles - math.floor(0.5 + cycles))
    return 0.0


def _encode(sample_format: SampleFormat, scaled: float):
    if sample_format is SampleFormat.UINT8:
        return int((scaled + 1.0) * 127.5)
    if sample_format is SampleFormat.INT16:
        return int(scaled * 28000)
    if sample_format is SampleFormat.INT32:
        return int(scaled * 2000000000.0)
    return scaled


def fade_envelope(sample_index: int, sample_count: int, fade_samples: int) -> float:
    """Raised-cosine gain applied at the start and end of a note."""
    if fade_samples <= 0 or sample_count <= 1:
        return 1.0
    if sample_index < fade_samples:
        t = sample_index / fade_samples
        return 0.5 - 0.5 * math.cos(math.pi * t)
    if sample_index >= sample_count - fade_samples:
        t = (sample_count - 1 - sample_index) / fade_samples
        return 0.5 - 0.5 * math.cos(math.pi * t)
    return 1.0


def generate_pcm(segments: Iterable[SoundSegment], volume: int, fmt: AudioFormat) -> bytes:
    """Render ``segments`` at ``volume`` (0..100) into PCM bytes of ``fmt``."""
    if not fmt.is_valid or fmt.bytes_per_sample <= 0:
        return b""
    volume_scale = _clamp(volume, 0, 100) / 100.0
    code = fmt.sample_format.struct_code
    chunks = []
    for segment in segments:
        sample_count = max(1, fmt.sample_rate * segment.duration_ms // 1000)
        fade_samples = min(sample_count // 2, fmt.sample_rate * NOTE_FADE_MS // 1000)
        values = []
        for i in range(sample_count):
            value = 0.0
            if not segment.pause:
                phase = 2.0 * math.pi * segment.frequency * i / fmt.sample_rate
                value = _sample_for(segment.waveform, phase) * fade_envelope(i, sample_count, fade_samples)
            encoded = _encode(fmt.sample_format, _clamp(value * volume_scale, -1.0, 1.0))
            values.extend([encoded] * fmt.channel_count)
        chunks.append(struct.pack(f"<{len(values)}{code}", *values))
    return b"".join(chunks)


def generate_silence(duration_ms: int, fmt: AudioFormat) -> bytes:
    """Silent PCM of ``duration_ms`` milliseconds in ``fmt``."""
    if not fmt.is_valid or fmt.bytes_per_sample <= 0 or duration_ms <= 0:
        return b""
    sample_count = max(1, fmt.sample_rate * duration_ms // 1000)
    size = sample_count * fmt.channel_count * fmt.bytes_per_sample
    fill = 0x80 if fmt.sample_format is SampleFormat.UINT8 else 0x00
    return bytes([fill]) * size