"""Sequential playback of notification sounds, one at a time."""

from __future__ import annotations

import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from smartalarm.sound_pattern import SoundSegment


class Player(Protocol):
    def is_playing(self) -> bool: ...

    def play_segments(self, segments: Sequence[SoundSegment], volume: int, play_count: int) -> None: ...

    def stop(self) -> None: ...


@dataclass
class AudioTask:
    notification_id: uuid.UUID
    segments: list[SoundSegment] = field(default_factory=list)
    volume: int = 70
    play_count: int = 1


class AudioQueue:
    """Plays queued tasks through ``player``; call on_finished when it finishes one."""

    def __init__(self, player: Player) -> None:
        self._player = player
        self._queue: deque[AudioTask] = deque()
        self._current_id: Optional[uuid.UUID] = None

    @property
    def current_id(self) -> Optional[uuid.UUID]:
        return self._current_id

    def __len__(self) -> int:
        return len(self._queue)

    def is_playing(self) -> bool:
        return self._player.is_playing()

    def enqueue(self, task: AudioTask) -> None:
        if not task.segments or task.volume <= 0:
            return
        self._queue.append(task)
        if self._current_id is None:
            self._play_next()

    def stop_notification(self, notification_id: uuid.UUID) -> None:
        if self._current_id is not None and self._current_id == notification_id:
            self._player.stop()
            self._current_id = None
        self._queue = deque(task for task in self._queue if task.notification_id != notification_id)
        if self._current_id is None:
            self._play_next()

    def clear(self) -> None:
        self._queue.clear()
        self._player.stop()
        self._current_id = None

    def on_finished(self) -> None:
        """Advance to the next task once the player reports it is done."""
        self._play_next()

    def _play_next(self) -> None:
        if not self._queue:
            self._current_id = None
            return
        task = self._queue.popleft()
        self._current_id = task.notification_id
        self._player.play_segments(task.segments, task.volume, task.play_count)