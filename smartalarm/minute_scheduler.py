"""A timer that calls back at the start of every wall-clock minute."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from smartalarm.notification import normalize_to_minute

_MIN_DELAY_SECONDS = 0.001


def seconds_until_next_minute(now: datetime) -> float:
    """Delay from ``now`` to the start of the following minute, at least 1 ms."""
    following = normalize_to_minute(now) + timedelta(minutes=1)
    return max(_MIN_DELAY_SECONDS, (following - now).total_seconds())


class MinuteScheduler:
    """Calls ``on_tick(now)`` once on start and then at each minute boundary."""

    def __init__(self, on_tick: Callable[[datetime], None], clock: Callable[[], datetime] = datetime.now) -> None:
        self._on_tick = on_tick
        self._clock = clock
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
        self._on_tick(self._clock())
        self._schedule_next()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def __enter__(self) -> "MinuteScheduler":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _schedule_next(self) -> None:
        timer = threading.Timer(seconds_until_next_minute(self._clock()), self._fire)
        timer.daemon = True
        with self._lock:
            if not self._running:
                return
            self._timer = timer
        timer.start()

    def _fire(self) -> None:
        if not self._running:
            return
        self._on_tick(self._clock())
        self._schedule_next()