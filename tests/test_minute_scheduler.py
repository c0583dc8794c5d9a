import threading
from datetime import datetime

import pytest

from smartalarm.minute_scheduler import MinuteScheduler, seconds_until_next_minute


def test_seconds_until_next_minute_values():
    assert seconds_until_next_minute(datetime(2024, 5, 1, 12, 0, 30)) == pytest.approx(30.0)
    assert seconds_until_next_minute(datetime(2024, 5, 1, 12, 0, 0)) == pytest.approx(60.0)


def test_seconds_until_next_minute_has_floor():
    assert seconds_until_next_minute(datetime(2024, 5, 1, 23, 59, 59, 999999)) == pytest.approx(0.001)


@pytest.mark.parametrize("second", [0, 1, 15, 45, 59])
def test_delay_is_within_a_minute(second):
    delay = seconds_until_next_minute(datetime(2024, 5, 1, 8, 10, second, 250000))
    assert 0 < delay <= 60


def test_start_ticks_immediately_and_stop_ends():
    ticks = []
    moment = datetime(2024, 5, 1, 9, 0, 0)
    scheduler = MinuteScheduler(ticks.append, clock=lambda: moment)
    scheduler.start()
    scheduler.start()
    assert ticks == [moment]
    assert scheduler.running is True
    scheduler.stop()
    assert scheduler.running is False


def test_timer_fires_at_minute_boundary():
    ticks = []
    second_tick = threading.Event()

    def on_tick(now):
        ticks.append(now)
        if len(ticks) >= 2:
            second_tick.set()

    moment = datetime(2024, 5, 1, 9, 0, 59, 999000)
    scheduler = MinuteScheduler(on_tick, clock=lambda: moment)
    with scheduler:
        assert second_tick.wait(5.0) is True
    assert scheduler.running is False
    assert all(tick == moment for tick in ticks)