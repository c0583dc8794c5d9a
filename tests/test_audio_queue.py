import uuid

from smartalarm.audio_queue import AudioQueue, AudioTask
from smartalarm.sound_pattern import SoundSegment


class FakePlayer:
    def __init__(self):
        self.played = []
        self.stops = 0
        self.playing = False

    def is_playing(self):
        return self.playing

    def play_segments(self, segments, volume, play_count):
        self.played.append((list(segments), volume, play_count))
        self.playing = True

    def stop(self):
        self.stops += 1
        self.playing = False


SEGMENTS = [SoundSegment(frequency=440.0, duration_ms=100)]


def _task(volume=70, play_count=1, segments=SEGMENTS):
    return AudioTask(uuid.uuid4(), list(segments), volume, play_count)


def test_first_task_plays_immediately():
    player = FakePlayer()
    queue = AudioQueue(player)
    task = _task(volume=55, play_count=3)
    queue.enqueue(task)
    assert player.played == [(SEGMENTS, 55, 3)]
    assert queue.current_id == task.notification_id
    assert queue.is_playing() is True


def test_second_task_waits_until_finished():
    player = FakePlayer()
    queue = AudioQueue(player)
    first, second = _task(volume=10), _task(volume=20)
    queue.enqueue(first)
    queue.enqueue(second)
    assert len(player.played) == 1
    assert len(queue) == 1
    queue.on_finished()
    assert player.played[-1][1] == 20
    assert queue.current_id == second.notification_id
    queue.on_finished()
    assert queue.current_id is None
    assert len(player.played) == 2


def test_silent_or_empty_tasks_are_ignored():
    player = FakePlayer()
    queue = AudioQueue(player)
    queue.enqueue(_task(volume=0))
    queue.enqueue(_task(segments=[]))
    assert player.played == []
    assert queue.current_id is None


def test_stop_current_notification_plays_next():
    player = FakePlayer()
    queue = AudioQueue(player)
    first, second = _task(volume=10), _task(volume=20)
    queue.enqueue(first)
    queue.enqueue(second)
    queue.stop_notification(first.notification_id)
    assert player.stops == 1
    assert queue.current_id == second.notification_id
    assert player.played[-1][1] == 20


def test_stop_queued_notification_removes_it():
    player = FakePlayer()
    queue = AudioQueue(player)
    first, second, third = _task(volume=10), _task(volume=20), _task(volume=30)
    for task in (first, second, third):
        queue.enqueue(task)
    queue.stop_notification(second.notification_id)
    assert player.stops == 0
    assert queue.current_id == first.notification_id
    assert len(queue) == 1
    queue.on_finished()
    assert queue.current_id == third.notification_id


def test_clear_stops_and_empties():
    player = FakePlayer()
    queue = AudioQueue(player)
    queue.enqueue(_task())
    queue.enqueue(_task())
    queue.clear()
    assert player.stops == 1
    assert len(queue) == 0
    assert queue.current_id is None
    assert queue.is_playing() is False
    queue.on_finished()
    assert len(player.played) == 1