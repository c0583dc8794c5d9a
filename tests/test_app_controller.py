import uuid
from datetime import date, datetime, time

import pytest

from smartalarm.app_controller import (
    AppController,
    MemoryConfigStore,
    OperationError,
    RuntimeNotificationOptions,
)
from smartalarm.audio_queue import AudioQueue
from smartalarm.notification import (
    AppConfig,
    CountFrom,
    CustomSound,
    GlobalSettings,
    IntervalSchedule,
    Notification,
    NotificationPosition,
    OnceSchedule,
)

NOW = datetime(2024, 1, 1, 10, 0, 30)


class FakePopups:
    def __init__(self):
        self.shown = {}
        self.position = None

    def has_notification(self, notification_id):
        return notification_id in self.shown

    def show_notification(self, notification):
        self.shown[notification.id] = notification

    def close_notification(self, notification_id):
        self.shown.pop(notification_id, None)

    def close_all(self):
        self.shown.clear()

    def active_count(self):
        return len(self.shown)

    def active_notification_ids(self):
        return list(self.shown)

    def set_position(self, position):
        self.position = position


class FakePlayer:
    def __init__(self):
        self.plays = []
        self.playing = False

    def is_playing(self):
        return self.playing

    def play_segments(self, segments, volume, play_count):
        self.plays.append((segments, volume, play_count))
        self.playing = True

    def stop(self):
        self.playing = False


class FakePreview:
    def __init__(self):
        self.stopped = False

    def stop(self):
        self.stopped = True


def make_controller(config=None, fail_message=None):
    store = MemoryConfigStore(config, fail_message)
    controller = AppController(store, clock=lambda: NOW)
    controller.load()
    popups = FakePopups()
    player = FakePlayer()
    preview = FakePreview()
    controller.set_runtime_services(popups, AudioQueue(player), preview)
    return controller, store, popups, player, preview


def once_notification(**kwargs):
    return Notification(message="Stand up", schedule=OnceSchedule(date(2024, 1, 1), time(10, 5)), **kwargs)


def test_add_notification_saves_to_store():
    controller, store, *_ = make_controller()
    item = once_notification()
    controller.add_notification(item)
    assert [n.id for n in controller.notifications] == [item.id]
    assert [n.id for n in store.config.notifications] == [item.id]


def test_add_invalid_notification_raises():
    controller, store, *_ = make_controller()
    with pytest.raises(OperationError, match="Notification is invalid"):
        controller.add_notification(Notification(message="  "))
    assert store.config.notifications == []


def test_load_returns_stored_config():
    item = once_notification()
    controller, *_ = make_controller(AppConfig(notifications=[item]))
    assert controller.notification_by_uuid(item.id).message == "Stand up"


def test_update_keeps_id_and_clears_snooze():
    item = once_notification()
    controller, *_ = make_controller(AppConfig(notifications=[item]))
    controller.runtime.pending_snooze[item.id] = NOW
    controller.update_notification(item.id, once_notification(enabled=False))
    updated = controller.notification_by_uuid(item.id)
    assert updated.id == item.id
    assert updated.enabled is False
    assert item.id not in controller.runtime.pending_snooze


def test_update_unknown_raises():
    controller, *_ = make_controller()
    with pytest.raises(OperationError, match="not found"):
        controller.update_notification(uuid.uuid4(), once_notification())


def test_delete_removes_and_closes_popup():
    item = once_notification()
    controller, _, popups, *_ = make_controller(AppConfig(notifications=[item]))
    popups.show_notification(item)
    controller.delete_notification(item.id)
    assert controller.notifications == []
    assert popups.shown == {}
    with pytest.raises(OperationError):
        controller.delete_notification(item.id)


def test_save_failure_keeps_config_and_signals():
    controller, *_ = make_controller(fail_message="disk full")
    messages = []
    controller.save_failed.connect(messages.append)
    with pytest.raises(OperationError, match="disk full"):
        controller.add_notification(once_notification())
    assert controller.notifications == []
    assert messages == ["disk full"]


def test_set_enabled_false_closes_popup():
    item = once_notification()
    controller, _, popups, *_ = make_controller(AppConfig(notifications=[item]))
    popups.show_notification(item)
    controller.set_notification_enabled(item.id, False)
    assert controller.notification_by_uuid(item.id).enabled is False
    assert not popups.has_notification(item.id)


def test_update_settings_validates_and_moves_popups():
    controller, _, popups, *_ = make_controller()
    with pytest.raises(OperationError, match="Settings are invalid"):
        controller.update_settings(GlobalSettings(default_snooze_minutes=0))
    controller.update_settings(GlobalSettings(5, NotificationPosition.CENTER))
    assert controller.settings.default_snooze_minutes == 5
    assert popups.position is NotificationPosition.CENTER


def test_trigger_runtime_notification_shows_and_plays():
    controller, _, popups, player, _ = make_controller()
    notification_id = controller.trigger_runtime_notification(
        RuntimeNotificationOptions(message="Tea", color="#abcdef", volume=40)
    )
    assert controller.is_runtime_only_notification(notification_id)
    assert popups.shown[notification_id].color == "#ABCDEF"
    assert player.plays[0][1] == 40
    assert controller.is_audio_playing()
    assert controller.active_notification_ids() == [notification_id]
    assert controller.notifications == []


def test_trigger_silent_does_not_play():
    controller, _, popups, player, _ = make_controller()
    notification_id = controller.trigger_runtime_notification(RuntimeNotificationOptions(message="Tea", volume=0))
    assert popups.has_notification(notification_id)
    assert player.plays == []


@pytest.mark.parametrize(
    "options, message",
    [
        (RuntimeNotificationOptions(message=" "), "Message is required"),
        (RuntimeNotificationOptions(message="x", color="red"), "Color is invalid"),
        (RuntimeNotificationOptions(message="x", volume=101), "Volume is out of range"),
        (RuntimeNotificationOptions(message="x", play_count=1000), "Play count is out of range"),
        (RuntimeNotificationOptions(message="x", snooze_minutes=1441), "Snooze minutes is out of range"),
        (RuntimeNotificationOptions(message="x", sound=CustomSound(" ")), "Custom sound pattern is required"),
    ],
)
def test_trigger_runtime_validation(options, message):
    controller, *_ = make_controller()
    with pytest.raises(OperationError, match=message):
        controller.trigger_runtime_notification(options)


def test_trigger_without_popups_raises():
    controller = AppController(MemoryConfigStore(), clock=lambda: NOW)
    with pytest.raises(OperationError, match="Notification runtime is not available"):
        controller.trigger_runtime_notification(RuntimeNotificationOptions(message="Tea"))


def test_minute_tick_triggers_due_notification():
    item = once_notification()
    controller, _, popups, *_ = make_controller(AppConfig(notifications=[item]))
    controller.handle_minute_tick(datetime(2024, 1, 1, 10, 4))
    assert popups.shown == {}
    controller.handle_minute_tick(datetime(2024, 1, 1, 10, 5, 12))
    assert list(popups.shown) == [item.id]
    assert controller.runtime.last_triggered_minute[item.id] == datetime(2024, 1, 1, 10, 5)


def test_runtime_toggle_emits_on_change_only():
    controller, *_ = make_controller()
    changes = []
    controller.runtime_toggle_changed.connect(changes.append)
    controller.set_runtime_notifications_enabled(True)
    controller.set_runtime_notifications_enabled(False)
    controller.set_runtime_notifications_enabled(False)
    assert changes == [False]
    assert controller.runtime_notifications_enabled() is False


def test_snooze_schedules_next_minute_and_retriggers():
    controller, _, popups, *_ = make_controller()
    notification_id = controller.trigger_runtime_notification(RuntimeNotificationOptions(message="Tea"))
    controller.snooze_notification(notification_id)
    snooze_at = controller.runtime.pending_snooze[notification_id]
    assert snooze_at == datetime(2024, 1, 1, 10, 2)
    assert not popups.has_notification(notification_id)
    controller.handle_minute_tick(snooze_at)
    assert popups.has_notification(notification_id)
    assert notification_id not in controller.runtime.pending_snooze


def test_dismiss_runtime_notification_forgets_it():
    controller, _, popups, *_ = make_controller()
    notification_id = controller.trigger_runtime_notification(RuntimeNotificationOptions(message="Tea"))
    controller.dismiss_notification(notification_id)
    assert not controller.is_runtime_only_notification(notification_id)
    assert controller.active_notification_count() == 0


def test_dismiss_confirmation_interval_records_time():
    item = Notification(message="Water", schedule=IntervalSchedule(count_from=CountFrom.CONFIRMATION))
    controller, *_ = make_controller(AppConfig(notifications=[item]))
    controller.runtime.interval_reset_at[item.id] = NOW
    controller.dismiss_notification(item.id)
    assert controller.runtime.last_dismissed_at[item.id] == NOW
    assert item.id not in controller.runtime.interval_reset_at


def test_reset_interval_timer():
    interval = Notification(message="Water", schedule=IntervalSchedule())
    once = once_notification()
    controller, *_ = make_controller(AppConfig(notifications=[interval, once]))
    controller.reset_interval_timer(interval.id, NOW)
    assert controller.runtime.interval_reset_at[interval.id] == NOW
    with pytest.raises(OperationError, match="interval schedule"):
        controller.reset_interval_timer(once.id, NOW)
    with pytest.raises(OperationError, match="not found"):
        controller.reset_interval_timer(uuid.uuid4(), NOW)


def test_next_notification_time():
    item = once_notification()
    controller, *_ = make_controller(AppConfig(notifications=[item]))
    assert controller.next_notification_time(item.id, NOW) == datetime(2024, 1, 1, 10, 5)
    assert controller.next_notification_time(uuid.uuid4(), NOW) is None


def test_stop_all_runtime():
    controller, _, popups, player, preview = make_controller()
    controller.trigger_runtime_notification(RuntimeNotificationOptions(message="Tea"))
    controller.stop_all_runtime()
    assert preview.stopped is True
    assert popups.shown == {}
    assert player.playing is False