"""Application core: owns the configuration, runtime state and firing of notifications."""

from __future__ import annotations

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol, Sequence

from smartalarm.audio_queue import AudioQueue, AudioTask
from smartalarm.notification import (
    DEFAULT_COLOR,
    AppConfig,
    CountFrom,
    CustomSound,
    GlobalSettings,
    IntervalSchedule,
    Notification,
    NotificationPosition,
    OnceSchedule,
    PresetSound,
    RuntimeState,
    SoundPreset,
    SoundSpec,
    canonical_hex_color,
    ceil_to_next_minute,
    is_canonical_hex_color,
    normalize_to_minute,
)
from smartalarm.schedule_evaluator import TriggerKind, evaluate, next_occurrence
from smartalarm.sound_pattern import PatternError, parse_pattern
from smartalarm.sound_presets import pattern_for
from smartalarm.validator import validate

_log = logging.getLogger(__name__)


class OperationError(Exception):
    """Raised when a controller operation cannot be carried out."""


class ConfigStore(ABC):
    """Persistent storage of the application configuration."""

    @abstractmethod
    def load(self) -> AppConfig:
        """Return the stored configuration."""

    @abstractmethod
    def save(self, config: AppConfig) -> None:
        """Store ``config``; raise OperationError on failure."""


class MemoryConfigStore(ConfigStore):
    """A configuration store that keeps everything in memory.

    Setting ``fail_message`` makes every save fail with that message.
    """

    def __init__(self, config: Optional[AppConfig] = None, fail_message: Optional[str] = None) -> None:
        self.config = copy.deepcopy(config) if config is not None else AppConfig()
        self.fail_message = fail_message

    def load(self) -> AppConfig:
        return copy.deepcopy(self.config)

    def save(self, config: AppConfig) -> None:
        if self.fail_message is not None:
            raise OperationError(self.fail_message)
        self.config = copy.deepcopy(config)


class PopupManager(Protocol):
    def has_notification(self, notification_id: uuid.UUID) -> bool: ...

    def show_notification(self, notification: Notification) -> None: ...

    def close_notification(self, notification_id: uuid.UUID) -> None: ...

    def close_all(self) -> None: ...

    def active_count(self) -> int: ...

    def active_notification_ids(self) -> Sequence[uuid.UUID]: ...

    def set_position(self, position: NotificationPosition) -> None: ...


class PreviewPlayer(Protocol):
    def stop(self) -> None: ...


@dataclass
class RuntimeNotificationOptions:
    message: str = ""
    color: str = DEFAULT_COLOR
    sound: SoundSpec = field(default_factory=lambda: PresetSound(SoundPreset.GENTLE_CHIME))
    volume: int = 70
    play_count: int = 1
    snooze_minutes: int = 0


class _Signal:
    """A list of callbacks invoked on emit."""

    def __init__(self) -> None:
        self._slots: list[Callable[..., None]] = []

    def connect(self, slot: Callable[..., None]) -> None:
        self._slots.append(slot)

    def emit(self, *args) -> None:
        for slot in list(self._slots):
            slot(*args)


class AppController:
    """Coordinates saved notifications, runtime-only popups, popups and sound."""

    def __init__(self, store: ConfigStore, clock: Callable[[], datetime] = datetime.now) -> None:
        self._store = store
        self._clock = clock
        self._config = AppConfig()
        self._runtime = RuntimeState()
        self._popup_manager: Optional[PopupManager] = None
        self._audio_queue: Optional[AudioQueue] = None
        self._preview_player: Optional[PreviewPlayer] = None
        self.notifications_changed = _Signal()
        self.settings_changed = _Signal()
        self.runtime_toggle_changed = _Signal()
        self.save_failed = _Signal()

    def load(self) -> AppConfig:
        self._config = self._store.load()
        return self._config

    def set_runtime_services(
        self,
        popup_manager: Optional[PopupManager],
        audio_queue: Optional[AudioQueue],
        preview_player: Optional[PreviewPlayer],
    ) -> None:
        self._popup_manager = popup_manager
        self._audio_queue = audio_queue
        self._preview_player = preview_player

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def notifications(self) -> list[Notification]:
        return self._config.notifications

    @property
    def settings(self) -> GlobalSettings:
        return self._config.settings

    @property
    def runtime(self) -> RuntimeState:
        return self._runtime

    def notification_by_uuid(self, notification_id: uuid.UUID) -> Optional[Notification]:
        found = self._find(notification_id)
        if found is not None:
            return found
        return self._runtime.runtime_only_notifications.get(notification_id)

    def add_notification(self, notification: Notification) -> None:
        if not validate(notification).ok:
            raise OperationError("Notification is invalid")
        following = copy.deepcopy(self._config)
        following.notifications.append(copy.deepcopy(notification))
        self._save_replacing(following)

    def update_notification(self, notification_id: uuid.UUID, notification: Notification) -> None:
        if not validate(notification).ok:
            raise OperationError("Notification is invalid")
        following = copy.deepcopy(self._config)
        for index, item in enumerate(following.notifications):
            if item.id == notification_id:
                following.notifications[index] = replace(copy.deepcopy(notification), id=notification_id)
                self._save_replacing(following)
                self._runtime.pending_snooze.pop(notification_id, None)
                self._runtime.interval_reset_at.pop(notification_id, None)
                return
        raise OperationError("Notification was not found")

    def delete_notification(self, notification_id: uuid.UUID) -> None:
        following = copy.deepcopy(self._config)
        kept = [item for item in following.notifications if item.id != notification_id]
        if len(kept) == len(following.notifications):
            raise OperationError("Notification was not found")
        following.notifications = kept
        self._save_replacing(following)
        self._runtime.pending_snooze.pop(notification_id, None)
        self._runtime.last_dismissed_at.pop(notification_id, None)
        self._runtime.interval_reset_at.pop(notification_id, None)
        self._stop_and_close(notification_id)

    def set_notification_enabled(self, notification_id: uuid.UUID, enabled: bool) -> None:
        following = copy.deepcopy(self._config)
        for item in following.notifications:
            if item.id == notification_id:
                item.enabled = enabled
                self._save_replacing(following)
                if not enabled:
                    self._runtime.pending_snooze.pop(notification_id, None)
                    self._runtime.interval_reset_at.pop(notification_id, None)
                    self._stop_and_close(notification_id)
                return
        raise OperationError("Notification was not found")

    def update_settings(self, settings: GlobalSettings) -> None:
        if not 1 <= settings.default_snooze_minutes <= 1440:
            raise OperationError("Settings are invalid")
        following = copy.deepcopy(self._config)
        following.settings = copy.deepcopy(settings)
        self._save_replacing(following)
        if self._popup_manager is not None:
            self._popup_manager.set_position(settings.notification_position)

    def trigger_runtime_notification(self, options: RuntimeNotificationOptions) -> uuid.UUID:
        """Show a popup that is never saved; return its id."""
        now = self._clock()
        notification = Notification(
            id=uuid.uuid4(),
            enabled=True,
            message=options.message,
            color=options.color,
            volume=options.volume,
            play_count=options.play_count,
            sound=copy.deepcopy(options.sound),
            schedule=OnceSchedule(now.date(), now.time()),
        )
        if not notification.message.strip():
            raise OperationError("Message is required")
        if not is_canonical_hex_color(notification.color):
            raise OperationError("Color is invalid")
        notification.color = canonical_hex_color(notification.color)
        if not 0 <= notification.volume <= 100:
            raise OperationError("Volume is out of range")
        if not 0 <= notification.play_count <= 999:
            raise OperationError("Play count is out of range")
        if not 0 <= options.snooze_minutes <= 1440:
            raise OperationError("Snooze minutes is out of range")
        if isinstance(notification.sound, CustomSound) and not notification.sound.pattern.strip():
            raise OperationError("Custom sound pattern is required")
        if self._popup_manager is None:
            raise OperationError("Notification runtime is not available")

        self._runtime.runtime_only_notifications[notification.id] = notification
        self._runtime.runtime_only_snooze_minutes[notification.id] = options.snooze_minutes
        self._trigger(notification)
        return notification.id

    def runtime_notifications_enabled(self) -> bool:
        return self._runtime.notifications_enabled

    def set_runtime_notifications_enabled(self, enabled: bool) -> None:
        if self._runtime.notifications_enabled == enabled:
            return
        self._runtime.notifications_enabled = enabled
        self.runtime_toggle_changed.emit(enabled)

    def has_active_notification(self, notification_id: uuid.UUID) -> bool:
        return self._popup_manager is not None and self._popup_manager.has_notification(notification_id)

    def active_notification_count(self) -> int:
        return self._popup_manager.active_count() if self._popup_manager is not None else 0

    def active_notification_ids(self) -> list[uuid.UUID]:
        if self._popup_manager is None:
            return []
        return list(self._popup_manager.active_notification_ids())

    def is_runtime_only_notification(self, notification_id: uuid.UUID) -> bool:
        return notification_id in self._runtime.runtime_only_notifications

    def is_audio_playing(self) -> bool:
        return self._audio_queue is not None and self._audio_queue.is_playing()

    def next_notification_time(self, notification_id: uuid.UUID, start: datetime) -> Optional[datetime]:
        notification = self._find(notification_id)
        if notification is None:
            return None
        return next_occurrence(notification, start, self._runtime)

    def reset_interval_timer(self, notification_id: uuid.UUID, now: datetime) -> None:
        notification = self._find(notification_id)
        if notification is None:
            raise OperationError("Notification was not found")
        if not isinstance(notification.schedule, IntervalSchedule):
            raise OperationError("Notification does not use an interval schedule")
        self._runtime.pending_snooze.pop(notification_id, None)
        self._runtime.last_dismissed_at.pop(notification_id, None)
        self._runtime.interval_reset_at[notification_id] = now

    def handle_minute_tick(self, now: datetime) -> None:
        for notification in self._config.notifications:
            decision = evaluate(notification, now, self._runtime)
            if not decision.due:
                continue
            if decision.kind in (TriggerKind.NORMAL, TriggerKind.SNOOZE):
                self._runtime.pending_snooze.pop(notification.id, None)
            self._runtime.last_triggered_minute[notification.id] = normalize_to_minute(now)
            self._trigger(notification)

        if not self._runtime.notifications_enabled:
            return
        now_minute = normalize_to_minute(now)
        for notification_id in list(self._runtime.runtime_only_notifications):
            snooze_at = self._runtime.pending_snooze.get(notification_id)
            if snooze_at is None or now_minute < normalize_to_minute(snooze_at):
                continue
            notification = self._runtime.runtime_only_notifications[notification_id]
            del self._runtime.pending_snooze[notification_id]
            self._trigger(notification)

    def dismiss_notification(self, notification_id: uuid.UUID) -> None:
        if self._audio_queue is not None:
            self._audio_queue.stop_notification(notification_id)
        notification = self._find(notification_id)
        if notification is not None and isinstance(notification.schedule, IntervalSchedule):
            if notification.schedule.count_from is CountFrom.CONFIRMATION:
                self._runtime.last_dismissed_at[notification_id] = self._clock()
                self._runtime.interval_reset_at.pop(notification_id, None)
        if self._popup_manager is not None:
            self._popup_manager.close_notification(notification_id)
        if notification_id in self._runtime.runtime_only_notifications:
            del self._runtime.runtime_only_notifications[notification_id]
            self._runtime.runtime_only_snooze_minutes.pop(notification_id, None)
            self._runtime.pending_snooze.pop(notification_id, None)

    def snooze_notification(self, notification_id: uuid.UUID) -> None:
        notification = self._find(notification_id)
        if notification is None:
            notification = self._runtime.runtime_only_notifications.get(notification_id)
        if notification is None:
            return
        if self._audio_queue is not None:
            self._audio_queue.stop_notification(notification_id)
        minutes = max(1, self._resolved_snooze_minutes(notification))
        self._runtime.pending_snooze[notification_id] = ceil_to_next_minute(
            self._clock() + timedelta(minutes=minutes)
        )
        if self._popup_manager is not None:
            self._popup_manager.close_notification(notification_id)

    def stop_all_runtime(self) -> None:
        if self._preview_player is not None:
            self._preview_player.stop()
        if self._audio_queue is not None:
            self._audio_queue.clear()
        if self._popup_manager is not None:
            self._popup_manager.close_all()

    def _stop_and_close(self, notification_id: uuid.UUID) -> None:
        if self._audio_queue is not None:
            self._audio_queue.stop_notification(notification_id)
        if self._popup_manager is not None:
            self._popup_manager.close_notification(notification_id)

    def _save_replacing(self, following: AppConfig) -> None:
        try:
            self._store.save(following)
        except OperationError as exc:
            self.save_failed.emit(str(exc))
            raise
        self._config = following
        self.notifications_changed.emit()
        self.settings_changed.emit()

    def _find(self, notification_id: uuid.UUID) -> Optional[Notification]:
        return next((item for item in self._config.notifications if item.id == notification_id), None)

    def _trigger(self, notification: Notification) -> None:
        popups = self._popup_manager
        if popups is None or popups.has_notification(notification.id):
            return
        popups.show_notification(notification)
        if notification.volume <= 0 or self._audio_queue is None:
            return
        try:
            segments = parse_pattern(self._pattern_for(notification))
        except PatternError as exc:
            _log.warning("Cannot play notification sound: %s", exc)
            return
        self._audio_queue.enqueue(
            AudioTask(notification.id, segments, notification.volume, notification.play_count)
        )

    @staticmethod
    def _pattern_for(notification: Notification) -> str:
        sound = notification.sound
        if isinstance(sound, PresetSound):
            return pattern_for(sound.preset)
        return sound.pattern

    def _resolved_snooze_minutes(self, notification: Notification) -> int:
        minutes = self._runtime.runtime_only_snooze_minutes.get(notification.id, 0)
        if minutes > 0:
            return minutes
        schedule = notification.schedule
        if isinstance(schedule, IntervalSchedule) and schedule.snooze_minutes > 0:
            return schedule.snooze_minutes
        return self._config.settings.default_snooze_minutes