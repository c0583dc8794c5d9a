"""Local command server that lets the command-line client drive a running app."""

from __future__ import annotations

import json
import os
import socket
import socketserver
import tempfile
import threading
from datetime import date, datetime, time
from typing import Callable, Optional, Union

from smartalarm.app_controller import AppController, OperationError, RuntimeNotificationOptions
from smartalarm.command_options import (
    OptionError,
    apply_common_options,
    parse_int,
    parse_schedule,
    parse_sound,
    parse_uuid,
)
from smartalarm.notification import (
    CustomSound,
    DateRange,
    IntervalSchedule,
    Notification,
    NthWeekSchedule,
    OnceSchedule,
    PresetSound,
    WeeklySchedule,
    canonical_hex_color,
    count_from_to_string,
    is_canonical_hex_color,
    sound_preset_to_string,
    weekday_to_string,
)
from smartalarm.schedule_evaluator import is_once_overdue
from smartalarm.schedule_formatter import format_schedule

Address = Union[str, tuple]

SERVER_NAME = "SmartAlarm.CommandServer"
_FALLBACK_TCP_ADDRESS = ("127.0.0.1", 48731)
_HANDLER_TIMEOUT_SECONDS = 5

_SCHEDULE_KEYS = (
    "date", "time", "days", "start-date", "end-date", "every-weeks", "weekday",
    "reference-date", "every-minutes", "from", "to", "count-from", "snooze-minutes",
)


def server_address() -> Address:
    """The well-known address the app listens on and the client connects to."""
    if hasattr(socket, "AF_UNIX"):
        return os.path.join(tempfile.gettempdir(), SERVER_NAME)
    return _FALLBACK_TCP_ADDRESS


def encode_message(message: dict) -> bytes:
    """Compact JSON encoding used on the wire in both directions."""
    return json.dumps(message, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _success(data: Optional[dict] = None) -> dict:
    return {"ok": True, "data": data if data is not None else {}}


def _failure(code: str, message: str, field: Optional[str] = None) -> dict:
    error = {"code": code, "message": message}
    if field:
        error["field"] = field
    return {"ok": False, "error": error}


def _without_none(values: dict) -> dict:
    return {key: value for key, value in values.items() if value is not None}


def _date_text(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _time_text(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value is not None else None


def _range_dict(date_range: Optional[DateRange]) -> Optional[dict]:
    if date_range is None:
        return None
    return _without_none({"start": _date_text(date_range.start), "end": _date_text(date_range.end)})


def _schedule_dict(schedule) -> dict:
    if isinstance(schedule, OnceSchedule):
        return _without_none({"type": "once", "date": _date_text(schedule.date), "time": _time_text(schedule.time)})
    if isinstance(schedule, WeeklySchedule):
        return _without_none({
            "type": "weekly",
            "days": [weekday_to_string(day) for day in schedule.days],
            "time": _time_text(schedule.time),
            "dateRange": _range_dict(schedule.date_range),
        })
    if isinstance(schedule, NthWeekSchedule):
        return _without_none({
            "type": "nthWeek",
            "everyWeeks": schedule.every_weeks,
            "weekday": weekday_to_string(schedule.weekday),
            "time": _time_text(schedule.time),
            "referenceDate": _date_text(schedule.reference_date),
            "endDate": _date_text(schedule.end_date),
        })
    if isinstance(schedule, IntervalSchedule):
        limit = None
        if schedule.limit is not None:
            limit = {
                "days": [weekday_to_string(day) for day in schedule.limit.days],
                "dateRange": _range_dict(schedule.limit.date_range),
            }
        return _without_none({
            "type": "interval",
            "everyMinutes": schedule.every_minutes,
            "from": _time_text(schedule.from_time),
            "to": _time_text(schedule.to_time),
            "countFrom": count_from_to_string(schedule.count_from),
            "snoozeMinutes": schedule.snooze_minutes,
            "schedule": limit,
        })
    raise TypeError(f"unknown schedule type: {type(schedule).__name__}")


def _sound_dict(sound) -> dict:
    if isinstance(sound, CustomSound):
        return {"type": "custom", "pattern": sound.pattern}
    if isinstance(sound, PresetSound):
        return {"type": "preset", "preset": sound_preset_to_string(sound.preset)}
    raise TypeError(f"unknown sound type: {type(sound).__name__}")


def notification_to_dict(notification: Notification, controller: AppController) -> dict:
    """The JSON form of a notification as reported to the client."""
    now = datetime.now()
    result = {
        "uuid": str(notification.id),
        "enabled": notification.enabled,
        "message": notification.message,
        "color": notification.color,
        "volume": notification.volume,
        "playCount": notification.play_count,
        "sound": _sound_dict(notification.sound),
        "schedule": _schedule_dict(notification.schedule),
        "scheduleText": format_schedule(notification.schedule),
        "runtimeOnly": controller.is_runtime_only_notification(notification.id),
        "overdue": is_once_overdue(notification, now),
    }
    following = controller.next_notification_time(notification.id, now)
    if following is not None:
        result["nextTriggerAt"] = following.isoformat(timespec="seconds")
    return result


def _required_int(options: dict, key: str, low: int, high: int) -> int:
    value = parse_int(options, key, low, high)
    if value is None:
        raise OptionError(f"{key} must be in range {low}..{high}")
    return value


class _Handler(socketserver.StreamRequestHandler):
    timeout = _HANDLER_TIMEOUT_SECONDS

    def handle(self) -> None:
        try:
            payload = self.rfile.read()
        except OSError:
            return
        response = self.server.command_server.handle_payload(payload)
        try:
            self.wfile.write(response)
        except OSError:
            pass


class _TcpServer(socketserver.TCPServer):
    allow_reuse_address = True


class CommandServer:
    """Answers JSON command requests on a local socket using ``controller``."""

    def __init__(
        self,
        controller: AppController,
        address: Optional[Address] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._controller = controller
        self._address = address if address is not None else server_address()
        self._clock = clock
        self._lock = threading.Lock()
        self._server: Optional[socketserver.BaseServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Address:
        """The bound address while running, the configured one otherwise."""
        if self._server is not None:
            return self._server.server_address
        return self._address

    def start(self) -> None:
        """Start listening in a background thread; OSError if binding fails."""
        if self._server is not None:
            return
        if isinstance(self._address, str):
            try:
                os.unlink(self._address)
            except FileNotFoundError:
                pass
            server = socketserver.UnixStreamServer(self._address, _Handler)
        else:
            server = _TcpServer(self._address, _Handler)
        server.command_server = self
        self._server = server
        self._thread = threading.Thread(target=server.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        server, thread = self._server, self._thread
        self._server = self._thread = None
        if server is None:
            return
        server.shutdown()
        server.server_close()
        if thread is not None:
            thread.join()
        if isinstance(self._address, str):
            try:
                os.unlink(self._address)
            except FileNotFoundError:
                pass

    def __enter__(self) -> "CommandServer":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def handle_payload(self, payload: bytes) -> bytes:
        """Decode one request, dispatch it and encode the response."""
        try:
            request = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            request = None
        if not isinstance(request, dict):
            response = _failure("protocol_error", "Invalid command request")
        else:
            with self._lock:
                response = self.dispatch(request)
        return encode_message(response)

    def dispatch(self, request: dict) -> dict:
        """Carry out one command request and return the response object."""
        command = request.get("command")
        command = command if isinstance(command, str) else ""
        options = request.get("options")
        options = options if isinstance(options, dict) else {}
        handler = self._handlers().get(command)
        if handler is None:
            return _failure("validation_error", "Unknown CLI command")
        return handler(options)

    def _handlers(self) -> dict:
        return {
            "list": self._list,
            "get": self._get,
            "add": self._add,
            "update": self._update,
            "delete": self._delete,
            "trigger": self._trigger,
            "status": self._status,
            "enable-runtime": lambda options: self._set_runtime(True),
            "disable-runtime": lambda options: self._set_runtime(False),
            "reset-interval": self._reset_interval,
            "dismiss": lambda options: self._popup_action(options, self._controller.dismiss_notification),
            "snooze": lambda options: self._popup_action(options, self._controller.snooze_notification),
        }

    def _find(self, notification_id) -> Optional[Notification]:
        return next((item for item in self._controller.notifications if item.id == notification_id), None)

    @staticmethod
    def _uuid_failure(exc: OptionError) -> dict:
        return _failure("validation_error", str(exc), "uuid")

    @staticmethod
    def _run(action: Callable[[], object], data: Optional[dict] = None) -> dict:
        try:
            action()
        except OperationError as exc:
            return _failure("operation_failed", str(exc))
        return _success(data)

    def _list(self, options: dict) -> dict:
        items = [notification_to_dict(item, self._controller) for item in self._controller.notifications]
        return _success({"notifications": items})

    def _get(self, options: dict) -> dict:
        try:
            notification_id = parse_uuid(options)
        except OptionError as exc:
            return self._uuid_failure(exc)
        notification = self._find(notification_id)
        if notification is None:
            return _failure("not_found", "Notification was not found")
        return _success({"notification": notification_to_dict(notification, self._controller)})

    def _add(self, options: dict) -> dict:
        notification = Notification()
        try:
            apply_common_options(notification, options, True)
            notification.schedule = parse_schedule(options)
        except OptionError as exc:
            return _failure("validation_error", str(exc))
        return self._run(
            lambda: self._controller.add_notification(notification), {"uuid": str(notification.id)}
        )

    def _update(self, options: dict) -> dict:
        try:
            notification_id = parse_uuid(options)
        except OptionError as exc:
            return self._uuid_failure(exc)
        existing = self._find(notification_id)
        if existing is None:
            return _failure("not_found", "Notification was not found")
        following = Notification(
            id=existing.id,
            enabled=existing.enabled,
            message=existing.message,
            color=existing.color,
            volume=existing.volume,
            play_count=existing.play_count,
            sound=existing.sound,
            schedule=existing.schedule,
        )
        try:
            apply_common_options(following, options, False)
            if "schedule-type" in options:
                following.schedule = parse_schedule(options)
            elif any(key in options for key in _SCHEDULE_KEYS):
                raise OptionError("schedule-type is required to update schedule")
        except OptionError as exc:
            return _failure("validation_error", str(exc))
        return self._run(
            lambda: self._controller.update_notification(notification_id, following),
            {"uuid": str(notification_id)},
        )

    def _delete(self, options: dict) -> dict:
        try:
            notification_id = parse_uuid(options)
        except OptionError as exc:
            return self._uuid_failure(exc)
        return self._run(lambda: self._controller.delete_notification(notification_id))

    def _trigger(self, options: dict) -> dict:
        trigger = RuntimeNotificationOptions()
        message = options.get("message")
        if not isinstance(message, str):
            return _failure("validation_error", "message is required", "message")
        trigger.message = message
        color = options.get("color")
        if isinstance(color, str):
            if not is_canonical_hex_color(color):
                return _failure("validation_error", "color must use #RRGGBB", "color")
            trigger.color = canonical_hex_color(color)
        try:
            if "volume" in options:
                trigger.volume = _required_int(options, "volume", 0, 100)
            if "play-count" in options:
                trigger.play_count = _required_int(options, "play-count", 0, 999)
            if "snooze-minutes" in options:
                trigger.snooze_minutes = _required_int(options, "snooze-minutes", 0, 1440)
            if "sound" in options or "pattern" in options:
                sound = parse_sound(options)
                if sound is None:
                    raise OptionError("sound is invalid")
                trigger.sound = sound
        except OptionError as exc:
            return _failure("validation_error", str(exc))
        try:
            notification_id = self._controller.trigger_runtime_notification(trigger)
        except OperationError as exc:
            return _failure("operation_failed", str(exc))
        return _success({"uuid": str(notification_id), "runtimeOnly": True})

    def _status(self, options: dict) -> dict:
        controller = self._controller
        active = []
        for notification_id in controller.active_notification_ids():
            item = {
                "uuid": str(notification_id),
                "runtimeOnly": controller.is_runtime_only_notification(notification_id),
            }
            notification = controller.notification_by_uuid(notification_id)
            if notification is not None:
                item["message"] = notification.message
            active.append(item)
        return _success({
            "runtimeNotificationsEnabled": controller.runtime_notifications_enabled(),
            "notificationCount": len(controller.notifications),
            "activePopupCount": controller.active_notification_count(),
            "audioPlaying": controller.is_audio_playing(),
            "activeNotifications": active,
        })

    def _set_runtime(self, enabled: bool) -> dict:
        self._controller.set_runtime_notifications_enabled(enabled)
        return _success()

    def _reset_interval(self, options: dict) -> dict:
        try:
            notification_id = parse_uuid(options)
        except OptionError as exc:
            return self._uuid_failure(exc)
        return self._run(lambda: self._controller.reset_interval_timer(notification_id, self._clock()))

    def _popup_action(self, options: dict, action: Callable) -> dict:
        try:
            notification_id = parse_uuid(options)
        except OptionError as exc:
            return self._uuid_failure(exc)
        if not self._controller.has_active_notification(notification_id):
            return _failure("not_active", "Notification popup is not active")
        action(notification_id)
        return _success()