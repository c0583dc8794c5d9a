# smartalarm

A reminder and alarm engine. It keeps a list of notifications, works out
when each one is due, renders its alert sound to PCM, and can be driven
from the command line through a local command server.

## Features

- Four schedule kinds (`smartalarm.notification`): `OnceSchedule`,
  `WeeklySchedule`, `NthWeekSchedule` (every N weeks) and `IntervalSchedule`
  (every N minutes inside a daily window, counted from the trigger or from
  the moment the popup was dismissed), with optional weekday and date limits.
- Due-time evaluation and "next occurrence" search
  (`smartalarm.schedule_evaluator`: `evaluate`, `is_normal_due`,
  `next_occurrence`, `is_once_overdue`).
- Snoozing, per-notification interval reset, and a global runtime switch
  that pauses scheduled notifications without changing saved ones
  (`smartalarm.app_controller.AppController`).
- Validation of notifications (`smartalarm.validator.validate`) and one-line
  schedule descriptions (`smartalarm.schedule_formatter.format_schedule`).
- Sound presets (`smartalarm.sound_presets`) and a small pattern language for
  custom tones (`smartalarm.sound_pattern.parse_pattern`), rendered to PCM
  with sine, square, triangle and sawtooth waveforms
  (`smartalarm.tone_generator.generate_pcm`).
- A one-at-a-time sound queue (`smartalarm.audio_queue.AudioQueue`), a timer
  that ticks at every minute boundary
  (`smartalarm.minute_scheduler.MinuteScheduler`), a local command server
  (`smartalarm.command_server.CommandServer`) and the `smartalarm-cli`
  command.

## Installation

```
pip install .
```

No third-party libraries are needed.

## Running the engine

The package provides the parts; you assemble them:

```python
from smartalarm.app_controller import AppController, MemoryConfigStore
from smartalarm.command_server import CommandServer
from smartalarm.minute_scheduler import MinuteScheduler

controller = AppController(MemoryConfigStore())
controller.load()

with CommandServer(controller), MinuteScheduler(controller.handle_minute_tick):
    ...  # keep the process alive
```

`CommandServer` listens on a Unix socket named `SmartAlarm.CommandServer` in
the temporary directory, or on TCP `127.0.0.1:48731` where Unix sockets are
not available. `smartalarm-cli` connects to the same address.

Controller operations raise `OperationError` when they fail (invalid
notification, unknown id, failed save).

## Command line

`smartalarm-cli` talks to a running command server. Every command accepts
`--json` for machine-readable output.

```
smartalarm-cli help
smartalarm-cli help add
smartalarm-cli status
smartalarm-cli list
smartalarm-cli get --uuid UUID
smartalarm-cli add --message "Stand up" --schedule-type interval --every-minutes 40 --from 09:00 --to 18:00 --count-from confirmation
smartalarm-cli add --message "Standup meeting" --schedule-type weekly --days mon,wed,fri --time 09:55
smartalarm-cli update --uuid UUID --volume 40
smartalarm-cli delete --uuid UUID
smartalarm-cli trigger --message "Tea is ready" --sound urgent
smartalarm-cli dismiss --uuid UUID
smartalarm-cli snooze --uuid UUID
smartalarm-cli disable-runtime
smartalarm-cli enable-runtime
smartalarm-cli reset-interval --uuid UUID
```

A leading `cli` argument is accepted and ignored, so `smartalarm-cli cli list`
works too.

Exit codes:

| Code | Meaning                                         |
|------|-------------------------------------------------|
| 0    | success                                         |
| 1    | invalid arguments or options                    |
| 2    | no command server is running                    |
| 3    | operation failed, not found, or popup not open  |
| 4    | protocol or other error                         |

## Sound patterns

A custom sound is a comma-separated list of `tone/duration[/waveform]`
segments. The tone is a frequency in hertz (20..20000), a note such as `C5`
or `F#4`, or `_` for a pause. Durations are in milliseconds (1..10000), with
at most 128 segments and 60 seconds in total.

```python
from smartalarm.notification import sound_preset_from_string
from smartalarm.sound_pattern import PatternError, parse_pattern
from smartalarm.sound_presets import pattern_for
from smartalarm.tone_generator import default_format, generate_pcm

segments = parse_pattern("C5/220/sine, _/90, 880/140/square")
pcm = generate_pcm(segments, 70, default_format())  # 44.1 kHz mono 16-bit

urgent = pattern_for(sound_preset_from_string("urgent"))

try:
    parse_pattern("440/0")
except PatternError as error:
    print(error)  # Invalid duration
```

## Time input

```python
from smartalarm.time_input import filtered_text, format_time, normalize_time

format_time(normalize_time("0930"))   # "09:30"
format_time(normalize_time("7:5"))    # "07:05"
filtered_text("12.34x")               # "12:34"
```

## What this package does not do

- It shows no popups and has no windows. Notifications become visible only
  through an object you pass to `AppController.set_runtime_services` that
  implements the `PopupManager` methods (`show_notification`,
  `close_notification`, `has_notification`, ...). Without one, due
  notifications are not shown and `trigger` fails with
  "Notification runtime is not available".
- It does not play sound on an audio device. `AudioQueue` hands segments to
  a player object you supply (`play_segments`, `stop`, `is_playing`);
  `generate_pcm` gives you the samples to play.
- It does not store notifications on disk. `MemoryConfigStore` keeps the
  configuration in memory; implement `ConfigStore.load` and `save` for
  persistent storage.