"""Help texts of the command-line client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

PROGRAM = "SmartAlarmCli.exe"


@dataclass(frozen=True)
class HelpEntry:
    command: str
    summary: str
    usage: str
    details: str


_ENTRIES = (
    HelpEntry(
        "status",
        "Show runtime state.",
        f"{PROGRAM} status [--json]",
        "Shows runtimeNotificationsEnabled, notificationCount, activePopupCount, and audioPlaying.",
    ),
    HelpEntry(
        "list",
        "List saved notifications.",
        f"{PROGRAM} list [--json]",
        "Lists persistent notifications only. Runtime-only trigger popups are not included.",
    ),
    HelpEntry(
        "get",
        "Show one saved notification.",
        f"{PROGRAM} get --uuid UUID [--json]",
        "UUID may be passed with or without braces. Output always uses UUID without braces.",
    ),
    HelpEntry(
        "add",
        "Create a saved notification.",
        f"{PROGRAM} add --message TEXT --schedule-type TYPE [schedule options] [common options] [--json]",
        "Schedule types:\n"
        "  once: --date yyyy-MM-dd --time HH:mm\n"
        "  weekly: --days mon,wed --time HH:mm [--start-date yyyy-MM-dd] [--end-date yyyy-MM-dd]\n"
        "  nth-week: --every-weeks N --weekday mon --time HH:mm --reference-date yyyy-MM-dd"
        " [--end-date yyyy-MM-dd]\n"
        "  interval: --every-minutes N --from HH:mm --to HH:mm --count-from trigger|confirmation"
        " [--days mon,tue] [--start-date yyyy-MM-dd] [--end-date yyyy-MM-dd] [--snooze-minutes N]\n"
        "Common options: --enabled true|false --color #RRGGBB --sound PRESET|custom --pattern PATTERN"
        " --volume 0..100 --play-count 0..999",
    ),
    HelpEntry(
        "update",
        "Update a saved notification.",
        f"{PROGRAM} update --uuid UUID [common options] [--schedule-type TYPE schedule options] [--json]",
        "Common fields can be patched. Schedule changes require --schedule-type and all required fields"
        " for the new schedule.",
    ),
    HelpEntry(
        "delete",
        "Delete a saved notification immediately.",
        f"{PROGRAM} delete --uuid UUID [--json]",
        "Deletes without confirmation. Runtime cleanup is handled by the running app after a successful save.",
    ),
    HelpEntry(
        "trigger",
        "Show a runtime-only popup now.",
        f"{PROGRAM} trigger --message TEXT [--color #RRGGBB] [--sound PRESET|custom] [--pattern PATTERN]"
        " [--volume 0..100] [--play-count 0..999] [--snooze-minutes 0..1440] [--json]",
        "Does not save JSON and ignores the global runtime toggle. Returns a runtime-only uuid.",
    ),
    HelpEntry(
        "dismiss",
        "Dismiss an active popup.",
        f"{PROGRAM} dismiss --uuid UUID [--json]",
        "Returns not_active if the popup is not open.",
    ),
    HelpEntry(
        "snooze",
        "Snooze an active popup.",
        f"{PROGRAM} snooze --uuid UUID [--json]",
        "Returns not_active if the popup is not open.",
    ),
    HelpEntry(
        "enable-runtime",
        "Enable future scheduled notifications.",
        f"{PROGRAM} enable-runtime [--json]",
        "Does not change saved notification enabled flags.",
    ),
    HelpEntry(
        "disable-runtime",
        "Disable future scheduled notifications.",
        f"{PROGRAM} disable-runtime [--json]",
        "Does not close already open popups and does not stop currently playing sound.",
    ),
    HelpEntry(
        "reset-interval",
        "Reset one interval notification timer.",
        f"{PROGRAM} reset-interval --uuid UUID [--json]",
        "Works only for interval notifications.",
    ),
)


def help_entries() -> list[HelpEntry]:
    return list(_ENTRIES)


def command_names_text() -> str:
    return ", ".join(entry.command for entry in _ENTRIES)


def help_entry_for(command: str) -> Optional[HelpEntry]:
    return next((entry for entry in _ENTRIES if entry.command == command), None)


def general_help_text() -> str:
    lines = [
        "Smart Alarm CLI\n\n",
        "Usage:\n",
        f"  {PROGRAM} <command> [options]\n",
        f"  {PROGRAM} help [command]\n\n",
        "Commands:\n",
    ]
    for entry in _ENTRIES:
        padding = " " * (16 - len(entry.command) if len(entry.command) < 16 else 1)
        lines.append(f"  {entry.command}{padding}{entry.summary}\n")
    lines.append(
        "\nGlobal options:\n"
        "  --json             Print machine-readable JSON output.\n\n"
        f"Run '{PROGRAM} help <command>' for command details.\n"
    )
    return "".join(lines)


def command_help_text(entry: HelpEntry) -> str:
    return f"{entry.command}\n\nUsage:\n  {entry.usage}\n\n{entry.details}\n"


def help_json(entry: Optional[HelpEntry] = None) -> dict:
    """The JSON help response for one command, or for all when ``entry`` is None."""
    if entry is not None:
        data = {
            "command": entry.command,
            "summary": entry.summary,
            "usage": entry.usage,
            "details": entry.details,
        }
    else:
        data = {
            "usage": f"{PROGRAM} <command> [options]",
            "commands": [
                {"command": item.command, "summary": item.summary, "usage": item.usage}
                for item in _ENTRIES
            ],
        }
    return {"ok": True, "data": data}