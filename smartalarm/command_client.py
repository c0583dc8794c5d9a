"""Command-line client that sends commands to a running Smart Alarm app."""

from __future__ import annotations

import json
import socket
import sys
from dataclasses import dataclass, field
from typing import Optional, Sequence

from smartalarm.cli_help import (
    command_help_text,
    command_names_text,
    general_help_text,
    help_entry_for,
    help_json,
)
from smartalarm.command_server import Address, encode_message, server_address

_CONNECT_TIMEOUT_SECONDS = 1.0
_RESPONSE_TIMEOUT_SECONDS = 5.0
_HELP_FLAGS = ("help", "--help", "-h")


class UsageError(ValueError):
    """Raised when command-line arguments cannot be parsed."""


@dataclass
class ParsedArguments:
    command: str
    options: dict = field(default_factory=dict)
    json_output: bool = False


def parse_arguments(arguments: Sequence[str]) -> ParsedArguments:
    """Split ``command --key value ... [--json]`` into its parts."""
    if not arguments:
        raise UsageError("CLI command is required")
    parsed = ParsedArguments(arguments[0])
    tokens = iter(arguments[1:])
    for token in tokens:
        if token == "--json":
            parsed.json_output = True
            continue
        if not token.startswith("--") or len(token) <= 2:
            raise UsageError(f"Unexpected argument: {token}")
        try:
            parsed.options[token[2:]] = next(tokens)
        except StopIteration:
            raise UsageError(f"Missing value for {token}") from None
    return parsed


def exit_code_for_error(code: str) -> int:
    if code == "validation_error":
        return 1
    if code == "app_not_running":
        return 2
    if code in ("operation_failed", "not_found", "not_active"):
        return 3
    return 4


def _error_response(code: str, message: str, **extra) -> dict:
    return {"ok": False, "error": {"code": code, "message": message, **extra}}


def _text(value, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _int(value) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _value_text(value) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return _text(value)


def _dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _error_text(response: dict) -> str:
    error = _dict(response.get("error"))
    return f"error: {_text(error.get('code'), 'error')}: {_text(error.get('message'))}\n"


def format_human(command: str, response: dict) -> str:
    """Human-readable rendering of a response to ``command``."""
    if response.get("ok") is not True:
        return _error_text(response)
    data = _dict(response.get("data"))
    if command == "list":
        lines = ["UUID                                  Enabled  Message  Schedule  Next\n"]
        notifications = data.get("notifications")
        for value in notifications if isinstance(notifications, list) else []:
            item = _dict(value)
            lines.append(
                f"{_text(item.get('uuid'))}  {_value_text(item.get('enabled'))}      "
                f"{_text(item.get('message'))}  {_text(item.get('scheduleText'))}  "
                f"{_text(item.get('nextTriggerAt'), '-')}\n"
            )
        return "".join(lines)
    if command == "get":
        item = _dict(data.get("notification"))
        return (
            f"uuid: {_text(item.get('uuid'))}\n"
            f"enabled: {_value_text(item.get('enabled'))}\n"
            f"message: {_text(item.get('message'))}\n"
            f"schedule: {_text(item.get('scheduleText'))}\n"
            f"next: {_text(item.get('nextTriggerAt'), '-')}\n"
        )
    if command == "status":
        return (
            f"runtimeNotificationsEnabled: {_value_text(data.get('runtimeNotificationsEnabled'))}\n"
            f"notificationCount: {_int(data.get('notificationCount'))}\n"
            f"activePopupCount: {_int(data.get('activePopupCount'))}\n"
            f"audioPlaying: {_value_text(data.get('audioPlaying'))}\n"
        )
    if "uuid" in data:
        return f"uuid: {_text(data.get('uuid'))}\n"
    return "ok\n"


def send_request(request: dict, address: Optional[Address] = None) -> dict:
    """Send ``request`` to the app and return its response.

    Connection and protocol failures come back as error responses with the
    codes ``app_not_running`` and ``protocol_error``.
    """
    address = address if address is not None else server_address()
    family = socket.AF_UNIX if isinstance(address, str) else socket.AF_INET
    with socket.socket(family, socket.SOCK_STREAM) as conn:
        conn.settimeout(_CONNECT_TIMEOUT_SECONDS)
        try:
            conn.connect(address)
        except OSError:
            return _error_response("app_not_running", "Smart Alarm is not running")
        conn.settimeout(_RESPONSE_TIMEOUT_SECONDS)
        chunks = []
        try:
            conn.sendall(encode_message(request))
            conn.shutdown(socket.SHUT_WR)
            while chunk := conn.recv(65536):
                chunks.append(chunk)
        except OSError:
            pass
    payload = b"".join(chunks)
    if not payload:
        return _error_response("protocol_error", "No response from Smart Alarm")
    try:
        response = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        response = None
    if not isinstance(response, dict):
        return _error_response("protocol_error", "Invalid response from Smart Alarm")
    return response


def _print_json(response: dict) -> None:
    sys.stdout.write(encode_message(response).decode("utf-8") + "\n")
    sys.stdout.flush()


def _print_error(response: dict) -> None:
    sys.stderr.write(_error_text(response))
    sys.stderr.flush()


def _help_command(arguments: Sequence[str]) -> str:
    first = arguments[0] if arguments else ""
    if first in _HELP_FLAGS:
        return arguments[1] if len(arguments) >= 2 else ""
    return first


def _run_help(arguments: Sequence[str], json_output: bool) -> int:
    command = _help_command(arguments)
    if command and command != "--json":
        entry = help_entry_for(command)
        if entry is None:
            response = _error_response(
                "validation_error",
                f"Unknown CLI command for help: {command}",
                commands=command_names_text(),
            )
            _print_json(response) if json_output else _print_error(response)
            return 1
        if json_output:
            _print_json(help_json(entry))
        else:
            sys.stdout.write(command_help_text(entry))
        return 0
    if json_output:
        _print_json(help_json())
    else:
        sys.stdout.write(general_help_text())
    return 0


def run(arguments: Sequence[str], address: Optional[Address] = None) -> int:
    """Execute one CLI invocation and return the process exit code."""
    arguments = list(arguments)
    json_output = "--json" in arguments
    if not arguments or arguments[0] in _HELP_FLAGS or "--help" in arguments or "-h" in arguments:
        return _run_help(arguments, json_output)

    try:
        parsed = parse_arguments(arguments)
    except UsageError as exc:
        _print_error(_error_response("validation_error", str(exc)))
        return 1

    response = send_request({"command": parsed.command, "options": parsed.options}, address)
    if parsed.json_output:
        _print_json(response)
    elif response.get("ok") is True:
        sys.stdout.write(format_human(parsed.command, response))
    else:
        _print_error(response)
    if response.get("ok") is True:
        return 0
    return exit_code_for_error(_text(_dict(response.get("error")).get("code")))


def main(argv: Optional[Sequence[str]] = None) -> int:
    arguments = list(sys.argv[1:] if argv is None else argv)
    if arguments and arguments[0] == "cli":
        arguments.pop(0)
    return run(arguments)