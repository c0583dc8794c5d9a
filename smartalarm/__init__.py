"""Reminder and alarm engine: schedules, sound patterns and tone synthesis, a command server and client."""

__version__ = "0.1.0"