"""Structured event logging for narrative and debugging."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Optional, TextIO


@dataclass
class LogEntry:
    """A single log entry."""

    day: int
    category: str
    message: str
    character_ids: list[str] = field(default_factory=list)
    data: dict = field(default_factory=dict)


class SimLogger:
    """Structured logging with categories and verbosity control."""

    # Category constants
    LIFECYCLE = "LIFECYCLE"
    EVENT = "EVENT"
    WARNING = "WARNING"
    WEATHER = "WEATHER"
    MEDICAL = "MEDICAL"
    ACTIVITY = "ACTIVITY"
    ECONOMY = "ECONOMY"
    DEBUG = "DEBUG"

    _VERBOSITY_MAP: dict[str, int] = {
        LIFECYCLE: 0,
        EVENT: 0,
        WARNING: 0,
        WEATHER: 1,
        MEDICAL: 1,
        ACTIVITY: 2,
        ECONOMY: 2,
        DEBUG: 3,
    }

    def __init__(
        self,
        verbosity: int = 1,
        log_file: Optional[str] = None,
        stdout: bool = True,
    ) -> None:
        """
        verbosity levels:
            0 = lifecycle, chronicle events and warnings
            1 = + weather and medical
            2 = + activity and economy
            3 = everything (debug)
        """
        self.verbosity = verbosity
        self.current_day: int = 0
        self._buffer: list[LogEntry] = []
        self._all_entries: list[LogEntry] = []
        self._file: Optional[TextIO] = None
        self._stdout = stdout

        if log_file:
            os.makedirs(os.path.dirname(log_file) if os.path.dirname(log_file) else ".", exist_ok=True)
            self._file = open(log_file, "w", encoding="utf-8")

    def log(
        self,
        category: str,
        message: str,
        character_ids: Optional[list[str]] = None,
        day: Optional[int] = None,
        **data,
    ) -> None:
        """Log an event. Without an explicit day the current simulation day is used."""
        entry = LogEntry(
            day=self.current_day if day is None else day,
            category=category,
            message=message,
            character_ids=character_ids or [],
            data=data,
        )
        self._buffer.append(entry)

    def flush_day(self, day: int) -> None:
        """Write buffered logs for the day."""
        for entry in self._buffer:
            required_verbosity = self._VERBOSITY_MAP.get(entry.category, 1)
            if required_verbosity <= self.verbosity:
                line = f"[Day {entry.day:>4}] [{entry.category:<9}] {entry.message}"
                if self._stdout:
                    print(line)
                if self._file:
                    self._file.write(line + "\n")

        self._all_entries.extend(self._buffer)
        self._buffer.clear()

        if self._file:
            self._file.flush()

    @property
    def entries(self) -> list[LogEntry]:
        """Flushed entries followed by anything still buffered."""
        return self._all_entries + self._buffer

    def entries_for(self, category: str) -> list[LogEntry]:
        return [e for e in self.entries if e.category == category]

    def get_narrative(self, day: int) -> str:
        """Generate a human-readable summary of a specific day."""
        day_entries = [e for e in self.entries if e.day == day]
        if not day_entries:
            return f"Day {day}: Nothing notable happened."

        lines = [f"=== Day {day} ==="]
        for entry in day_entries:
            lines.append(f"  [{entry.category}] {entry.message}")
        return "\n".join(lines)

    def export_json(self, filepath: str) -> None:
        """Export all log entries to JSON."""
        os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)
        data = [
            {
                "day": e.day,
                "category": e.category,
                "message": e.message,
                "character_ids": e.character_ids,
                "data": e.data,
            }
            for e in self.entries
        ]
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)

    def close(self) -> None:
        """Close the log file."""
        if self._file:
            self._file.close()
            self._file = None
