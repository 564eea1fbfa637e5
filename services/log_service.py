"""
services/log_service.py

Responsibility: Keeps the recent sync activity log in memory and reads it back
for the /api/logs/recent endpoint.
Does NOT: persist anything, manage DNS records, or read configuration.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_DEFAULT_CAPACITY = 500


@dataclass(frozen=True)
class LogEntry:
    """A single line in the sync activity log."""

    message: str
    level: str = "INFO"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class LogService:
    """
    Bounded in-memory activity log shown by the API.

    These entries are separate from Python's standard logging, but every
    entry is mirrored to it so the message also appears in the container
    log stream. Entries are lost on restart; the DNS provider remains the
    only persistent state.
    """

    def __init__(self, capacity: int = _DEFAULT_CAPACITY) -> None:
        """
        Args:
            capacity: Maximum number of entries kept; the oldest are dropped first.
        """
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    # ---------------------------------------------------------------------------
    # Write operations
    # ---------------------------------------------------------------------------

    def log(self, message: str, level: str = "INFO") -> LogEntry:
        """
        Records a single activity entry and mirrors it to Python logging.

        Args:
            message: The human-readable log message.
            level: Log severity string ("INFO", "WARNING", "ERROR").

        Returns:
            The stored LogEntry.
        """
        entry = LogEntry(message=message, level=level.upper())
        self._entries.append(entry)

        _level_int = getattr(logging, entry.level, logging.INFO)
        logger.log(_level_int, message)

        return entry

    # ---------------------------------------------------------------------------
    # Read operations
    # ---------------------------------------------------------------------------

    def get_recent(self, limit: int = 100) -> list[LogEntry]:
        """
        Returns the most recent entries, newest first.

        Args:
            limit: Maximum number of entries to return.
        """
        if limit <= 0:
            return []
        return list(reversed(self._entries))[:limit]

    def get_by_level(self, level: str, limit: int = 100) -> list[LogEntry]:
        """
        Returns the most recent entries of one severity, newest first.

        Args:
            level: The severity level to filter by (e.g. "ERROR").
            limit: Maximum number of entries to return.
        """
        wanted = level.upper()
        return [e for e in reversed(self._entries) if e.level == wanted][:limit]
