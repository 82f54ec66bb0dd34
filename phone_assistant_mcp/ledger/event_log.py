"""Bounded, append-only log of system events."""

import json
import logging
import threading
from typing import List, Optional

from phone_assistant_mcp.models.call_models import Details, LogComponent, LogLevel, SystemLogEntry, utc_now
from phone_assistant_mcp.utils.ids import generate_id

logger = logging.getLogger(__name__)

_PY_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class EventLog:
    """System event log queried by the ``phone_get_logs`` tool."""

    def __init__(self):
        self._entries: List[SystemLogEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: SystemLogEntry) -> SystemLogEntry:
        """Append an entry, assigning ``id`` and ``timestamp`` when absent."""
        if entry.id is None:
            entry.id = generate_id()
        if entry.timestamp is None:
            entry.timestamp = utc_now()

        with self._lock:
            self._entries.append(entry)

        logger.log(
            _PY_LEVELS[entry.level],
            f"[{entry.component}] {entry.action} {json.dumps(entry.details, default=str)}",
            extra={"event_id": entry.id, "event_call_id": entry.call_id},
        )
        return entry

    def record(
        self,
        level: LogLevel,
        component: LogComponent,
        action: str,
        details: Optional[Details] = None,
        call_id: Optional[str] = None,
    ) -> SystemLogEntry:
        """Build and append an entry in one step."""
        return self.append(SystemLogEntry(
            level=level,
            component=component,
            action=action,
            details=details or {},
            call_id=call_id,
        ))

    def query(
        self,
        limit: int = 100,
        level: Optional[str] = None,
        component: Optional[str] = None,
    ) -> List[SystemLogEntry]:
        """
        Return entries most recent first.

        Filters are applied over the whole log before truncating to ``limit``,
        so a filtered query returns the newest ``limit`` matching entries.
        """
        if limit <= 0:
            return []

        with self._lock:
            snapshot = list(self._entries)

        # Newest appended first, then a stable sort keeps that order for equal timestamps
        ordered = sorted(reversed(snapshot), key=lambda e: e.timestamp, reverse=True)

        if level:
            ordered = [e for e in ordered if e.level == level]
        if component:
            ordered = [e for e in ordered if e.component == component]

        return [e.model_copy() for e in ordered[:limit]]

    def trim(self, max_entries: int) -> int:
        """Discard the oldest entries beyond ``max_entries``. Returns how many were dropped."""
        with self._lock:
            excess = len(self._entries) - max_entries
            if excess <= 0:
                return 0
            del self._entries[:excess]
            return excess

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
