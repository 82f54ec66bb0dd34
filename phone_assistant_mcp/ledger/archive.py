"""Bounded history of processed conversation results."""

import threading
from typing import List, Optional

from phone_assistant_mcp.models.call_models import ConversationProcessingResult

# find_by_call_id only looks this far back
SCAN_LIMIT = 100


class ConversationArchive:
    """Append-only history; storage order is callback arrival order."""

    def __init__(self):
        self._results: List[ConversationProcessingResult] = []
        self._lock = threading.Lock()

    def append(self, result: ConversationProcessingResult) -> None:
        with self._lock:
            self._results.append(result)

    def recent(self, limit: int = 50) -> List[ConversationProcessingResult]:
        """Last ``limit`` results, most recent first."""
        if limit <= 0:
            return []
        with self._lock:
            tail = self._results[-limit:]
        return [r.model_copy() for r in reversed(tail)]

    def find_by_call_id(self, call_id: str) -> Optional[ConversationProcessingResult]:
        """
        Latest result for ``call_id`` among the most recent SCAN_LIMIT entries.

        Older results are not found even though they are still stored.
        """
        for result in self.recent(SCAN_LIMIT):
            if result.call_id == call_id:
                return result
        return None

    def snapshot(self) -> List[ConversationProcessingResult]:
        """All results in storage order."""
        with self._lock:
            return [r.model_copy() for r in self._results]

    def trim(self, max_entries: int) -> int:
        with self._lock:
            excess = len(self._results) - max_entries
            if excess <= 0:
                return 0
            del self._results[:excess]
            return excess

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
