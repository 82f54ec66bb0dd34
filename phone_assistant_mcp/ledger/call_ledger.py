"""Process-wide call ledger: registry, event log, archive, metrics and retention."""

from datetime import datetime
from typing import List, Optional, Union

from phone_assistant_mcp.models.call_models import (
    CallMetrics,
    CallState,
    CallStatus,
    ConversationProcessingResult,
    Details,
    LogComponent,
    LogLevel,
    SystemLogEntry,
)

from .archive import ConversationArchive
from .event_log import EventLog
from .metrics import MetricsAggregator
from .registry import CallRegistry
from .sweeper import (
    DEFAULT_MAX_AGE_SECONDS,
    DEFAULT_MAX_HISTORY,
    DEFAULT_MAX_LOGS,
    RetentionSweeper,
    SweepReport,
)


class CallLedger:
    """
    Owns all in-memory call state.

    The rest of the server reaches the registry, event log and archive only
    through the operations below.
    """

    def __init__(self, max_logs: int = DEFAULT_MAX_LOGS, max_history: int = DEFAULT_MAX_HISTORY):
        self._registry = CallRegistry()
        self._events = EventLog()
        self._archive = ConversationArchive()
        self._metrics = MetricsAggregator(self._registry, self._archive)
        self._sweeper = RetentionSweeper(
            self._registry,
            self._events,
            self._archive,
            max_logs=max_logs,
            max_history=max_history,
        )

    @property
    def sweeper(self) -> RetentionSweeper:
        return self._sweeper

    # Registry

    def register_call(self, call_id: str, usuario: str, telefono: str, proposito: str) -> CallStatus:
        return self._registry.register(call_id, usuario, telefono, proposito)

    def get_call(self, call_id: str) -> Optional[CallStatus]:
        return self._registry.get(call_id)

    def update_call_status(
        self,
        call_id: str,
        status: Union[CallState, str],
        duration: Optional[float] = None,
    ) -> Optional[CallStatus]:
        return self._registry.update_status(call_id, status, duration)

    def list_calls(self) -> List[CallStatus]:
        return self._registry.list()

    def remove_call(self, call_id: str) -> bool:
        return self._registry.remove(call_id)

    def active_call_count(self) -> int:
        return len(self._registry)

    # Event log

    def log_event(
        self,
        level: LogLevel,
        component: LogComponent,
        action: str,
        details: Optional[Details] = None,
        call_id: Optional[str] = None,
    ) -> SystemLogEntry:
        return self._events.record(level, component, action, details, call_id)

    def query_logs(
        self,
        limit: int = 100,
        level: Optional[str] = None,
        component: Optional[str] = None,
    ) -> List[SystemLogEntry]:
        return self._events.query(limit, level, component)

    def log_count(self) -> int:
        return len(self._events)

    # Archive

    def archive_result(self, result: ConversationProcessingResult) -> None:
        self._archive.append(result)

    def recent_results(self, limit: int = 50) -> List[ConversationProcessingResult]:
        return self._archive.recent(limit)

    def find_result(self, call_id: str) -> Optional[ConversationProcessingResult]:
        return self._archive.find_by_call_id(call_id)

    def result_count(self) -> int:
        return len(self._archive)

    # Metrics and retention

    def compute_metrics(self, now: Optional[datetime] = None) -> CallMetrics:
        return self._metrics.compute(now)

    def sweep(
        self,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        now: Optional[datetime] = None,
    ) -> SweepReport:
        return self._sweeper.sweep(max_age_seconds, now)
