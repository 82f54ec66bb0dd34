"""In-memory call ledger."""

from .archive import ConversationArchive, SCAN_LIMIT
from .call_ledger import CallLedger
from .correlator import CallCorrelator
from .event_log import EventLog
from .metrics import MetricsAggregator
from .registry import CallRegistry
from .sweeper import RetentionSweeper, SweepReport

__all__ = [
    "CallLedger",
    "CallCorrelator",
    "CallRegistry",
    "EventLog",
    "ConversationArchive",
    "MetricsAggregator",
    "RetentionSweeper",
    "SweepReport",
    "SCAN_LIMIT",
]
