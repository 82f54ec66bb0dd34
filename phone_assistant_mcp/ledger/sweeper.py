"""Retention policy for the call ledger containers."""

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from phone_assistant_mcp.models.call_models import CallState, CallStatus, utc_now

from .archive import ConversationArchive
from .event_log import EventLog
from .registry import CallRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 24 * 60 * 60
DEFAULT_MAX_LOGS = 1000
DEFAULT_MAX_HISTORY = 500

# Timed-out calls are kept; only these are swept
SWEEPABLE_STATES = frozenset({CallState.COMPLETED, CallState.FAILED, CallState.CANCELLED})


@dataclass
class SweepReport:
    """What a single sweep removed."""
    calls_removed: int = 0
    logs_removed: int = 0
    history_removed: int = 0
    skipped: bool = False


class RetentionSweeper:
    """Trims the registry, event log and archive. Never runs concurrently with itself."""

    def __init__(
        self,
        registry: CallRegistry,
        event_log: EventLog,
        archive: ConversationArchive,
        max_logs: int = DEFAULT_MAX_LOGS,
        max_history: int = DEFAULT_MAX_HISTORY,
    ):
        self.registry = registry
        self.event_log = event_log
        self.archive = archive
        self.max_logs = max_logs
        self.max_history = max_history
        self._running = threading.Lock()

    def sweep(
        self,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        now: Optional[datetime] = None,
    ) -> SweepReport:
        """
        Run one retention pass.

        Removes finished calls whose last update is older than
        ``max_age_seconds``, then drops the oldest log and history entries
        beyond their caps. A call made while another sweep is running
        returns immediately with ``skipped=True``.
        """
        if not self._running.acquire(blocking=False):
            logger.warning("Sweep already in progress, skipping")
            return SweepReport(skipped=True)

        try:
            cutoff = (now or utc_now()) - timedelta(seconds=max_age_seconds)

            def expired(call: CallStatus) -> bool:
                return CallState(call.status) in SWEEPABLE_STATES and call.last_update < cutoff

            report = SweepReport(
                calls_removed=self.registry.remove_where(expired),
                logs_removed=self.event_log.trim(self.max_logs),
                history_removed=self.archive.trim(self.max_history),
            )

            if report.calls_removed or report.logs_removed or report.history_removed:
                logger.info(
                    f"🧹 Sweep removed {report.calls_removed} calls, "
                    f"{report.logs_removed} logs, {report.history_removed} results"
                )
            return report
        finally:
            self._running.release()

    async def run_periodically(
        self,
        interval_seconds: float,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
    ) -> None:
        """Sweep every ``interval_seconds`` until cancelled."""
        logger.info(f"Retention sweeper started (every {interval_seconds}s)")
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                self.sweep(max_age_seconds)
            except Exception:
                logger.exception("Retention sweep failed")
