"""Call metrics derived from the registry and the conversation archive."""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from phone_assistant_mcp.models.call_models import (
    CallMetrics,
    CallState,
    CallStatus,
    DailyStats,
    PurposeCount,
    utc_now,
)

from .archive import ConversationArchive
from .registry import CallRegistry

DAILY_WINDOW_DAYS = 7
TOP_PURPOSES = 5


def _mean_duration(calls: List[CallStatus]) -> float:
    durations = [c.duration for c in calls if c.duration is not None]
    if not durations:
        return 0
    return sum(durations) / len(durations)


def _utc_date(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date().isoformat()


class MetricsAggregator:
    """Read-only statistics over the live registry plus archived conversations."""

    def __init__(self, registry: CallRegistry, archive: ConversationArchive):
        self.registry = registry
        self.archive = archive

    def population(self) -> List[CallStatus]:
        """
        Registry entries followed by one synthetic ``completed`` record per
        archived result, so calls already swept from the registry still count.
        """
        calls = self.registry.list()
        for result in self.archive.snapshot():
            calls.append(CallStatus(
                call_id=result.call_id,
                status=CallState.COMPLETED,
                last_update=result.processed_at,
            ))
        return calls

    def compute(self, now: Optional[datetime] = None) -> CallMetrics:
        now = now or utc_now()
        calls = self.population()

        calls_by_status: Dict[str, int] = {}
        for call in calls:
            key = CallState(call.status).value
            calls_by_status[key] = calls_by_status.get(key, 0) + 1

        daily_stats = []
        for days_ago in range(DAILY_WINDOW_DAYS - 1, -1, -1):
            day = _utc_date(now - timedelta(days=days_ago))
            day_calls = [c for c in calls if _utc_date(c.last_update) == day]
            completed = sum(1 for c in day_calls if c.status == CallState.COMPLETED)
            daily_stats.append(DailyStats(
                date=day,
                calls=len(day_calls),
                success_rate=completed / len(day_calls) * 100 if day_calls else 0,
                average_duration=_mean_duration(day_calls),
            ))

        # Counter keeps first-seen order, and most_common is stable on ties
        purposes = Counter(c.proposito for c in calls if c.proposito)
        top_purposes = [
            PurposeCount(proposito=proposito, count=count)
            for proposito, count in purposes.most_common(TOP_PURPOSES)
        ]

        return CallMetrics(
            total_calls=len(calls),
            successful_calls=calls_by_status.get(CallState.COMPLETED.value, 0),
            failed_calls=calls_by_status.get(CallState.FAILED.value, 0),
            average_duration=_mean_duration(calls),
            calls_by_status=calls_by_status,
            daily_stats=daily_stats,
            top_purposes=top_purposes,
        )
