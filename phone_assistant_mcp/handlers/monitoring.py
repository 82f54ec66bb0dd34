"""Monitoring handlers: metrics, history, active calls, health and logs."""

import logging
from typing import Any, Dict, List, Union, get_args

from phone_assistant_mcp.ledger import CallLedger
from phone_assistant_mcp.models.call_models import LogComponent, LogLevel, utc_now

from .calls import int_arg

logger = logging.getLogger(__name__)

LOG_LEVELS = get_args(LogLevel)
LOG_COMPONENTS = get_args(LogComponent)


class MonitoringHandlers:
    """Handlers for read-only monitoring operations."""

    def __init__(self, ledger: CallLedger, phone_client):
        """Initialize handlers.

        Args:
            ledger: CallLedger holding call state
            phone_client: PhoneClient used for the upstream health check
        """
        self.ledger = ledger
        self.client = phone_client

    async def get_metrics(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Aggregated call metrics plus the overall success rate (percent)."""
        metrics = self.ledger.compute_metrics()
        result = metrics.to_dict()

        success_rate = (
            metrics.successful_calls / metrics.total_calls * 100
            if metrics.total_calls > 0 else 0
        )
        result["successRate"] = round(success_rate, 2)
        return result

    async def get_conversation_history(self, args: Dict[str, Any]) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
        """Recent conversation results, most recent first."""
        limit = int_arg(args, "limit", 20)
        if limit is None:
            return {"error": "Invalid parameter: limit must be an integer"}

        return [result.to_dict() for result in self.ledger.recent_results(limit)]

    async def get_active_calls(self, args: Dict[str, Any]) -> List[Dict[str, Any]]:
        """All calls currently held in the registry."""
        return [call.to_dict() for call in self.ledger.list_calls()]

    async def health_check(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Health of this server and of the phone assistant API."""
        result: Dict[str, Any] = {}
        try:
            healthy = await self.client.health_check()
        except Exception as e:
            logger.exception("Phone assistant health check raised")
            healthy = False
            result["lastError"] = str(e)

        result.update({
            "status": "healthy" if healthy else "unhealthy",
            "phoneAssistant": healthy,
            "activeCalls": self.ledger.active_call_count(),
            "timestamp": utc_now().isoformat(),
        })
        return result

    async def get_logs(self, args: Dict[str, Any]) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
        """System log entries, newest first, optionally filtered by level and component."""
        limit = int_arg(args, "limit", 50)
        if limit is None:
            return {"error": "Invalid parameter: limit must be an integer"}

        level = args.get("level")
        component = args.get("component")
        if level and level not in LOG_LEVELS:
            return {"error": f"Invalid parameter: level must be one of {', '.join(LOG_LEVELS)}"}
        if component and component not in LOG_COMPONENTS:
            return {"error": f"Invalid parameter: component must be one of {', '.join(LOG_COMPONENTS)}"}

        entries = self.ledger.query_logs(limit, level=level or None, component=component or None)
        return [entry.to_dict() for entry in entries]

    async def get_last_result(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Last processed conversation result for a call."""
        call_id = args.get("callId")
        if not call_id:
            return {"error": "Missing required parameter: callId"}

        result = self.ledger.find_result(call_id)
        if result is None:
            return {"found": False}

        return {
            "found": True,
            "response_for_user": result.response_for_user,
            "actions_taken": result.actions_taken or [],
            "processed_at": result.processed_at.isoformat(),
        }
