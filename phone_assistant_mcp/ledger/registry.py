"""In-memory registry of calls keyed by call id."""

import logging
import threading
from typing import Callable, Dict, List, Optional, Union

from phone_assistant_mcp.models.call_models import CallState, CallStatus, utc_now
from phone_assistant_mcp.utils.exceptions import DuplicateCallIdError

logger = logging.getLogger(__name__)


class CallRegistry:
    """
    Map of call id to current call status.

    Every public method holds the registry lock for its whole duration and
    hands out copies, so callers never share a record with the registry.
    No transition rules are enforced here.
    """

    def __init__(self):
        self._calls: Dict[str, CallStatus] = {}
        self._lock = threading.Lock()

    def register(self, call_id: str, usuario: str, telefono: str, proposito: str) -> CallStatus:
        """
        Insert a new call in ``pending`` state.

        Raises:
            DuplicateCallIdError: If the call id is already registered
        """
        now = utc_now()
        with self._lock:
            if call_id in self._calls:
                raise DuplicateCallIdError(call_id)
            entry = CallStatus(
                call_id=call_id,
                status=CallState.PENDING,
                start_time=now,
                last_update=now,
                usuario=usuario,
                telefono=telefono,
                proposito=proposito,
            )
            self._calls[call_id] = entry
            logger.debug(f"Registered call {call_id}")
            return entry.model_copy()

    def get(self, call_id: str) -> Optional[CallStatus]:
        with self._lock:
            entry = self._calls.get(call_id)
            return entry.model_copy() if entry else None

    def update_status(
        self,
        call_id: str,
        status: Union[CallState, str],
        duration: Optional[float] = None
    ) -> Optional[CallStatus]:
        """
        Overwrite the status (and duration, when given) of a call.

        Returns the updated record, or None when the call id is unknown.
        """
        state = CallState(status)
        with self._lock:
            entry = self._calls.get(call_id)
            if entry is None:
                return None
            entry.status = state
            if duration is not None:
                entry.duration = duration
            # lastUpdate never moves backwards
            entry.last_update = max(utc_now(), entry.last_update)
            return entry.model_copy()

    def list(self) -> List[CallStatus]:
        with self._lock:
            return [entry.model_copy() for entry in self._calls.values()]

    def remove(self, call_id: str) -> bool:
        with self._lock:
            return self._calls.pop(call_id, None) is not None

    def remove_where(self, predicate: Callable[[CallStatus], bool]) -> int:
        """Remove every call matching ``predicate`` in one locked pass."""
        with self._lock:
            doomed = [call_id for call_id, entry in self._calls.items() if predicate(entry)]
            for call_id in doomed:
                del self._calls[call_id]
            return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._calls)

    def __contains__(self, call_id: str) -> bool:
        with self._lock:
            return call_id in self._calls
