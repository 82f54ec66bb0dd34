"""Unit tests for the retention sweeper."""

import asyncio
from datetime import timedelta

import pytest

from phone_assistant_mcp.ledger import CallLedger
from phone_assistant_mcp.models.call_models import CallState, ConversationProcessingResult, utc_now

LATER = timedelta(days=2)


@pytest.fixture
def ledger():
    return CallLedger(max_logs=1000, max_history=500)


def test_event_log_capped_to_most_recent(ledger):
    for i in range(1001):
        ledger.log_event("info", "mcp", f"event_{i}")

    report = ledger.sweep()

    assert report.logs_removed == 1
    assert ledger.log_count() == 1000
    actions = {e.action for e in ledger.query_logs(limit=1000)}
    assert "event_0" not in actions
    assert "event_1000" in actions


def test_archive_capped(ledger):
    for i in range(510):
        ledger.archive_result(ConversationProcessingResult(
            call_id=f"call_{i}", success=True, processed=True, response_for_user="ok"
        ))

    report = ledger.sweep()

    assert report.history_removed == 10
    assert ledger.result_count() == 500
    assert ledger.recent_results(1)[0].call_id == "call_509"


def test_only_old_finished_calls_removed(ledger):
    for call_id, status in [
        ("done", CallState.COMPLETED),
        ("failed", CallState.FAILED),
        ("cancelled", CallState.CANCELLED),
        ("timeout", CallState.TIMEOUT),
        ("ringing", CallState.RINGING),
    ]:
        ledger.register_call(call_id, "Ana", "1", "a")
        ledger.update_call_status(call_id, status)
    ledger.register_call("pending", "Ana", "1", "a")

    # Nothing is old enough yet
    assert ledger.sweep().calls_removed == 0

    report = ledger.sweep(now=utc_now() + LATER)

    assert report.calls_removed == 3
    remaining = {c.call_id for c in ledger.list_calls()}
    assert remaining == {"timeout", "ringing", "pending"}


def test_sweep_is_idempotent(ledger):
    ledger.register_call("done", "Ana", "1", "a")
    ledger.update_call_status("done", CallState.COMPLETED)
    for i in range(1005):
        ledger.log_event("info", "mcp", f"event_{i}")

    now = utc_now() + LATER
    ledger.sweep(now=now)
    second = ledger.sweep(now=now)

    assert (second.calls_removed, second.logs_removed, second.history_removed) == (0, 0, 0)
    assert ledger.log_count() == 1000


def test_concurrent_sweep_is_skipped(ledger):
    sweeper = ledger.sweeper
    sweeper._running.acquire()
    try:
        report = ledger.sweep()
    finally:
        sweeper._running.release()

    assert report.skipped is True
    assert ledger.sweep().skipped is False


@pytest.mark.asyncio
async def test_run_periodically_sweeps_until_cancelled(ledger):
    ledger.register_call("done", "Ana", "1", "a")
    ledger.update_call_status("done", CallState.COMPLETED)

    task = asyncio.create_task(ledger.sweeper.run_periodically(0.01, max_age_seconds=-1))
    await asyncio.sleep(0.1)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert ledger.get_call("done") is None
