"""Unit tests for the call registry."""

import pytest

from phone_assistant_mcp.ledger import CallRegistry
from phone_assistant_mcp.models.call_models import CallState
from phone_assistant_mcp.utils.exceptions import DuplicateCallIdError


@pytest.fixture
def registry():
    return CallRegistry()


def test_register_creates_pending_entry(registry):
    entry = registry.register("call_1", "Ana", "+34600111222", "Confirmar cita")

    assert entry.status == CallState.PENDING
    assert entry.start_time is not None
    assert entry.last_update >= entry.start_time
    assert entry.duration is None
    assert "call_1" in registry
    assert len(registry) == 1


def test_register_duplicate_raises(registry):
    registry.register("call_1", "Ana", "+34600111222", "Confirmar cita")

    with pytest.raises(DuplicateCallIdError):
        registry.register("call_1", "Luis", "+34600333444", "Otra")

    assert registry.get("call_1").usuario == "Ana"


def test_get_returns_copy(registry):
    registry.register("call_1", "Ana", "+34600111222", "Confirmar cita")

    entry = registry.get("call_1")
    entry.status = CallState.FAILED

    assert registry.get("call_1").status == CallState.PENDING


def test_get_unknown_returns_none(registry):
    assert registry.get("missing") is None


def test_update_status_sets_duration_and_monotonic_last_update(registry):
    created = registry.register("call_1", "Ana", "+34600111222", "Confirmar cita")

    updated = registry.update_status("call_1", "completed", 42.0)

    assert updated.status == CallState.COMPLETED
    assert updated.duration == 42.0
    assert updated.last_update >= created.last_update


def test_update_status_keeps_duration_when_not_given(registry):
    registry.register("call_1", "Ana", "+34600111222", "Confirmar cita")
    registry.update_status("call_1", CallState.IN_PROGRESS, 10.0)

    updated = registry.update_status("call_1", CallState.COMPLETED)

    assert updated.duration == 10.0


def test_update_status_unknown_call(registry):
    assert registry.update_status("missing", CallState.COMPLETED) is None
    assert len(registry) == 0


def test_remove_and_remove_where(registry):
    registry.register("call_1", "Ana", "1", "a")
    registry.register("call_2", "Luis", "2", "b")
    registry.register("call_3", "Eva", "3", "c")
    registry.update_status("call_2", CallState.FAILED)

    assert registry.remove("call_1") is True
    assert registry.remove("call_1") is False

    removed = registry.remove_where(lambda c: c.status == CallState.FAILED)

    assert removed == 1
    assert [c.call_id for c in registry.list()] == ["call_3"]


def test_ledger_remove_call(ledger):
    ledger.register_call("call_1", "Ana", "1", "a")

    assert ledger.active_call_count() == 1
    assert ledger.remove_call("call_1") is True
    assert ledger.get_call("call_1") is None
    assert ledger.remove_call("call_1") is False
    assert ledger.active_call_count() == 0
