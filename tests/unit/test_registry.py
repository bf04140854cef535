"""Execution registry tests."""

from datetime import datetime, timedelta, timezone

from stepwise.contracts import Execution, ExecutionStatus
from stepwise.events import EXECUTION_CANCELLED, EXECUTION_STARTED, EventBus
from stepwise.registry import ExecutionRegistry

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _execution(index: int, status=ExecutionStatus.COMPLETED) -> Execution:
    return Execution(
        id=f"exec_{index}",
        workflow_id="wf",
        status=status,
        start_time=BASE_TIME + timedelta(seconds=index),
    )


def test_register_get_and_list():
    registry = ExecutionRegistry()
    execution = _execution(1)
    registry.register(execution)

    assert registry.get("exec_1") is execution
    assert registry.get("missing") is None
    assert registry.list() == [execution]


def test_retention_keeps_most_recently_started():
    registry = ExecutionRegistry()
    for index in range(1005):
        registry.register(_execution(index))
        registry.retain()
        assert len(registry) <= 1000

    retained = {e.id for e in registry.list()}
    assert retained == {f"exec_{i}" for i in range(5, 1005)}


def test_retention_uses_start_time_not_insertion_order():
    registry = ExecutionRegistry(max_executions=2)
    registry.register(_execution(5))
    registry.register(_execution(1))
    registry.register(_execution(9))

    assert registry.retain() == ["exec_1"]
    assert {e.id for e in registry.list()} == {"exec_5", "exec_9"}


def test_cancel_running_execution():
    events = EventBus()
    cancelled = []
    events.subscribe(EXECUTION_CANCELLED, cancelled.append)
    registry = ExecutionRegistry(events=events)
    execution = _execution(1, status=ExecutionStatus.RUNNING)
    registry.register(execution)

    registry.cancel("exec_1")

    assert execution.status == ExecutionStatus.PAUSED
    assert execution.end_time is not None
    assert execution.logs[-1].message == "Execution cancelled"
    assert cancelled == [execution]


def test_cancel_is_noop_for_terminal_or_unknown():
    registry = ExecutionRegistry()
    execution = _execution(1, status=ExecutionStatus.COMPLETED)
    registry.register(execution)

    registry.cancel("exec_1")
    registry.cancel("missing")

    assert execution.status == ExecutionStatus.COMPLETED
    assert execution.end_time is None


def test_register_emits_started():
    events = EventBus()
    started = []
    events.subscribe(EXECUTION_STARTED, started.append)
    registry = ExecutionRegistry(events=events)
    registry.register(_execution(1))
    assert [e.id for e in started] == ["exec_1"]
