"""Shared fixtures for stepwise tests."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest

from stepwise.dispatch import WorkflowDispatcher
from stepwise.execute import StepExecutor
from stepwise.persistence import InMemoryDefinitionRepository
from stepwise.store import WorkflowStore


class RecordingTool:
    """Tool collaborator that echoes parameters and can be told to fail.

    ``fail_on`` names tools that always raise; ``flaky`` maps tool names to
    the number of calls that raise before the tool starts succeeding.
    """

    def __init__(
        self,
        fail_on: Iterable[str] = (),
        flaky: Optional[Dict[str, int]] = None,
    ) -> None:
        self.fail_on = set(fail_on)
        self.flaky = dict(flaky or {})
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    async def __call__(self, name: str, parameters: Dict[str, Any]) -> Any:
        self.calls.append((name, parameters))
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")
        if self.flaky.get(name, 0) > 0:
            self.flaky[name] -= 1
            raise RuntimeError(f"{name} is flaky")
        return {"echo": parameters}

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.calls]


def tool_step(step_id: str, tool: str = "echo", **extra: Any) -> Dict[str, Any]:
    return {"id": step_id, "name": step_id, "type": "tool", "tool": tool, **extra}


def workflow_doc(workflow_id: str, steps: List[Dict[str, Any]], **extra: Any) -> Dict[str, Any]:
    return {
        "id": workflow_id,
        "name": workflow_id.replace("-", " ").title(),
        "description": f"Test workflow {workflow_id}",
        "steps": steps,
        **extra,
    }


@pytest.fixture
def tool() -> RecordingTool:
    return RecordingTool()


@pytest.fixture
def repository() -> InMemoryDefinitionRepository:
    return InMemoryDefinitionRepository()


@pytest.fixture
def store(repository: InMemoryDefinitionRepository) -> WorkflowStore:
    return WorkflowStore(repository)


@pytest.fixture
def dispatcher(store: WorkflowStore) -> WorkflowDispatcher:
    return WorkflowDispatcher(store, executor=StepExecutor(default_delay_ms=10))
