"""Workflow dispatcher: starts runs and drives them to a terminal state."""

from __future__ import annotations

import asyncio
import copy
import logging
import re
import time
import uuid
from typing import Any, Dict, List, Optional

from .config import StepwiseConfig, load_config
from .contracts import (
    ArgumentSpec,
    ConditionStep,
    Execution,
    ExecutionStatus,
    Step,
    StepOutcome,
    WorkflowDefinition,
)
from .errors import (
    InvalidArgumentError,
    MissingArgumentError,
    RetriesExhaustedError,
    StepFailure,
    UnknownStepError,
    WorkflowNotFoundError,
)
from .events import EXECUTION_COMPLETED, EXECUTION_FAILED, EventBus
from .execute import RunContext, StepExecutor
from .persistence import DefinitionRepository, get_repository
from .registry import ExecutionRegistry
from .store import WorkflowStore
from .templates import DEFAULT_TEMPLATES
from .tools import ToolCaller

logger = logging.getLogger(__name__)

_ARGUMENT_TYPES = {
    "string": (str,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list, tuple),
    "object": (dict,),
}


def new_execution_id() -> str:
    return f"exec_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _check_argument(workflow_id: str, spec: ArgumentSpec, value: Any) -> None:
    if value is None:
        return
    expected = _ARGUMENT_TYPES[spec.type]
    if not isinstance(value, expected) or (
        spec.type == "number" and isinstance(value, bool)
    ):
        raise InvalidArgumentError(
            workflow_id, spec.name, f"expected {spec.type}, got {type(value).__name__}"
        )
    if spec.validation and isinstance(value, str) and not re.search(spec.validation, value):
        raise InvalidArgumentError(
            workflow_id, spec.name, f"does not match {spec.validation!r}"
        )


def resolve_arguments(
    workflow: WorkflowDefinition, arguments: Dict[str, Any]
) -> Dict[str, Any]:
    """Check supplied arguments and fill in declared defaults.

    Raises:
        MissingArgumentError: If a required argument is absent.
        InvalidArgumentError: If a value has the wrong type or fails validation.
    """
    resolved: Dict[str, Any] = {}
    for spec in workflow.arguments:
        if spec.name in arguments:
            _check_argument(workflow.id, spec, arguments[spec.name])
        elif spec.required:
            raise MissingArgumentError(workflow.id, spec.name)
        elif spec.default_value is not None:
            resolved[spec.name] = copy.deepcopy(spec.default_value)
    resolved.update(arguments)
    return resolved


class WorkflowDispatcher:
    """Service responsible for starting and driving workflow executions."""

    def __init__(
        self,
        store: WorkflowStore,
        registry: Optional[ExecutionRegistry] = None,
        executor: Optional[StepExecutor] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.events = events or EventBus()
        self.store = store
        self.registry = registry or ExecutionRegistry(events=self.events)
        self.executor = executor or StepExecutor()
        self._tasks: Dict[str, asyncio.Task] = {}

    @classmethod
    async def from_config(
        cls,
        config: Optional[StepwiseConfig] = None,
        repository: Optional[DefinitionRepository] = None,
    ) -> "WorkflowDispatcher":
        """Build the store, registry and executor once for the whole process."""
        config = config or load_config()
        events = EventBus()
        store = WorkflowStore(
            repository or get_repository(config),
            events=events,
            strict_references=config.engine.strict_references,
        )
        await store.load()
        if config.storage.install_defaults:
            await store.install_defaults(DEFAULT_TEMPLATES)
        registry = ExecutionRegistry(config.engine.max_executions, events=events)
        executor = StepExecutor(default_delay_ms=config.engine.default_delay_ms)
        return cls(store, registry, executor, events)

    # ------------------------------------------------------------------
    # Public API
    async def execute_workflow(
        self,
        workflow_id: str,
        arguments: Optional[Dict[str, Any]] = None,
        call_tool: Optional[ToolCaller] = None,
    ) -> str:
        """Start a run and return its execution ID without waiting for it.

        Args:
            workflow_id: ID of a workflow known to the store.
            arguments: Run arguments; override workflow variables on collision.
            call_tool: Collaborator invoked by ``tool`` and ``loop`` steps.

        Raises:
            WorkflowNotFoundError: If the workflow is unknown.
            MissingArgumentError: If a required argument is absent.
            InvalidArgumentError: If an argument fails its declared contract.
        """
        workflow = self.store.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)

        variables = copy.deepcopy(workflow.variables)
        variables.update(resolve_arguments(workflow, dict(arguments or {})))

        execution = Execution(
            id=new_execution_id(),
            workflow_id=workflow.id,
            current_step=workflow.first_step.id,
            variables=variables,
        )
        self.registry.register(execution)
        execution.log("info", f"Started workflow {workflow.name}")

        run = RunContext(workflow=workflow, execution=execution, call_tool=call_tool)
        task = asyncio.create_task(self._run(run), name=f"stepwise-{execution.id}")
        self._tasks[execution.id] = task
        task.add_done_callback(lambda _: self._tasks.pop(execution.id, None))
        return execution.id

    async def wait(
        self, execution_id: str, timeout: Optional[float] = None
    ) -> Optional[Execution]:
        """Wait for a run to reach a terminal state and return it."""
        task = self._tasks.get(execution_id)
        if task is None:
            return self.registry.get(execution_id)
        return await asyncio.wait_for(asyncio.shield(task), timeout)

    def get_execution(self, execution_id: str) -> Optional[Execution]:
        return self.registry.get(execution_id)

    def list_executions(self) -> List[Execution]:
        return self.registry.list()

    def cancel_execution(self, execution_id: str) -> None:
        self.registry.cancel(execution_id)

    async def close(self) -> None:
        """Abort runs that are still in flight."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Run loop
    async def _run(self, run: RunContext) -> Execution:
        execution = run.execution
        try:
            await self._drive(run)
        except asyncio.CancelledError:
            if execution.is_running:
                execution.log("warning", "Execution task cancelled")
                execution.finish(ExecutionStatus.PAUSED)
            self.registry.retain()
            raise
        except Exception as exc:
            execution.record_error(execution.current_step or "", exc)
            execution.log("error", f"Workflow failed: {exc}")
            execution.finish(ExecutionStatus.FAILED)

        self._conclude(execution)
        self.registry.retain()
        return execution

    async def _drive(self, run: RunContext) -> None:
        execution, workflow = run.execution, run.workflow
        failures: Dict[str, int] = {}

        while execution.current_step and execution.is_running:
            step = workflow.get_step(execution.current_step)
            if step is None:
                raise UnknownStepError(execution.current_step, workflow.id)

            execution.log("info", f"Executing step: {step.name}", step.id)
            try:
                outcome = await self.executor.execute(step, run)
            except UnknownStepError:
                raise
            except Exception as exc:
                await self._handle_failure(run, step, exc, failures)
                continue

            execution.results[step.id] = outcome
            if outcome.success or isinstance(step, ConditionStep):
                failures.pop(step.id, None)
                self._advance(execution, step.next_step(outcome.success))
            else:
                await self._handle_failure(run, step, self._failure_of(outcome), failures)

        if execution.is_running:
            execution.finish(ExecutionStatus.COMPLETED)

    @staticmethod
    def _failure_of(outcome: StepOutcome) -> StepFailure:
        return StepFailure(outcome.error or "Step reported failure")

    @staticmethod
    def _advance(execution: Execution, next_step: Optional[str]) -> None:
        if execution.is_running:
            execution.current_step = next_step

    async def _handle_failure(
        self,
        run: RunContext,
        step: Step,
        error: Exception,
        failures: Dict[str, int],
    ) -> None:
        """Route a failed step through the workflow's error strategy."""
        execution = run.execution
        handling = run.workflow.error_handling

        entry = execution.record_error(step.id, error)
        execution.variables["lastError"] = entry.error
        execution.log("error", f"Step failed: {entry.error}", step.id)
        if not execution.is_running:
            return

        attempts = failures[step.id] = failures.get(step.id, 0) + 1
        budget = step.retry_count or (
            handling.max_retries if handling.strategy == "retry" else 0
        )
        if attempts <= budget:
            execution.log(
                "warning",
                f"Retrying step {step.id} (attempt {attempts + 1} of {budget + 1})",
                step.id,
            )
            if handling.retry_delay:
                await asyncio.sleep(handling.retry_delay / 1000)
            return

        failures.pop(step.id, None)
        if handling.strategy == "retry":
            exhausted = RetriesExhaustedError(step.id, attempts)
            execution.record_error(step.id, exhausted)
            execution.log("error", str(exhausted), step.id)
            execution.finish(ExecutionStatus.FAILED)
        elif handling.strategy == "stop":
            execution.finish(ExecutionStatus.FAILED)
        else:
            self._advance(execution, step.next_step(False))

    def _conclude(self, execution: Execution) -> None:
        execution.log("info", f"Workflow {execution.status.value}")
        if execution.status == ExecutionStatus.COMPLETED:
            self.events.emit(EXECUTION_COMPLETED, execution)
        elif execution.status == ExecutionStatus.FAILED:
            self.events.emit(EXECUTION_FAILED, execution)
