"""Step execution for stepwise workflows."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from .conditions import ConditionEvaluator
from .constants import DEFAULT_DELAY_MS
from .contracts import (
    BranchOutcome,
    ConditionStep,
    DelayStep,
    Execution,
    LoopStep,
    ParallelStep,
    PromptStep,
    Step,
    StepOutcome,
    ToolStep,
    WorkflowDefinition,
)
from .errors import StepTimeoutError, ToolInvocationError, UnknownStepError
from .interpolate import interpolate, interpolate_parameters, interpolate_string
from .tools import ToolCaller

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class RunContext:
    """Everything a step needs from the run it belongs to."""

    workflow: WorkflowDefinition
    execution: Execution
    call_tool: Optional[ToolCaller] = None

    @property
    def variables(self) -> Dict[str, Any]:
        return self.execution.variables


class StepExecutor:
    """Execute exactly one step and report its outcome.

    Tool and loop failures propagate as exceptions; the caller decides how
    to route them.
    """

    def __init__(
        self,
        evaluator: Optional[ConditionEvaluator] = None,
        default_delay_ms: float = DEFAULT_DELAY_MS,
    ) -> None:
        self._evaluator = evaluator or ConditionEvaluator()
        self.default_delay_ms = default_delay_ms
        self._handlers: Dict[str, Callable[[Any, RunContext], Awaitable[StepOutcome]]] = {
            "tool": self._execute_tool,
            "prompt": self._execute_prompt,
            "condition": self._execute_condition,
            "loop": self._execute_loop,
            "delay": self._execute_delay,
            "parallel": self._execute_parallel,
        }

    async def execute(self, step: Step, run: RunContext) -> StepOutcome:
        handler = self._handlers.get(step.type)
        if handler is None:
            raise TypeError(f"Unsupported step type: {step.type}")
        if step.timeout is None:
            return await handler(step, run)
        try:
            return await asyncio.wait_for(handler(step, run), step.timeout / 1000)
        except asyncio.TimeoutError as exc:
            raise StepTimeoutError(step.id, step.timeout) from exc

    async def _call_tool(self, run: RunContext, tool: str, parameters: Dict[str, Any]) -> Any:
        if run.call_tool is None:
            raise ToolInvocationError("Tool execution context not available", tool=tool)
        return await run.call_tool(tool, parameters)

    async def _execute_tool(self, step: ToolStep, run: RunContext) -> StepOutcome:
        parameters = interpolate_parameters(step.parameters, run.variables)
        result = await self._call_tool(run, step.tool, parameters)
        return StepOutcome(success=True, result=result)

    async def _execute_prompt(self, step: PromptStep, run: RunContext) -> StepOutcome:
        return StepOutcome(success=True, result=interpolate_string(step.prompt, run.variables))

    async def _execute_condition(self, step: ConditionStep, run: RunContext) -> StepOutcome:
        expression = interpolate_string(step.condition, run.variables)
        return StepOutcome(success=self._evaluator.evaluate(expression, run.variables))

    async def _execute_loop(self, step: LoopStep, run: RunContext) -> StepOutcome:
        variables = run.variables
        previous = variables.get(step.loop_variable, _MISSING)
        results = []
        try:
            for item in interpolate(step.loop_items, variables):
                variables[step.loop_variable] = item
                parameters = interpolate_parameters(step.parameters, variables)
                results.append(await self._call_tool(run, step.tool, parameters))
        finally:
            if previous is _MISSING:
                variables.pop(step.loop_variable, None)
            else:
                variables[step.loop_variable] = previous
        return StepOutcome(success=True, result=results)

    async def _execute_delay(self, step: DelayStep, run: RunContext) -> StepOutcome:
        delay_ms = step.delay_ms if step.delay_ms is not None else self.default_delay_ms
        await asyncio.sleep(delay_ms / 1000)
        return StepOutcome(success=True)

    async def _execute_parallel(self, step: ParallelStep, run: RunContext) -> StepOutcome:
        siblings = []
        for step_id in step.parallel:
            sibling = run.workflow.get_step(step_id)
            if sibling is None:
                raise UnknownStepError(step_id, run.workflow.id)
            siblings.append(sibling)

        settled = await asyncio.gather(
            *(self.execute(sibling, run) for sibling in siblings),
            return_exceptions=True,
        )

        branches = []
        for sibling, outcome in zip(siblings, settled):
            if isinstance(outcome, BaseException):
                logger.warning(f"Parallel branch {sibling.id} failed: {outcome}")
                branches.append(
                    BranchOutcome(step_id=sibling.id, success=False, error=str(outcome))
                )
            elif isinstance(sibling, ConditionStep):
                # A condition that evaluated is a settled branch; its truth
                # value is the result, not a failure.
                branches.append(
                    BranchOutcome(step_id=sibling.id, success=True, result=outcome.success)
                )
            else:
                branches.append(
                    BranchOutcome(
                        step_id=sibling.id,
                        success=outcome.success,
                        result=outcome.result,
                        error=outcome.error,
                    )
                )

        failed = [b.step_id for b in branches if not b.success]
        return StepOutcome(
            success=not failed,
            branches=branches,
            error=f"Parallel branches failed: {', '.join(failed)}" if failed else None,
        )
