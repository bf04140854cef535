"""Exception types raised by the workflow engine."""

from __future__ import annotations

from typing import Optional


class WorkflowError(Exception):
    """Base class for all engine errors."""


class ValidationError(WorkflowError):
    """A workflow document is malformed and was rejected."""

    def __init__(self, message: str, workflow_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.workflow_id = workflow_id


class NotFoundError(WorkflowError):
    """A requested object does not exist."""


class WorkflowNotFoundError(NotFoundError):
    def __init__(self, workflow_id: str) -> None:
        super().__init__(f"Workflow {workflow_id} not found")
        self.workflow_id = workflow_id


class MissingArgumentError(WorkflowError):
    """A required run argument was not supplied."""

    def __init__(self, workflow_id: str, argument: str) -> None:
        super().__init__(
            f"Required argument {argument} not provided for workflow {workflow_id}"
        )
        self.workflow_id = workflow_id
        self.argument = argument


class InvalidArgumentError(WorkflowError):
    """A supplied run argument has the wrong type or fails its rule."""

    def __init__(self, workflow_id: str, argument: str, reason: str) -> None:
        super().__init__(f"Invalid argument {argument} for workflow {workflow_id}: {reason}")
        self.workflow_id = workflow_id
        self.argument = argument
        self.reason = reason


class UnknownStepError(WorkflowError):
    """A step reference names an ID that is not part of the workflow."""

    def __init__(self, step_id: str, workflow_id: Optional[str] = None) -> None:
        super().__init__(f"Step {step_id} not found")
        self.step_id = step_id
        self.workflow_id = workflow_id


class ConditionEvaluationError(WorkflowError):
    """A condition expression could not be parsed or evaluated."""

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"Condition evaluation failed for {expression!r}: {reason}")
        self.expression = expression
        self.reason = reason


class ToolInvocationError(WorkflowError):
    """A tool could not be resolved or no tool caller is available."""

    def __init__(self, message: str, tool: Optional[str] = None) -> None:
        super().__init__(message)
        self.tool = tool


class StepFailure(WorkflowError):
    """A step completed but reported ``success=False``."""


class StepTimeoutError(WorkflowError):
    def __init__(self, step_id: str, timeout_ms: float) -> None:
        super().__init__(f"Step {step_id} timed out after {timeout_ms}ms")
        self.step_id = step_id
        self.timeout_ms = timeout_ms


class RetriesExhaustedError(WorkflowError):
    """A failing step used up its retry budget."""

    def __init__(self, step_id: str, attempts: int) -> None:
        super().__init__(f"Step {step_id} failed after {attempts} attempts")
        self.step_id = step_id
        self.attempts = attempts
