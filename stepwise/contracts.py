"""Core document contracts for stepwise workflows.

Workflow definitions are persisted as JSON documents with camelCase keys
(``onSuccess``, ``retryCount``, ``delayMs`` ...).
Python code works with the snake_case attribute names; both spellings are
accepted on input.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .constants import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY_MS

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialising to camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        """Return the JSON-compatible camelCase document."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ----------------------------------------------------------------------
# Workflow definitions


class ArgumentSpec(CamelModel):
    """One declared input of a workflow run."""

    name: str
    type: Literal["string", "number", "boolean", "array", "object"] = "string"
    description: str = ""
    required: bool = False
    default_value: Optional[Any] = None
    validation: Optional[str] = Field(
        default=None, description="Regular expression applied to string values"
    )

    @field_validator("validation")
    @classmethod
    def _compiles(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as exc:
                raise ValueError(f"invalid validation pattern: {exc}") from exc
        return v


class ErrorHandling(CamelModel):
    strategy: Literal["stop", "continue", "retry"] = "stop"
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    retry_delay: float = Field(default=DEFAULT_RETRY_DELAY_MS, ge=0)


class _StepBase(CamelModel):
    id: str = Field(min_length=1)
    name: str
    description: str = ""
    retry_count: int = Field(default=0, ge=0)
    timeout: Optional[float] = Field(default=None, gt=0, description="Milliseconds")

    def next_step(self, success: bool) -> Optional[str]:
        """Return the ID of the step to run after this one."""
        return None

    def references(self) -> List[str]:
        """Return every step ID this step points at."""
        return []


class _RoutedStep(_StepBase):
    on_success: Optional[str] = None
    on_failure: Optional[str] = None

    def next_step(self, success: bool) -> Optional[str]:
        return self.on_success if success else self.on_failure

    def references(self) -> List[str]:
        return [ref for ref in (self.on_success, self.on_failure) if ref]


class ToolStep(_RoutedStep):
    type: Literal["tool"] = "tool"
    tool: str = Field(min_length=1)
    parameters: Dict[str, Any] = Field(default_factory=dict)


class PromptStep(_RoutedStep):
    type: Literal["prompt"] = "prompt"
    prompt: str


class ConditionStep(_RoutedStep):
    type: Literal["condition"] = "condition"
    condition: str = Field(min_length=1)


class LoopStep(_RoutedStep):
    """Calls ``tool`` once per item with ``loop_variable`` bound to it."""

    type: Literal["loop"] = "loop"
    loop_variable: str = Field(min_length=1)
    loop_items: List[Any] = Field(default_factory=list)
    tool: str = Field(min_length=1)
    parameters: Dict[str, Any] = Field(default_factory=dict)


class DelayStep(_RoutedStep):
    type: Literal["delay"] = "delay"
    delay_ms: Optional[float] = Field(default=None, ge=0)


class ParallelStep(_StepBase):
    """Runs sibling steps concurrently; ends its path once they settle."""

    type: Literal["parallel"] = "parallel"
    parallel: List[str] = Field(min_length=1)

    def references(self) -> List[str]:
        return list(self.parallel)


Step = Annotated[
    Union[ToolStep, PromptStep, ConditionStep, LoopStep, DelayStep, ParallelStep],
    Field(discriminator="type"),
]


class WorkflowDefinition(CamelModel):
    """A named, versioned graph of steps plus its argument contract."""

    id: str = Field(pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
    name: str
    description: str
    version: str = "1.0.0"
    author: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    category: str = "custom"
    arguments: List[ArgumentSpec] = Field(default_factory=list)
    variables: Dict[str, Any] = Field(default_factory=dict)
    steps: List[Step] = Field(min_length=1)
    error_handling: ErrorHandling = Field(default_factory=ErrorHandling)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _unique_step_ids(self) -> "WorkflowDefinition":
        seen: set[str] = set()
        for step in self.steps:
            if step.id in seen:
                raise ValueError(f"Duplicate step id: {step.id}")
            seen.add(step.id)
        return self

    @property
    def first_step(self) -> Step:
        return self.steps[0]

    def get_step(self, step_id: str) -> Optional[Step]:
        return next((s for s in self.steps if s.id == step_id), None)

    def dangling_references(self) -> List[tuple[str, str]]:
        """Return ``(step_id, reference)`` pairs naming unknown steps."""
        known = {step.id for step in self.steps}
        return [
            (step.id, ref)
            for step in self.steps
            for ref in step.references()
            if ref not in known
        ]


# ----------------------------------------------------------------------
# Run state


class ExecutionStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    PAUSED = "paused"


class BranchOutcome(CamelModel):
    """Outcome of one sibling inside a parallel step."""

    step_id: str
    success: bool
    result: Any = None
    error: Optional[str] = None


class StepOutcome(CamelModel):
    success: bool
    result: Any = None
    error: Optional[str] = None
    branches: Optional[List[BranchOutcome]] = None


class ExecutionError(CamelModel):
    step: str
    error: str
    kind: str = "StepFailure"
    timestamp: datetime = Field(default_factory=utcnow)


class LogEntry(CamelModel):
    timestamp: datetime = Field(default_factory=utcnow)
    level: str
    message: str
    step: Optional[str] = None


class Execution(CamelModel):
    """One run instance of a workflow."""

    id: str
    workflow_id: str
    status: ExecutionStatus = ExecutionStatus.RUNNING
    start_time: datetime = Field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    current_step: Optional[str] = None
    variables: Dict[str, Any] = Field(default_factory=dict)
    results: Dict[str, StepOutcome] = Field(default_factory=dict)
    errors: List[ExecutionError] = Field(default_factory=list)
    logs: List[LogEntry] = Field(default_factory=list)

    @property
    def is_running(self) -> bool:
        return self.status == ExecutionStatus.RUNNING

    @property
    def is_terminal(self) -> bool:
        return not self.is_running

    def log(self, level: str, message: str, step: Optional[str] = None) -> None:
        """Append a log entry and mirror it to the module logger."""
        self.logs.append(LogEntry(level=level, message=message, step=step))
        logger.log(_LOG_LEVELS.get(level, logging.INFO), f"[{self.id}] {message}")

    def record_error(self, step: str, error: BaseException) -> ExecutionError:
        entry = ExecutionError(step=step, error=str(error), kind=type(error).__name__)
        self.errors.append(entry)
        return entry

    def finish(self, status: ExecutionStatus) -> None:
        self.status = status
        self.current_step = None
        if self.end_time is None:
            self.end_time = utcnow()
