"""stepwise: user-defined multi-step workflows over an external tool surface."""

from .config import StepwiseConfig, load_config
from .contracts import (
    Execution,
    ExecutionStatus,
    StepOutcome,
    WorkflowDefinition,
)
from .dispatch import WorkflowDispatcher
from .events import EventBus
from .execute import StepExecutor
from .persistence import get_repository
from .registry import ExecutionRegistry
from .store import WorkflowStore
from .tools import HttpToolCaller, ToolRegistry, create_default_registry

__version__ = "0.1.0"
__all__ = [
    "EventBus",
    "Execution",
    "ExecutionRegistry",
    "ExecutionStatus",
    "HttpToolCaller",
    "StepExecutor",
    "StepOutcome",
    "StepwiseConfig",
    "ToolRegistry",
    "WorkflowDefinition",
    "WorkflowDispatcher",
    "WorkflowStore",
    "create_default_registry",
    "get_repository",
    "load_config",
]
