"""Bounded in-memory registry of workflow executions."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .constants import DEFAULT_MAX_EXECUTIONS
from .contracts import Execution, ExecutionStatus
from .events import EXECUTION_CANCELLED, EXECUTION_STARTED, EventBus

logger = logging.getLogger(__name__)


class ExecutionRegistry:
    """Track in-flight and finished executions.

    Retention is best effort: once more than ``max_executions`` records are
    held, the oldest by ``start_time`` are dropped. Evicted runs are not
    persisted anywhere.
    """

    def __init__(
        self,
        max_executions: int = DEFAULT_MAX_EXECUTIONS,
        events: Optional[EventBus] = None,
    ) -> None:
        self.max_executions = max_executions
        self._events = events or EventBus()
        self._executions: Dict[str, Execution] = {}

    def register(self, execution: Execution) -> None:
        self._executions[execution.id] = execution
        self._events.emit(EXECUTION_STARTED, execution)

    def get(self, execution_id: str) -> Optional[Execution]:
        return self._executions.get(execution_id)

    def list(self) -> List[Execution]:
        return list(self._executions.values())

    def cancel(self, execution_id: str) -> None:
        """Request cooperative cancellation of a running execution.

        The run stops before its next step; a step already in flight runs to
        completion. Unknown or finished executions are left untouched.
        """
        execution = self._executions.get(execution_id)
        if execution is None or not execution.is_running:
            return
        execution.finish(ExecutionStatus.PAUSED)
        execution.log("info", "Execution cancelled")
        self._events.emit(EXECUTION_CANCELLED, execution)

    def retain(self) -> List[str]:
        """Evict the oldest executions beyond capacity; return evicted IDs."""
        evicted = []
        while len(self._executions) > self.max_executions:
            oldest = min(self._executions.values(), key=lambda e: e.start_time)
            del self._executions[oldest.id]
            evicted.append(oldest.id)
        if evicted:
            logger.debug(f"Evicted {len(evicted)} executions")
        return evicted

    def __len__(self) -> int:
        return len(self._executions)
