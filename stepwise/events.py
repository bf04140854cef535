"""In-process notifications for store and execution lifecycle events."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

logger = logging.getLogger(__name__)

WORKFLOW_SAVED = "workflow-saved"
WORKFLOW_DELETED = "workflow-deleted"
EXECUTION_STARTED = "execution-started"
EXECUTION_COMPLETED = "execution-completed"
EXECUTION_FAILED = "execution-failed"
EXECUTION_CANCELLED = "execution-cancelled"

Listener = Callable[[Any], None]


class EventBus:
    """Synchronous publish/subscribe hub.

    Listeners run in registration order on the emitting task. A listener
    that raises is logged and skipped so that a faulty observer cannot fail a
    workflow run.
    """

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def unsubscribe(self, event: str, listener: Listener) -> None:
        if listener in self._listeners.get(event, []):
            self._listeners[event].remove(listener)

    def emit(self, event: str, payload: Any = None) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(payload)
            except Exception:
                logger.exception(f"Listener for {event} raised")
