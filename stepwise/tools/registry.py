"""Local tool collaborator backed by named Python callables."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..errors import ToolInvocationError

logger = logging.getLogger(__name__)

ToolCaller = Callable[[str, Dict[str, Any]], Awaitable[Any]]
"""Signature of the collaborator that performs ``tool`` steps."""

ToolFunc = Callable[..., Any]


class ToolRegistry:
    """Resolve tool names to callables and invoke them with keyword parameters."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolFunc] = {}

    def register(
        self, func: Optional[ToolFunc] = None, *, name: Optional[str] = None
    ) -> Any:
        """Register ``func`` under ``name`` (defaults to the function name).

        Usable directly or as a decorator, with or without arguments.
        """

        def _register(f: ToolFunc) -> ToolFunc:
            self._tools[name or f.__name__] = f
            return f

        if func is not None:
            return _register(func)
        return _register

    def names(self) -> List[str]:
        return sorted(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    async def call_tool(self, name: str, parameters: Dict[str, Any]) -> Any:
        """Invoke tool ``name``; errors raised by the tool propagate."""
        func = self._tools.get(name)
        if func is None:
            raise ToolInvocationError(f"Unknown tool: {name}", tool=name)
        logger.debug(f"Calling tool {name} with {parameters}")
        result = func(**parameters)
        if inspect.isawaitable(result):
            result = await result
        return result
