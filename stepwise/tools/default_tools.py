"""Tools available to workflows without an external tool gateway."""

from __future__ import annotations

import logging
from typing import Any

from .registry import ToolRegistry

logger = logging.getLogger(__name__)

_NOTIFICATION_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "success": logging.INFO,
    "info": logging.INFO,
}


async def echo(**parameters: Any) -> dict[str, Any]:
    """Return the parameters unchanged."""
    return {"echo": parameters}


async def send_notification(message: str, type: str = "info", **_: Any) -> dict[str, Any]:
    level = _NOTIFICATION_LEVELS.get(type, logging.INFO)
    logger.log(level, f"Notification ({type}): {message}")
    return {"delivered": True, "type": type, "message": message}


async def generate_health_report(**sections: Any) -> dict[str, Any]:
    """Summarise whatever inputs the workflow passes in."""
    return {
        "sections": sorted(sections),
        "report": sections,
    }


def create_default_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(echo)
    registry.register(send_notification)
    registry.register(generate_health_report)
    return registry
