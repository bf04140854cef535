from .default_tools import create_default_registry
from .gateway import HttpToolCaller
from .registry import ToolCaller, ToolRegistry

__all__ = [
    "ToolCaller",
    "ToolRegistry",
    "HttpToolCaller",
    "create_default_registry",
]
