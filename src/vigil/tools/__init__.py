"""Tool system for exposing control operations."""

from vigil.tools.base import Tool, ToolResult
from vigil.tools.executor import ToolExecutor
from vigil.tools.registry import ToolRegistry

__all__ = [
    "Tool",
    "ToolExecutor",
    "ToolRegistry",
    "ToolResult",
]
