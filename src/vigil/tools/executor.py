"""Tool execution with logging and error handling."""

import logging
import time
from typing import Any

from vigil.tools.base import ToolResult
from vigil.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolExecutor:
    def __init__(self, registry: ToolRegistry):
        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def execute(self, tool_name: str, input_data: dict[str, Any]) -> ToolResult:
        try:
            tool = self._registry.get(tool_name)
        except KeyError:
            logger.error(
                "tool_not_found",
                extra={"tool.name": tool_name, "error.type": "KeyError"},
            )
            return ToolResult.error(f"Tool '{tool_name}' not found")

        logger.debug(f"Tool {tool_name} input: {input_data}")

        start_time = time.monotonic()
        try:
            result = await tool.execute(input_data)
        except Exception as e:
            logger.exception("tool_execution_failed", extra={"tool.name": tool_name})
            result = ToolResult.error(f"Tool execution failed: {e}")

        log_extra: dict[str, Any] = {
            "tool.name": tool_name,
            "duration_ms": int((time.monotonic() - start_time) * 1000),
        }
        if result.is_error:
            log_extra["error.message"] = result.content[:500]
            logger.warning("tool_executed", extra=log_extra)
        else:
            logger.info("tool_executed", extra=log_extra)
        return result

    @property
    def available_tools(self) -> list[str]:
        return self._registry.names

    def get_definitions(self) -> list[dict[str, Any]]:
        return self._registry.get_definitions()
