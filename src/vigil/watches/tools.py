"""Watch control tools.

Exposes the control API as tools (``register_watch``, ``list_watches``,
``watch_status``, ``cancel_watch``, ``list_triggers``) so an agent session
can manage watches. Control errors come back as error results.
"""

import json
from typing import Any

from vigil.tools.base import Tool, ToolResult
from vigil.tools.registry import ToolRegistry
from vigil.watches.control import WatchControl
from vigil.watches.errors import InvalidDurationError, WatchError
from vigil.watches.types import Trigger, Watch, WatchAction, WatchStatus

_STATUS_CHOICES = ["all", *(status.value for status in WatchStatus)]


def format_watch(watch: Watch) -> str:
    """One-line summary of a watch."""
    params = " ".join(watch.params)
    return (
        f"{watch.id}: {watch.trigger} {params} [{watch.status.value}] "
        f"(expires {watch.expires_at.isoformat()})"
    )


def format_trigger(trigger: Trigger) -> str:
    line = f"- {trigger.name}"
    if trigger.description:
        line += f": {trigger.description}"
    if trigger.usage:
        line += f"\n  Usage: {trigger.usage}"
    if trigger.default_interval:
        line += f"\n  Default interval: {trigger.default_interval}"
    return line


class _WatchTool(Tool):
    def __init__(self, control: WatchControl) -> None:
        self._control = control


class RegisterWatchTool(_WatchTool):
    """Register a watch that runs a prompt once a trigger fires."""

    @property
    def name(self) -> str:
        return "register_watch"

    @property
    def description(self) -> str:
        return (
            "Register a watch that polls a trigger until it fires, then runs "
            "the action prompt. Use {{key}} placeholders in the prompt to "
            "insert values from the trigger's JSON output."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "trigger": {
                    "type": "string",
                    "description": "Trigger name (see list_triggers)",
                },
                "params": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Positional arguments passed to the trigger",
                },
                "action": {
                    "type": "object",
                    "properties": {
                        "prompt": {
                            "type": "string",
                            "description": "Prompt to run when the trigger fires",
                        },
                        "cwd": {
                            "type": "string",
                            "description": "Working directory for the action",
                        },
                    },
                    "required": ["prompt"],
                },
                "ttl": {
                    "type": "string",
                    "description": "How long to keep watching (e.g. '48h', '7d')",
                },
                "interval": {
                    "type": "string",
                    "description": "Polling interval (e.g. '30s', '5m')",
                },
            },
            "required": ["trigger", "params", "action"],
        }

    async def execute(self, input_data: dict[str, Any]) -> ToolResult:
        trigger = input_data.get("trigger")
        if not trigger:
            return ToolResult.error("Missing required parameter: trigger")
        raw_action = input_data.get("action")
        if not isinstance(raw_action, dict) or not raw_action.get("prompt"):
            return ToolResult.error("Missing required parameter: action.prompt")

        action = WatchAction(
            prompt_template=raw_action["prompt"],
            working_directory=raw_action.get("cwd"),
        )
        try:
            registration = await self._control.register(
                trigger,
                input_data.get("params", []),
                action,
                ttl=input_data.get("ttl"),
                interval=input_data.get("interval"),
            )
        except (WatchError, InvalidDurationError) as e:
            return ToolResult.error(f"Error: {e}")

        return ToolResult.success(
            json.dumps(
                {
                    "watchId": registration.watch_id,
                    "expiresAt": registration.expires_at.isoformat(),
                    "message": (
                        f'Watch registered. The daemon will poll "{trigger}" '
                        f"every {registration.interval}."
                    ),
                },
                indent=2,
            ),
            watch_id=registration.watch_id,
        )


class ListWatchesTool(_WatchTool):
    """List watches, optionally filtered by status."""

    @property
    def name(self) -> str:
        return "list_watches"

    @property
    def description(self) -> str:
        return "List registered watches, newest first."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "status": {
                    "type": "string",
                    "enum": _STATUS_CHOICES,
                    "description": "Filter by status (default: all)",
                },
            },
        }

    async def execute(self, input_data: dict[str, Any]) -> ToolResult:
        try:
            watches = await self._control.list(input_data.get("status"))
        except WatchError as e:
            return ToolResult.error(f"Error: {e}")

        if not watches:
            return ToolResult.success("No watches found.", count=0)

        formatted = "\n".join(format_watch(watch) for watch in watches)
        return ToolResult.success(
            f"Found {len(watches)} watch(es):\n\n{formatted}", count=len(watches)
        )


class WatchStatusTool(_WatchTool):
    """Show the full record of a single watch."""

    @property
    def name(self) -> str:
        return "watch_status"

    @property
    def description(self) -> str:
        return "Get the details of a watch by ID."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "watchId": {"type": "string", "description": "Watch ID"},
            },
            "required": ["watchId"],
        }

    async def execute(self, input_data: dict[str, Any]) -> ToolResult:
        watch_id = input_data.get("watchId")
        if not watch_id:
            return ToolResult.error("Missing required parameter: watchId")
        try:
            watch = await self._control.status(watch_id)
        except WatchError as e:
            return ToolResult.error(f"Error: {e}")
        return ToolResult.success(json.dumps(watch.to_dict(), indent=2))


class CancelWatchTool(_WatchTool):
    """Cancel an active watch."""

    @property
    def name(self) -> str:
        return "cancel_watch"

    @property
    def description(self) -> str:
        return "Cancel an active watch. Fired or expired watches cannot be cancelled."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "watchId": {"type": "string", "description": "Watch ID"},
            },
            "required": ["watchId"],
        }

    async def execute(self, input_data: dict[str, Any]) -> ToolResult:
        watch_id = input_data.get("watchId")
        if not watch_id:
            return ToolResult.error("Missing required parameter: watchId")
        try:
            await self._control.cancel(watch_id)
        except WatchError as e:
            return ToolResult.error(f"Error: {e}")
        return ToolResult.success(f"Watch {watch_id} cancelled.")


class ListTriggersTool(_WatchTool):
    """List available triggers with their usage."""

    @property
    def name(self) -> str:
        return "list_triggers"

    @property
    def description(self) -> str:
        return "List the triggers that watches can poll."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}}

    async def execute(self, input_data: dict[str, Any]) -> ToolResult:
        triggers = await self._control.list_triggers()
        if not triggers:
            return ToolResult.success(
                "No triggers found. Add executables to "
                f"{self._control.triggers.triggers_dir}"
            )
        formatted = "\n\n".join(format_trigger(trigger) for trigger in triggers)
        return ToolResult.success(f"Available triggers:\n\n{formatted}")


def create_watch_tool_registry(control: WatchControl) -> ToolRegistry:
    """Build a registry holding every watch control tool."""
    registry = ToolRegistry()
    for tool_cls in (
        RegisterWatchTool,
        ListWatchesTool,
        WatchStatusTool,
        CancelWatchTool,
        ListTriggersTool,
    ):
        registry.register(tool_cls(control))
    return registry
