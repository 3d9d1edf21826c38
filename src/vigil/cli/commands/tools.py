"""Tool commands: inspect and invoke the watch control tools."""

import asyncio
import json
from typing import Annotated

import click
import typer
from rich.markup import escape

from vigil.cli.console import console, create_table, error
from vigil.cli.runtime import ConfigOption, load_cli_config


def register(app: typer.Typer) -> None:
    """Register the tools command."""

    @app.command()
    def tools(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: list, schema, call"),
        ] = None,
        name: Annotated[
            str | None,
            typer.Argument(help="Tool name (for schema and call)"),
        ] = None,
        input_json: Annotated[
            str,
            typer.Option(
                "--input",
                "-i",
                help="Tool input as a JSON object (for call)",
            ),
        ] = "{}",
        config: ConfigOption = None,
    ) -> None:
        """Inspect or call the watch control tools.

        Examples:
            vigil tools list
            vigil tools schema register_watch
            vigil tools call list_watches --input '{"status": "active"}'
        """
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        from vigil.tools import ToolExecutor
        from vigil.watches.runtime import WatchRuntime
        from vigil.watches.tools import create_watch_tool_registry

        if action not in ("list", "schema", "call"):
            error(f"Unknown action: {action}")
            console.print("Valid actions: list, schema, call")
            raise typer.Exit(1)

        if action != "list" and not name:
            error(f"A tool name is required for {action}")
            raise typer.Exit(1)

        try:
            input_data = json.loads(input_json)
        except json.JSONDecodeError as e:
            error(f"Invalid --input JSON: {e}")
            raise typer.Exit(1) from None
        if not isinstance(input_data, dict):
            error("--input must be a JSON object")
            raise typer.Exit(1)

        vigil_config = load_cli_config(config)
        runtime = WatchRuntime.from_config(vigil_config)
        registry = create_watch_tool_registry(runtime.control)

        if action == "list":
            table = create_table(
                "Tools",
                [
                    ("Name", {"style": "cyan", "no_wrap": True}),
                    ("Description", ""),
                ],
            )
            for tool in registry:
                table.add_row(tool.name, escape(tool.description))
            console.print(table)
            return

        if name not in registry:
            error(f"Tool '{name}' not found")
            raise typer.Exit(1)

        if action == "schema":
            typer.echo(json.dumps(registry.get(name).to_definition(), indent=2))
            return

        async def do_call():
            async with runtime:
                return await ToolExecutor(registry).execute(name, input_data)

        result = asyncio.run(do_call())
        typer.echo(result.content)
        if result.is_error:
            raise typer.Exit(1)
