"""Trigger listing command."""

import typer
from rich.markup import escape

from vigil.cli.console import console, create_table, dim, warning
from vigil.cli.runtime import ConfigOption, load_cli_config


def register(app: typer.Typer) -> None:
    """Register the triggers command."""

    @app.command()
    def triggers(config: ConfigOption = None) -> None:
        """List the triggers available to watches."""
        from vigil.watches.triggers import TriggerRunner

        vigil_config = load_cli_config(config)
        runner = TriggerRunner(vigil_config.triggers.directory)
        found = runner.list()

        if not found:
            warning(f"No triggers found in {runner.triggers_dir}")
            dim("Add executables to that directory to make them available")
            return

        table = create_table(
            "Triggers",
            [
                ("Name", {"style": "cyan", "no_wrap": True}),
                ("Description", ""),
                ("Usage", ""),
                ("Default Interval", ""),
            ],
        )
        for trigger in found:
            table.add_row(
                trigger.name,
                escape(trigger.description or "") or "[dim]-[/dim]",
                escape(trigger.usage or trigger.name),
                trigger.default_interval or "[dim]-[/dim]",
            )
        console.print(table)
