"""Result file listing command."""

from typing import Annotated

import typer
from rich.markup import escape

from vigil.cli.console import console, create_table, dim, warning
from vigil.cli.runtime import ConfigOption, load_cli_config


def register(app: typer.Typer) -> None:
    """Register the results command."""

    @app.command()
    def results(
        show_all: Annotated[
            bool,
            typer.Option(
                "--all",
                "-a",
                help="Include archived results",
            ),
        ] = False,
        config: ConfigOption = None,
    ) -> None:
        """List result files written by fired watches."""
        from vigil.watches.actions import read_results

        vigil_config = load_cli_config(config)
        results_dir = vigil_config.results_dir

        entries = [(result, "pending") for result in read_results(results_dir)]
        if show_all:
            entries += [
                (result, "archived")
                for result in read_results(results_dir / "archive")
            ]

        if not entries:
            warning("No results found")
            return

        table = create_table(
            "Results",
            [
                ("Watch", {"style": "dim", "no_wrap": True}),
                ("Trigger", ""),
                ("Fired", ""),
                ("Exit", ""),
                ("Prompt", ""),
                ("State", ""),
            ],
        )
        entries.sort(key=lambda entry: entry[0].fired_at, reverse=True)
        for result, state in entries:
            exit_code = result.action.exit_code
            exit_display = (
                f"[green]{exit_code}[/green]"
                if result.action.succeeded
                else f"[red]{exit_code}[/red]"
            )
            prompt = result.action.prompt
            table.add_row(
                result.watch_id,
                result.trigger,
                result.fired_at.strftime("%Y-%m-%d %H:%M:%S"),
                exit_display,
                escape(prompt[:40] + "..." if len(prompt) > 40 else prompt),
                state,
            )
        console.print(table)
        dim(f"Total: {len(entries)} result(s)")
