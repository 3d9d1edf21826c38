"""Watch management commands."""

import json
from datetime import UTC, datetime
from typing import Annotated

import typer
from rich.markup import escape

from vigil.cli.console import (
    console,
    create_table,
    dim,
    error,
    styled_status,
    success,
    warning,
)
from vigil.cli.runtime import ConfigOption, load_cli_config, run_with_runtime
from vigil.durations import format_countdown, format_delay
from vigil.watches import WatchAction, WatchError
from vigil.watches.errors import InvalidDurationError


def register(app: typer.Typer) -> None:
    """Register watch subcommands."""
    watch_app = typer.Typer(help="Register and manage watches", no_args_is_help=True)
    app.add_typer(watch_app, name="watch")

    @watch_app.command("register")
    def watch_register(
        trigger: Annotated[str, typer.Argument(help="Trigger name")],
        params: Annotated[
            list[str] | None,
            typer.Argument(help="Arguments passed to the trigger"),
        ] = None,
        prompt: Annotated[
            str,
            typer.Option(
                "--prompt",
                "-p",
                help="Prompt to run when the trigger fires ({{key}} placeholders)",
            ),
        ] = "",
        cwd: Annotated[
            str | None,
            typer.Option("--cwd", help="Working directory for the action"),
        ] = None,
        ttl: Annotated[
            str | None,
            typer.Option("--ttl", help="How long to keep watching (e.g. 48h)"),
        ] = None,
        interval: Annotated[
            str | None,
            typer.Option("--interval", "-i", help="Polling interval (e.g. 30s)"),
        ] = None,
        config: ConfigOption = None,
    ) -> None:
        """Register a new watch.

        Examples:
            vigil watch register npm-published left-pad -p "Bump to {{version}}"
            vigil watch register gh-pr-merged owner/repo 42 -p "Deploy" --interval 5m
        """
        vigil_config = load_cli_config(config)
        action = WatchAction(prompt_template=prompt, working_directory=cwd)

        try:
            registration = run_with_runtime(
                vigil_config,
                lambda runtime: runtime.control.register(
                    trigger, list(params or []), action, ttl=ttl, interval=interval
                ),
            )
        except (WatchError, InvalidDurationError) as e:
            error(str(e))
            raise typer.Exit(1) from None

        success(f"Registered watch {registration.watch_id}")
        remaining = registration.expires_at - datetime.now(UTC)
        dim(
            f'Polling "{trigger}" every {registration.interval}, expires in '
            f"{format_delay(remaining.total_seconds())} "
            f"({registration.expires_at.isoformat()})"
        )

    @watch_app.command("list")
    def watch_list(
        status: Annotated[
            str,
            typer.Option(
                "--status",
                "-s",
                help="Filter: all, active, fired, expired, cancelled",
            ),
        ] = "all",
        config: ConfigOption = None,
    ) -> None:
        """List watches, newest first."""
        vigil_config = load_cli_config(config)
        try:
            watches = run_with_runtime(
                vigil_config, lambda runtime: runtime.control.list(status)
            )
        except WatchError as e:
            error(str(e))
            raise typer.Exit(1) from None

        if not watches:
            warning("No watches found")
            return

        table = create_table(
            "Watches",
            [
                ("ID", {"style": "dim", "no_wrap": True}),
                ("Trigger", ""),
                ("Params", ""),
                ("Status", ""),
                ("Interval", ""),
                ("Last Check", ""),
                ("Expires", ""),
            ],
        )
        for watch in watches:
            last_check = (
                watch.last_checked_at.strftime("%Y-%m-%d %H:%M:%S")
                if watch.last_checked_at
                else "[dim]never[/dim]"
            )
            expires = format_countdown(watch.expires_at) if watch.is_active else "-"
            table.add_row(
                watch.id,
                watch.trigger,
                escape(" ".join(watch.params)),
                styled_status(watch.status.value),
                watch.interval,
                last_check,
                expires,
            )

        console.print(table)
        dim(f"Total: {len(watches)} watch(es)")

    @watch_app.command("status")
    def watch_status(
        watch_id: Annotated[str, typer.Argument(help="Watch ID")],
        as_json: Annotated[
            bool,
            typer.Option("--json", help="Print the raw watch record as JSON"),
        ] = False,
        config: ConfigOption = None,
    ) -> None:
        """Show the details of a watch."""
        vigil_config = load_cli_config(config)
        try:
            watch = run_with_runtime(
                vigil_config, lambda runtime: runtime.control.status(watch_id)
            )
        except WatchError as e:
            error(str(e))
            raise typer.Exit(1) from None

        if as_json:
            typer.echo(json.dumps(watch.to_dict(), indent=2))
            return

        table = create_table(
            f"Watch {watch.id}",
            [
                ("Property", "cyan"),
                ("Value", ""),
            ],
        )
        table.add_row("Trigger", watch.trigger)
        table.add_row("Params", escape(" ".join(watch.params)) or "[dim]none[/dim]")
        table.add_row("Status", styled_status(watch.status.value))
        table.add_row("Prompt", escape(watch.action.prompt_template))
        table.add_row("CWD", watch.action.working_directory or "[dim]default[/dim]")
        table.add_row("Interval", watch.interval)
        table.add_row("Created", watch.created_at.isoformat())
        table.add_row("Expires", watch.expires_at.isoformat())
        table.add_row(
            "Last Check",
            watch.last_checked_at.isoformat() if watch.last_checked_at else "never",
        )
        if watch.fired_at:
            table.add_row("Fired", watch.fired_at.isoformat())
        console.print(table)

    @watch_app.command("cancel")
    def watch_cancel(
        watch_id: Annotated[str, typer.Argument(help="Watch ID")],
        config: ConfigOption = None,
    ) -> None:
        """Cancel an active watch."""
        vigil_config = load_cli_config(config)
        try:
            run_with_runtime(
                vigil_config, lambda runtime: runtime.control.cancel(watch_id)
            )
        except WatchError as e:
            error(str(e))
            raise typer.Exit(1) from None
        success(f"Watch {watch_id} cancelled.")
