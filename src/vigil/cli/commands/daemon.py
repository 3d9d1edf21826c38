"""Daemon commands: run the scheduler in the foreground, inspect and stop it."""

import asyncio
import logging
import signal
from typing import Annotated

import typer

from vigil.cli.console import console, create_table, dim, error, success, warning
from vigil.cli.runtime import ConfigOption, load_cli_config, run_with_runtime
from vigil.config.models import VigilConfig

logger = logging.getLogger(__name__)


def _format_uptime(uptime: float) -> str:
    if uptime < 60:
        return f"{uptime:.0f}s"
    if uptime < 3600:
        return f"{uptime / 60:.0f}m"
    if uptime < 86400:
        return f"{uptime / 3600:.1f}h"
    return f"{uptime / 86400:.1f}d"


async def _run_daemon(config: VigilConfig) -> None:
    """Run the scheduler until SIGINT/SIGTERM."""
    from vigil.config.paths import ensure_directories, get_pid_path
    from vigil.service import (
        acquire_pid_file,
        create_runtime_state_from_config,
        remove_pid_file,
        remove_runtime_state,
        write_runtime_state,
    )
    from vigil.watches.runtime import WatchRuntime

    ensure_directories()
    for directory in (
        config.results_dir,
        config.logs_dir,
        config.triggers.directory,
    ):
        directory.mkdir(parents=True, exist_ok=True)

    pid_path = get_pid_path()
    acquire_pid_file(pid_path)
    write_runtime_state(create_runtime_state_from_config(config))

    runtime = WatchRuntime.from_config(config)
    try:
        await runtime.connect()
        logger.info(
            "daemon_started",
            extra={
                "db.path": str(config.database_path),
                "trigger.dir": str(config.triggers.directory),
            },
        )

        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("daemon_stop_requested")
            runtime.scheduler.request_stop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, handle_signal)

        await runtime.scheduler.run()
    finally:
        await runtime.close()
        remove_runtime_state()
        remove_pid_file(pid_path)
        logger.info("daemon_stopped")


def register(app: typer.Typer) -> None:
    """Register daemon subcommands."""
    daemon_app = typer.Typer(
        help="Run and manage the watch daemon", no_args_is_help=True
    )
    app.add_typer(daemon_app, name="daemon")

    @daemon_app.command("run")
    def daemon_run(
        config: ConfigOption = None,
        log_file: Annotated[
            bool,
            typer.Option(
                "--log-file/--no-log-file",
                help="Also write JSONL logs under logs/daemon",
            ),
        ] = True,
    ) -> None:
        """Run the daemon in the foreground until interrupted."""
        from vigil.logging import configure_logging, prune_old_logs
        from vigil.service import DaemonAlreadyRunningError

        vigil_config = load_cli_config(config)
        configure_logging(use_rich=True, log_to_file=log_file)
        if log_file:
            from vigil.config.paths import get_service_logs_path

            prune_old_logs(get_service_logs_path())

        try:
            asyncio.run(_run_daemon(vigil_config))
        except DaemonAlreadyRunningError as e:
            error(str(e))
            raise typer.Exit(1) from None
        except KeyboardInterrupt:
            # Use print here since logging may already be torn down
            print("\nDaemon stopped")

    @daemon_app.command("status")
    def daemon_status(config: ConfigOption = None) -> None:
        """Show daemon status and watch counts."""
        from vigil.config.paths import get_pid_path
        from vigil.service import get_process_info, read_pid_file, read_runtime_state

        info = read_pid_file(get_pid_path())
        runtime_state = read_runtime_state()

        table = create_table(
            "Vigil Daemon Status",
            [
                ("Property", "cyan"),
                ("Value", ""),
            ],
        )

        if info is None:
            table.add_row("State", "[yellow]stopped[/yellow]")
        elif not info.alive:
            table.add_row("State", "[red]stale PID file[/red]")
            table.add_row("PID", str(info.pid))
        else:
            table.add_row("State", "[green]running[/green]")
            table.add_row("PID", str(info.pid))
            if info.uptime_seconds is not None:
                table.add_row("Uptime", _format_uptime(info.uptime_seconds))
            usage = get_process_info(info.pid)
            if usage:
                table.add_row("Memory", f"{usage['memory_mb']:.1f} MB")
                table.add_row("CPU", f"{usage['cpu_percent']:.1f}%")

        if runtime_state and info is not None and info.alive:
            table.add_row("", "")
            table.add_row("[bold]Configuration[/bold]", "")
            table.add_row("Started", runtime_state.started_at)
            table.add_row("Database", runtime_state.database_path)
            table.add_row("Triggers", runtime_state.triggers_dir)
            table.add_row("Results", runtime_state.results_dir)
            table.add_row("Action", runtime_state.action_command)
            table.add_row("Tick", f"{runtime_state.tick_interval:g}s")
            table.add_row("Concurrency", str(runtime_state.max_concurrency))

        vigil_config = load_cli_config(config)
        if vigil_config.database_path.exists():
            counts = run_with_runtime(
                vigil_config, lambda runtime: runtime.store.count_by_status()
            )
            table.add_row("", "")
            table.add_row("[bold]Watches[/bold]", "")
            for status, count in counts.items():
                table.add_row(status.capitalize(), str(count))

        console.print(table)

    @daemon_app.command("stop")
    def daemon_stop(
        timeout: Annotated[
            float,
            typer.Option(
                "--timeout",
                "-t",
                help="Seconds to wait for the daemon to exit",
            ),
        ] = 60.0,
    ) -> None:
        """Ask a running daemon to stop gracefully (SIGTERM)."""
        from vigil.config.paths import get_pid_path
        from vigil.service import (
            read_pid_file,
            remove_pid_file,
            send_signal,
            wait_for_exit,
        )

        pid_path = get_pid_path()
        info = read_pid_file(pid_path)
        if info is None:
            warning("Daemon is not running")
            return
        if not info.alive:
            remove_pid_file(pid_path)
            warning(f"Daemon is not running (removed stale PID file for {info.pid})")
            return

        if not send_signal(info.pid, signal.SIGTERM):
            error(f"Failed to signal daemon (PID {info.pid})")
            raise typer.Exit(1)

        dim(f"Sent SIGTERM to PID {info.pid}, waiting for exit...")
        if not wait_for_exit(info.pid, timeout=timeout):
            error(f"Daemon did not exit within {timeout:g}s")
            raise typer.Exit(1)
        success("Daemon stopped")
