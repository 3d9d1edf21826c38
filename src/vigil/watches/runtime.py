"""Assemble the watch components from configuration.

Every component takes its dependencies in its constructor; this module is
the one place that wires them together for the CLI and the daemon.
"""

from __future__ import annotations

from dataclasses import dataclass

from vigil.config.models import VigilConfig
from vigil.db.engine import Database
from vigil.watches.actions import ActionRunner
from vigil.watches.control import WatchControl
from vigil.watches.scheduler import WatchScheduler
from vigil.watches.store import WatchStore
from vigil.watches.triggers import TriggerRunner


@dataclass
class WatchRuntime:
    """Connected set of watch components built from one config."""

    config: VigilConfig
    database: Database
    store: WatchStore
    triggers: TriggerRunner
    actions: ActionRunner
    control: WatchControl
    scheduler: WatchScheduler

    @classmethod
    def from_config(cls, config: VigilConfig) -> WatchRuntime:
        """Build (but do not connect) the components for ``config``."""
        database = Database(database_path=config.database_path)
        store = WatchStore(database)
        triggers = TriggerRunner(
            config.triggers.directory, timeout=config.triggers.timeout
        )
        actions = ActionRunner(
            logs_dir=config.logs_dir,
            results_dir=config.results_dir,
            command=config.action.command,
            extra_args=config.action.extra_args,
            timeout=config.action.timeout,
            default_cwd=config.action.default_cwd,
            login_shell=config.action.login_shell,
        )
        control = WatchControl(
            store,
            triggers,
            default_ttl=config.defaults.ttl,
            default_interval=config.defaults.interval,
        )
        scheduler = WatchScheduler(
            store,
            triggers,
            actions,
            tick_interval=config.daemon.tick_interval,
            expiry_interval=config.daemon.expiry_interval,
            max_concurrency=config.daemon.max_concurrency,
            strict_trigger_output=config.daemon.strict_trigger_output,
        )
        return cls(
            config=config,
            database=database,
            store=store,
            triggers=triggers,
            actions=actions,
            control=control,
            scheduler=scheduler,
        )

    async def connect(self) -> None:
        await self.database.connect()

    async def close(self) -> None:
        await self.database.disconnect()

    async def __aenter__(self) -> WatchRuntime:
        await self.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
