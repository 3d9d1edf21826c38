"""Configuration models using Pydantic."""

import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from vigil.config.paths import (
    get_database_path,
    get_logs_path,
    get_results_path,
    get_triggers_path,
)
from vigil.durations import InvalidDurationError, parse_duration

logger = logging.getLogger(__name__)


def _validate_duration(value: str) -> str:
    try:
        delta = parse_duration(value)
    except InvalidDurationError as e:
        raise ValueError(str(e)) from None
    if delta.total_seconds() <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return value


class DaemonConfig(BaseModel):
    """Configuration for the polling daemon.

    tick_interval is the fixed sleep between passes over active watches;
    a watch is only polled once its own interval has elapsed.
    """

    tick_interval: float = Field(default=5.0, gt=0)
    expiry_interval: float = Field(default=60.0, gt=0)
    # Number of watches processed concurrently within a tick (1 = sequential)
    max_concurrency: int = Field(default=1, ge=1)
    # Treat "exit 0 but stdout is not a JSON object" as a fault instead of a fire
    strict_trigger_output: bool = False


class TriggerConfig(BaseModel):
    """Configuration for trigger executables."""

    directory: Path = Field(default_factory=get_triggers_path)
    timeout: float = Field(default=30.0, gt=0)


class ActionConfig(BaseModel):
    """Configuration for the action runner.

    The action process is invoked as ``[*command, prompt, *extra_args]``.
    """

    command: list[str] = Field(default_factory=lambda: ["claude", "-p"])
    extra_args: list[str] = Field(
        default_factory=lambda: ["--permission-mode=dontAsk"]
    )
    timeout: float = Field(default=30.0, gt=0)
    default_cwd: Path | None = None
    # Run through the user's login shell to inherit its full environment
    login_shell: bool = False

    @field_validator("command")
    @classmethod
    def _command_not_empty(cls, value: list[str]) -> list[str]:
        if not value or not value[0]:
            raise ValueError("action command must not be empty")
        return value


class WatchDefaults(BaseModel):
    """Defaults applied when a watch is registered without ttl/interval."""

    ttl: str = "48h"
    interval: str = "30s"

    @field_validator("ttl", "interval")
    @classmethod
    def _check_duration(cls, value: str) -> str:
        return _validate_duration(value)


class ConfigError(Exception):
    """Configuration error."""

    pass


class VigilConfig(BaseModel):
    """Root configuration model."""

    database_path: Path = Field(default_factory=get_database_path)
    results_dir: Path = Field(default_factory=get_results_path)
    logs_dir: Path = Field(default_factory=get_logs_path)
    daemon: DaemonConfig = Field(default_factory=DaemonConfig)
    triggers: TriggerConfig = Field(default_factory=TriggerConfig)
    action: ActionConfig = Field(default_factory=ActionConfig)
    defaults: WatchDefaults = Field(default_factory=WatchDefaults)
