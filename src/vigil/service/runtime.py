"""Runtime state for the daemon.

Persists the effective daemon configuration at startup for display in
``vigil daemon status``. Written to ``$VIGIL_HOME/run/state.json`` when the
daemon starts, removed on shutdown.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

from vigil.config.models import VigilConfig
from vigil.config.paths import get_run_path


def get_runtime_state_path() -> Path:
    return get_run_path() / "state.json"


@dataclass
class RuntimeState:
    """Daemon runtime state."""

    started_at: str  # ISO format timestamp
    database_path: str
    triggers_dir: str
    results_dir: str
    action_command: str
    tick_interval: float
    max_concurrency: int

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_json(cls, data: str) -> RuntimeState:
        return cls(**json.loads(data))


def write_runtime_state(state: RuntimeState) -> None:
    """Write runtime state to disk, creating the run directory if needed."""
    path = get_runtime_state_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(state.to_json())


def read_runtime_state() -> RuntimeState | None:
    """Read runtime state from disk.

    Returns:
        RuntimeState if file exists and is valid, None otherwise.
    """
    path = get_runtime_state_path()
    if not path.exists():
        return None
    try:
        return RuntimeState.from_json(path.read_text())
    except (json.JSONDecodeError, TypeError, KeyError):
        return None


def remove_runtime_state() -> None:
    get_runtime_state_path().unlink(missing_ok=True)


def create_runtime_state_from_config(config: VigilConfig) -> RuntimeState:
    return RuntimeState(
        started_at=datetime.now(UTC).isoformat(),
        database_path=str(config.database_path),
        triggers_dir=str(config.triggers.directory),
        results_dir=str(config.results_dir),
        action_command=" ".join(config.action.command),
        tick_interval=config.daemon.tick_interval,
        max_concurrency=config.daemon.max_concurrency,
    )
