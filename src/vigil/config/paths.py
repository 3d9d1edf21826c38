"""Centralized path management for Vigil.

All state (config, database, results, transcripts, triggers) is stored under a
single base directory. The base directory can be overridden with the
VIGIL_HOME environment variable.

Default layout:
    ~/.vigil/
    ├── config.toml
    ├── watches.db          # Durable watch store (SQLite, WAL)
    ├── results/            # One {watch_id}.json per fired watch
    │   └── archive/        # Processed results (managed by consumers)
    ├── logs/               # One {watch_id}.log transcript per watch
    │   └── daemon/         # Structured daemon logs (YYYY-MM-DD.jsonl)
    ├── triggers/           # Trigger executables + optional sidecars
    └── run/                # PID file
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "VIGIL_HOME"


@lru_cache(maxsize=1)
def get_vigil_home() -> Path:
    """Get the base directory for all Vigil data.

    Resolution order:
    1. VIGIL_HOME environment variable (if set)
    2. Platform default (~/.vigil)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".vigil"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_vigil_home() / "config.toml"


def get_database_path() -> Path:
    """Get the watch database path."""
    return get_vigil_home() / "watches.db"


def get_results_path() -> Path:
    """Get the results directory path (one JSON file per fired watch)."""
    return get_vigil_home() / "results"


def get_archive_path() -> Path:
    """Get the archive directory that result consumers move files into."""
    return get_results_path() / "archive"


def get_logs_path() -> Path:
    """Get the per-watch transcript directory path."""
    return get_vigil_home() / "logs"


def get_service_logs_path() -> Path:
    """Get the daemon's structured log directory path."""
    return get_logs_path() / "daemon"


def get_triggers_path() -> Path:
    """Get the trigger executables directory path."""
    return get_vigil_home() / "triggers"


def get_run_path() -> Path:
    """Get the runtime directory path (PID files)."""
    return get_vigil_home() / "run"


def get_pid_path() -> Path:
    """Get the daemon PID file path."""
    return get_run_path() / "vigil.pid"


def ensure_directories() -> None:
    """Create every standard directory that does not exist yet."""
    for path in (
        get_vigil_home(),
        get_results_path(),
        get_archive_path(),
        get_logs_path(),
        get_triggers_path(),
        get_run_path(),
    ):
        path.mkdir(parents=True, exist_ok=True)


def get_all_paths() -> dict[str, Path]:
    """Get all standard paths for debugging/display."""
    return {
        "home": get_vigil_home(),
        "config": get_config_path(),
        "database": get_database_path(),
        "results": get_results_path(),
        "archive": get_archive_path(),
        "logs": get_logs_path(),
        "service_logs": get_service_logs_path(),
        "triggers": get_triggers_path(),
        "run": get_run_path(),
        "pid": get_pid_path(),
    }
