"""Configuration module."""

from vigil.config.loader import find_config_path, load_config
from vigil.config.models import (
    ActionConfig,
    ConfigError,
    DaemonConfig,
    TriggerConfig,
    VigilConfig,
    WatchDefaults,
)
from vigil.config.paths import (
    get_config_path,
    get_database_path,
    get_vigil_home,
)

__all__ = [
    "ActionConfig",
    "ConfigError",
    "DaemonConfig",
    "TriggerConfig",
    "VigilConfig",
    "WatchDefaults",
    "find_config_path",
    "get_config_path",
    "get_database_path",
    "get_vigil_home",
    "load_config",
]
