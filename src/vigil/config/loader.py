"""Configuration loading from TOML files."""

import tomllib
from pathlib import Path

from pydantic import ValidationError

from vigil.config.models import ConfigError, VigilConfig
from vigil.config.paths import get_config_path


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("vigil.toml"),  # Current directory
        get_config_path(),  # ~/.vigil/config.toml (or VIGIL_HOME)
        Path("/etc/vigil/config.toml"),  # System-wide
    ]


def find_config_path(path: Path | None = None) -> Path | None:
    """Resolve which config file would be loaded.

    Raises:
        FileNotFoundError: If an explicit path was given and does not exist.
    """
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return config_path

    for default_path in _get_default_config_paths():
        expanded = default_path.expanduser()
        if expanded.exists():
            return expanded
    return None


def load_config(path: Path | None = None) -> VigilConfig:
    """Load configuration from a TOML file.

    Unlike an explicit path, the default locations are optional: when none of
    them exists the built-in defaults are used.

    Args:
        path: Explicit path to config file. If None, searches default locations.

    Returns:
        Validated VigilConfig instance.

    Raises:
        FileNotFoundError: If an explicit config file is missing.
        ConfigError: If the config file is not valid TOML or fails validation.
    """
    config_path = find_config_path(path)
    if config_path is None:
        return VigilConfig()

    try:
        with config_path.open("rb") as f:
            raw_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    try:
        return VigilConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e
