"""Shared bootstrap helpers for CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, TypeVar

import typer

from vigil.cli.console import error
from vigil.config import ConfigError, VigilConfig, load_config
from vigil.watches.runtime import WatchRuntime

T = TypeVar("T")

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration file",
    ),
]


def load_cli_config(path: Path | None) -> VigilConfig:
    """Load configuration, exiting with an error message on failure."""
    try:
        return load_config(path)
    except (FileNotFoundError, ConfigError) as e:
        error(str(e))
        raise typer.Exit(1) from None


def run_with_runtime(
    config: VigilConfig, fn: Callable[[WatchRuntime], Awaitable[T]]
) -> T:
    """Connect a WatchRuntime, run ``fn`` against it and close it."""

    async def _run() -> T:
        async with WatchRuntime.from_config(config) as runtime:
            return await fn(runtime)

    return asyncio.run(_run())
