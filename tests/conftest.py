"""Shared test fixtures and factories."""

import asyncio
import stat
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable, Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from vigil.config.paths import ENV_VAR, get_vigil_home
from vigil.db.engine import Database
from vigil.service import is_process_alive
from vigil.watches.actions import ActionRunner
from vigil.watches.control import WatchControl
from vigil.watches.store import WatchStore
from vigil.watches.triggers import TriggerRunner

# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def vigil_home(monkeypatch, tmp_path: Path) -> Iterator[Path]:
    """Point VIGIL_HOME at a temporary directory for every test."""
    home = tmp_path / "vigil-home"
    monkeypatch.setenv(ENV_VAR, str(home))
    get_vigil_home.cache_clear()
    yield home
    get_vigil_home.cache_clear()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Create a temporary test database."""
    db = Database(database_path=tmp_path / "watches.db")
    await db.connect()
    yield db
    await db.disconnect()


@pytest.fixture
async def store(database: Database) -> WatchStore:
    return WatchStore(database)


# =============================================================================
# Trigger / Action Fixtures
# =============================================================================

TriggerFactory = Callable[..., Path]


@pytest.fixture
def triggers_dir(tmp_path: Path) -> Path:
    path = tmp_path / "triggers"
    path.mkdir()
    return path


@pytest.fixture
def make_trigger(triggers_dir: Path) -> TriggerFactory:
    """Factory that writes an executable trigger script.

    Usage:
        make_trigger("always", 'echo \'{"ok": true}\'')
        make_trigger("check", body, sidecar="description: ...")
    """

    def factory(
        name: str,
        body: str,
        *,
        sidecar: str | None = None,
        sidecar_suffix: str = ".yaml",
        executable: bool = True,
    ) -> Path:
        path = triggers_dir / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        mode = path.stat().st_mode
        if executable:
            path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        if sidecar is not None:
            stem = path.stem if path.suffix else path.name
            (triggers_dir / f"{stem}{sidecar_suffix}").write_text(sidecar)
        return path

    return factory


@pytest.fixture
def trigger_runner(triggers_dir: Path) -> TriggerRunner:
    return TriggerRunner(triggers_dir, timeout=5.0)


@pytest.fixture
def echo_action_runner(tmp_path: Path) -> ActionRunner:
    """Action runner that echoes the prompt instead of calling an agent."""
    return ActionRunner(
        logs_dir=tmp_path / "logs",
        results_dir=tmp_path / "results",
        command=["echo"],
        extra_args=[],
        timeout=5.0,
        default_cwd=tmp_path,
    )


@pytest.fixture
def python_action_runner(tmp_path: Path) -> Callable[[str], ActionRunner]:
    """Factory for an action runner that executes a Python snippet.

    The prompt is passed as ``sys.argv[1]``.
    """

    def factory(code: str, timeout: float = 5.0) -> ActionRunner:
        return ActionRunner(
            logs_dir=tmp_path / "logs",
            results_dir=tmp_path / "results",
            command=[sys.executable, "-c", code],
            extra_args=[],
            timeout=timeout,
            default_cwd=tmp_path,
        )

    return factory


@pytest.fixture
def wait_until_dead() -> Callable[[int], Awaitable[bool]]:
    """Poll until a (possibly unreaped) process is gone or a zombie."""

    async def wait(pid: int, timeout: float = 2.0) -> bool:
        for _ in range(int(timeout / 0.05)):
            if not is_process_alive(pid):
                return True
            await asyncio.sleep(0.05)
        return False

    return wait


@pytest.fixture
async def control(store: WatchStore, trigger_runner: TriggerRunner) -> WatchControl:
    return WatchControl(store, trigger_runner)


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})
