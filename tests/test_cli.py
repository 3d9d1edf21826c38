"""Tests for CLI commands."""

import json
import re
import stat
from datetime import UTC, datetime
from pathlib import Path

import pytest

from vigil.cli.app import app
from vigil.config.paths import get_pid_path
from vigil.service import write_pid_file
from vigil.watches.actions import ActionRunner
from vigil.watches.types import ActionOutcome, WatchResult

WATCH_ID = re.compile(r"w_[0-9a-f]{8}")


@pytest.fixture(autouse=True)
def isolated_cwd(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def home_trigger(vigil_home: Path):
    """Write an executable trigger into $VIGIL_HOME/triggers."""

    def factory(name: str, body: str = "exit 1", sidecar: str | None = None) -> Path:
        triggers = vigil_home / "triggers"
        triggers.mkdir(parents=True, exist_ok=True)
        path = triggers / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR)
        if sidecar is not None:
            (triggers / f"{name}.yaml").write_text(sidecar)
        return path

    return factory


def register_watch(cli_runner, *args: str) -> str:
    result = cli_runner.invoke(app, ["watch", "register", *args])
    assert result.exit_code == 0, result.output
    match = WATCH_ID.search(result.output)
    assert match is not None
    return match.group(0)


class TestBasics:
    def test_no_args_shows_help(self, cli_runner):
        result = cli_runner.invoke(app, [])
        assert "Usage" in result.output

    def test_version(self, cli_runner):
        result = cli_runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert result.output.startswith("vigil ")

    def test_paths(self, cli_runner, vigil_home):
        result = cli_runner.invoke(app, ["paths"])
        assert result.exit_code == 0
        assert "Vigil Paths" in result.output
        assert "database" in result.output
        assert "watches.db" in result.output

    def test_missing_config_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            app, ["watch", "list", "--config", str(tmp_path / "nope.toml")]
        )
        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestTriggersCommand:
    def test_empty(self, cli_runner):
        result = cli_runner.invoke(app, ["triggers"])
        assert result.exit_code == 0
        assert "No triggers found" in result.output

    def test_lists_triggers(self, cli_runner, home_trigger):
        home_trigger(
            "npm-published",
            sidecar="description: New npm version\nargs: [package]\n",
        )

        result = cli_runner.invoke(app, ["triggers"])

        assert result.exit_code == 0
        assert "npm-published" in result.output
        assert "New npm version" in result.output
        assert "<package>" in result.output


class TestWatchCommands:
    def test_register_and_list(self, cli_runner, home_trigger):
        home_trigger("npm-published")

        watch_id = register_watch(
            cli_runner,
            "npm-published",
            "left-pad",
            "--prompt",
            "Upgrade to {{version}}",
            "--interval",
            "1m",
        )

        result = cli_runner.invoke(app, ["watch", "list"])
        assert result.exit_code == 0
        assert watch_id in result.output
        assert "left-pad" in result.output
        assert "active" in result.output
        assert "Total: 1 watch(es)" in result.output

    def test_register_unknown_trigger(self, cli_runner):
        result = cli_runner.invoke(
            app, ["watch", "register", "ghost", "--prompt", "x"]
        )
        assert result.exit_code == 1
        assert 'Trigger "ghost" not found' in result.output

    def test_register_requires_prompt(self, cli_runner, home_trigger):
        home_trigger("npm-published")

        result = cli_runner.invoke(app, ["watch", "register", "npm-published"])

        assert result.exit_code == 1
        assert "prompt" in result.output

    def test_register_bad_ttl(self, cli_runner, home_trigger):
        home_trigger("npm-published")

        result = cli_runner.invoke(
            app, ["watch", "register", "npm-published", "-p", "x", "--ttl", "later"]
        )

        assert result.exit_code == 1
        assert "Invalid duration" in result.output

    def test_register_ttl_out_of_range(self, cli_runner, home_trigger):
        home_trigger("npm-published")

        result = cli_runner.invoke(
            app, ["watch", "register", "npm-published", "-p", "x", "--ttl", "9000y"]
        )

        assert result.exit_code == 1
        assert "ttl is too large" in result.output

    def test_list_empty(self, cli_runner):
        result = cli_runner.invoke(app, ["watch", "list"])
        assert result.exit_code == 0
        assert "No watches found" in result.output

    def test_list_bad_status(self, cli_runner):
        result = cli_runner.invoke(app, ["watch", "list", "--status", "paused"])
        assert result.exit_code == 1
        assert "Unknown status" in result.output

    def test_status_json(self, cli_runner, home_trigger):
        home_trigger("npm-published")
        watch_id = register_watch(
            cli_runner, "npm-published", "left-pad", "-p", "Upgrade", "--cwd", "/srv"
        )

        result = cli_runner.invoke(app, ["watch", "status", watch_id, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["id"] == watch_id
        assert data["params"] == ["left-pad"]
        assert data["action"] == {"prompt": "Upgrade", "cwd": "/srv"}
        assert data["status"] == "active"
        assert data["lastCheck"] is None

    def test_status_table(self, cli_runner, home_trigger):
        home_trigger("npm-published")
        watch_id = register_watch(cli_runner, "npm-published", "-p", "Upgrade")

        result = cli_runner.invoke(app, ["watch", "status", watch_id])

        assert result.exit_code == 0
        assert f"Watch {watch_id}" in result.output
        assert "never" in result.output

    def test_status_missing(self, cli_runner):
        result = cli_runner.invoke(app, ["watch", "status", "w_missing0"])
        assert result.exit_code == 1
        assert "Watch not found: w_missing0" in result.output

    def test_cancel(self, cli_runner, home_trigger):
        home_trigger("npm-published")
        watch_id = register_watch(cli_runner, "npm-published", "-p", "Upgrade")

        result = cli_runner.invoke(app, ["watch", "cancel", watch_id])
        assert result.exit_code == 0
        assert f"Watch {watch_id} cancelled." in result.output

        again = cli_runner.invoke(app, ["watch", "cancel", watch_id])
        assert again.exit_code == 1
        assert "Cannot cancel watch" in again.output

        listed = cli_runner.invoke(app, ["watch", "list", "-s", "cancelled"])
        assert watch_id in listed.output

    def test_explicit_config(self, cli_runner, tmp_path):
        triggers = tmp_path / "my-triggers"
        triggers.mkdir()
        trigger = triggers / "custom"
        trigger.write_text("#!/bin/sh\nexit 1\n")
        trigger.chmod(0o755)
        config_path = tmp_path / "custom.toml"
        config_path.write_text(
            f'database_path = "{tmp_path / "custom.db"}"\n\n'
            f'[triggers]\ndirectory = "{triggers}"\n\n'
            '[defaults]\ninterval = "2m"\n'
        )

        watch_id = register_watch(
            cli_runner, "custom", "-p", "x", "--config", str(config_path)
        )

        assert (tmp_path / "custom.db").exists()
        result = cli_runner.invoke(
            app, ["watch", "status", watch_id, "--json", "-c", str(config_path)]
        )
        assert json.loads(result.output)["interval"] == "2m"


class TestResultsCommand:
    def _write_result(self, results_dir: Path, watch_id: str) -> None:
        runner = ActionRunner(results_dir.parent / "logs", results_dir)
        runner.persist_result(
            WatchResult(
                watch_id=watch_id,
                trigger="npm-published",
                params=["left-pad"],
                trigger_payload={"version": "2.0.0"},
                action=ActionOutcome(
                    prompt="Upgrade to 2.0.0",
                    working_directory="/tmp",
                    exit_code=0,
                    stdout="",
                    stderr="",
                    completed_at=datetime(2026, 3, 1, 12, 1, tzinfo=UTC),
                ),
                fired_at=datetime(2026, 3, 1, 12, 0, tzinfo=UTC),
            )
        )

    def test_empty(self, cli_runner):
        result = cli_runner.invoke(app, ["results"])
        assert result.exit_code == 0
        assert "No results found" in result.output

    def test_lists_pending_and_archived(self, cli_runner, vigil_home):
        results_dir = vigil_home / "results"
        self._write_result(results_dir, "w_pending0")
        self._write_result(results_dir / "archive", "w_archive0")

        pending_only = cli_runner.invoke(app, ["results"])
        assert "w_pending0" in pending_only.output
        assert "w_archive0" not in pending_only.output
        assert "Total: 1 result(s)" in pending_only.output

        everything = cli_runner.invoke(app, ["results", "--all"])
        assert "w_archive0" in everything.output
        assert "archived" in everything.output
        assert "Total: 2 result(s)" in everything.output


class TestToolsCommand:
    def test_list(self, cli_runner):
        result = cli_runner.invoke(app, ["tools", "list"])
        assert result.exit_code == 0
        for name in (
            "register_watch",
            "list_watches",
            "watch_status",
            "cancel_watch",
            "list_triggers",
        ):
            assert name in result.output

    def test_schema(self, cli_runner):
        result = cli_runner.invoke(app, ["tools", "schema", "register_watch"])
        assert result.exit_code == 0
        definition = json.loads(result.output)
        assert definition["name"] == "register_watch"
        assert definition["input_schema"]["required"] == ["trigger", "params", "action"]

    def test_call_register_and_list(self, cli_runner, home_trigger):
        home_trigger("npm-published")

        registered = cli_runner.invoke(
            app,
            [
                "tools",
                "call",
                "register_watch",
                "--input",
                json.dumps(
                    {
                        "trigger": "npm-published",
                        "params": ["left-pad"],
                        "action": {"prompt": "Upgrade"},
                    }
                ),
            ],
        )
        assert registered.exit_code == 0, registered.output
        watch_id = json.loads(registered.output)["watchId"]

        listed = cli_runner.invoke(app, ["tools", "call", "list_watches"])
        assert listed.exit_code == 0
        assert watch_id in listed.output

    def test_call_error_exits_nonzero(self, cli_runner):
        result = cli_runner.invoke(
            app,
            ["tools", "call", "watch_status", "--input", '{"watchId": "w_missing0"}'],
        )
        assert result.exit_code == 1
        assert "Watch not found" in result.output

    def test_unknown_tool(self, cli_runner):
        result = cli_runner.invoke(app, ["tools", "call", "nope"])
        assert result.exit_code == 1
        assert "Tool 'nope' not found" in result.output

    def test_invalid_input_json(self, cli_runner):
        result = cli_runner.invoke(
            app, ["tools", "call", "list_watches", "--input", "{bad"]
        )
        assert result.exit_code == 1
        assert "Invalid --input JSON" in result.output


class TestDaemonCommands:
    def test_status_when_stopped(self, cli_runner):
        result = cli_runner.invoke(app, ["daemon", "status"])
        assert result.exit_code == 0
        assert "stopped" in result.output

    def test_status_shows_watch_counts(self, cli_runner, home_trigger):
        home_trigger("npm-published")
        register_watch(cli_runner, "npm-published", "-p", "x")

        result = cli_runner.invoke(app, ["daemon", "status"])

        assert result.exit_code == 0
        assert "Watches" in result.output
        assert "Active" in result.output

    def test_stop_when_not_running(self, cli_runner):
        result = cli_runner.invoke(app, ["daemon", "stop"])
        assert result.exit_code == 0
        assert "Daemon is not running" in result.output

    def test_stop_removes_stale_pid_file(self, cli_runner):
        pid_path = get_pid_path()
        # Above any real pid_max
        write_pid_file(pid_path, pid=999999999)

        result = cli_runner.invoke(app, ["daemon", "stop"])

        assert result.exit_code == 0
        assert "stale PID file" in result.output
        assert not pid_path.exists()
