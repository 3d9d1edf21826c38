"""Tests for trigger discovery and execution."""

from pathlib import Path

from vigil.watches.triggers import TriggerRunner


class TestExecute:
    """Tests for TriggerRunner.execute()."""

    async def test_exit_zero_with_json_fires(self, make_trigger, trigger_runner):
        make_trigger("always", """echo '{"version": "2.0.0", "count": 3}'""")

        outcome = await trigger_runner.execute("always", [])

        assert outcome.fired is True
        assert outcome.payload == {"version": "2.0.0", "count": 3}
        assert outcome.error is None

    async def test_params_passed_as_argv(self, make_trigger, trigger_runner):
        make_trigger("argv", 'printf \'{"first": "%s", "second": "%s"}\' "$1" "$2"')

        outcome = await trigger_runner.execute("argv", ["left-pad", "with space"])

        assert outcome.fired is True
        assert outcome.payload == {"first": "left-pad", "second": "with space"}

    async def test_nonzero_exit_not_fired(self, make_trigger, trigger_runner):
        make_trigger("never", "echo 'still waiting' >&2\nexit 1")

        outcome = await trigger_runner.execute("never", [])

        assert outcome.fired is False
        assert outcome.payload is None
        assert outcome.error is None
        assert outcome.is_fault is False

    async def test_exit_zero_with_invalid_json(self, make_trigger, trigger_runner):
        make_trigger("garbled", "echo 'not json'")

        outcome = await trigger_runner.execute("garbled", [])

        assert outcome.fired is True
        assert outcome.payload == {}
        assert outcome.error is not None
        assert "not valid JSON" in outcome.error
        assert outcome.is_fault is False

    async def test_exit_zero_with_json_array(self, make_trigger, trigger_runner):
        make_trigger("listy", "echo '[1, 2, 3]'")

        outcome = await trigger_runner.execute("listy", [])

        assert outcome.fired is True
        assert outcome.payload == {}
        assert "not a JSON object" in (outcome.error or "")

    async def test_missing_trigger_is_fault(self, trigger_runner):
        outcome = await trigger_runner.execute("nope", [])

        assert outcome.fired is False
        assert outcome.is_fault is True
        assert "not found" in (outcome.error or "")

    async def test_non_executable_is_fault(self, make_trigger, trigger_runner):
        make_trigger("plain", "exit 0", executable=False)

        outcome = await trigger_runner.execute("plain", [])

        assert outcome.is_fault is True

    async def test_timeout_is_fault(self, make_trigger, triggers_dir):
        make_trigger("slow", "exec sleep 5")
        runner = TriggerRunner(triggers_dir, timeout=0.3)

        outcome = await runner.execute("slow", [])

        assert outcome.fired is False
        assert outcome.is_fault is True
        assert "timed out" in (outcome.error or "")

    async def test_timeout_kills_background_children(
        self, make_trigger, triggers_dir, tmp_path, wait_until_dead
    ):
        pid_file = tmp_path / "child.pid"
        make_trigger("spawner", f'sleep 30 &\necho $! > "{pid_file}"\nwait')
        runner = TriggerRunner(triggers_dir, timeout=0.5)

        outcome = await runner.execute("spawner", [])

        assert outcome.is_fault is True
        assert await wait_until_dead(int(pid_file.read_text()))

    async def test_stem_match(self, make_trigger, trigger_runner):
        make_trigger("check-npm.sh", """echo '{"ok": true}'""")

        outcome = await trigger_runner.execute("check-npm", [])

        assert outcome.fired is True
        assert outcome.payload == {"ok": True}


class TestResolve:
    """Tests for TriggerRunner.resolve()/exists()."""

    def test_exists(self, make_trigger, trigger_runner):
        make_trigger("present", "exit 1")

        assert trigger_runner.exists("present") is True
        assert trigger_runner.exists("absent") is False

    def test_rejects_path_traversal(self, make_trigger, trigger_runner):
        make_trigger("present", "exit 1")

        assert trigger_runner.resolve("../present") is None
        assert trigger_runner.resolve("sub/present") is None
        assert trigger_runner.resolve(".hidden") is None
        assert trigger_runner.resolve("") is None

    def test_sidecar_is_not_a_trigger(self, triggers_dir: Path, trigger_runner):
        sidecar = triggers_dir / "meta.yaml"
        sidecar.write_text("description: not runnable")
        sidecar.chmod(0o755)

        assert trigger_runner.resolve("meta.yaml") is None
        assert trigger_runner.exists("meta") is False

    def test_missing_directory(self, tmp_path: Path):
        runner = TriggerRunner(tmp_path / "does-not-exist")

        assert runner.exists("anything") is False
        assert runner.list() == []


class TestList:
    """Tests for TriggerRunner.list() and sidecar metadata."""

    def test_lists_executables_sorted(self, make_trigger, trigger_runner):
        make_trigger("zeta", "exit 1")
        make_trigger("alpha", "exit 1")
        make_trigger("not-exec", "exit 1", executable=False)

        names = [t.name for t in trigger_runner.list()]
        assert names == ["alpha", "zeta"]

    def test_skips_dotfiles(self, make_trigger, trigger_runner):
        make_trigger(".secret", "exit 1")
        make_trigger("visible", "exit 1")

        assert [t.name for t in trigger_runner.list()] == ["visible"]

    def test_yaml_sidecar(self, make_trigger, trigger_runner):
        make_trigger(
            "gh-pr-merged",
            "exit 1",
            sidecar=(
                "description: Fires when a PR is merged\n"
                "args:\n"
                "  - name: repo\n"
                "    description: owner/name\n"
                "  - name: pr\n"
                "defaultInterval: 5m\n"
            ),
        )

        (trigger,) = trigger_runner.list()
        assert trigger.name == "gh-pr-merged"
        assert trigger.description == "Fires when a PR is merged"
        assert [arg.name for arg in trigger.metadata.args] == ["repo", "pr"]
        assert trigger.metadata.args[0].description == "owner/name"
        assert trigger.default_interval == "5m"
        assert trigger.usage == "gh-pr-merged <repo> <pr>"

    def test_json_sidecar(self, make_trigger, trigger_runner):
        make_trigger(
            "npm-published",
            "exit 1",
            sidecar='{"description": "Package published", "default_interval": "1m"}',
            sidecar_suffix=".json",
        )

        trigger = trigger_runner.get("npm-published")
        assert trigger is not None
        assert trigger.description == "Package published"
        assert trigger.default_interval == "1m"
        assert trigger.usage is None

    def test_invalid_sidecar_is_ignored(self, make_trigger, trigger_runner):
        make_trigger("broken", "exit 1", sidecar="description: [unclosed")

        (trigger,) = trigger_runner.list()
        assert trigger.name == "broken"
        assert trigger.metadata is None

    def test_without_sidecar(self, make_trigger, trigger_runner):
        make_trigger("bare", "exit 1")

        trigger = trigger_runner.get("bare")
        assert trigger is not None
        assert trigger.metadata is None
        assert trigger.to_dict() == {"name": "bare"}
