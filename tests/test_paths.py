"""Tests for path management."""

from pathlib import Path

from vigil.config.paths import (
    ENV_VAR,
    ensure_directories,
    get_all_paths,
    get_archive_path,
    get_config_path,
    get_database_path,
    get_logs_path,
    get_pid_path,
    get_results_path,
    get_service_logs_path,
    get_triggers_path,
    get_vigil_home,
)


class TestGetVigilHome:
    """Tests for get_vigil_home()."""

    def test_default_is_home_dot_vigil(self, monkeypatch):
        monkeypatch.delenv(ENV_VAR, raising=False)
        get_vigil_home.cache_clear()

        assert get_vigil_home() == Path.home() / ".vigil"

    def test_respects_env_var(self, monkeypatch, tmp_path):
        custom_path = tmp_path / "custom-vigil"
        monkeypatch.setenv(ENV_VAR, str(custom_path))
        get_vigil_home.cache_clear()

        assert get_vigil_home() == custom_path

    def test_expands_tilde_in_env_var(self, monkeypatch):
        monkeypatch.setenv(ENV_VAR, "~/my-vigil")
        get_vigil_home.cache_clear()

        assert get_vigil_home() == (Path.home() / "my-vigil").resolve()


class TestDerivedPaths:
    def test_layout(self, monkeypatch, tmp_path):
        monkeypatch.setenv(ENV_VAR, str(tmp_path))
        get_vigil_home.cache_clear()

        assert get_config_path() == tmp_path / "config.toml"
        assert get_database_path() == tmp_path / "watches.db"
        assert get_results_path() == tmp_path / "results"
        assert get_archive_path() == tmp_path / "results" / "archive"
        assert get_logs_path() == tmp_path / "logs"
        assert get_service_logs_path() == tmp_path / "logs" / "daemon"
        assert get_triggers_path() == tmp_path / "triggers"
        assert get_pid_path() == tmp_path / "run" / "vigil.pid"

    def test_all_paths_under_home(self, vigil_home):
        paths = get_all_paths()

        assert set(paths) == {
            "home",
            "config",
            "database",
            "results",
            "archive",
            "logs",
            "service_logs",
            "triggers",
            "run",
            "pid",
        }
        for path in paths.values():
            assert path.is_relative_to(vigil_home.resolve())

    def test_ensure_directories(self, vigil_home):
        ensure_directories()

        assert get_results_path().is_dir()
        assert get_archive_path().is_dir()
        assert get_logs_path().is_dir()
        assert get_triggers_path().is_dir()
        assert get_pid_path().parent.is_dir()
