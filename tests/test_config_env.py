"""
Tests for layered .env loading.
"""

import os

import pytest

from pipewatch.core.config.env import load_layered_env


@pytest.fixture
def unset_env(monkeypatch):
    """Unset a variable for the test and remove it again afterwards."""

    def _unset(name: str) -> None:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)

    return _unset


class TestLoadLayeredEnv:
    def test_user_env_loaded(self, tmp_path, unset_env):
        unset_env("PIPEWATCH_TEST_A")
        user_env = tmp_path / "user.env"
        user_env.write_text("PIPEWATCH_TEST_A=from-user\n")

        load_layered_env(user_env_paths=[user_env], project_env_paths=[])

        assert os.environ["PIPEWATCH_TEST_A"] == "from-user"

    def test_project_overrides_user(self, tmp_path, unset_env):
        unset_env("PIPEWATCH_TEST_B")
        user_env = tmp_path / "user.env"
        user_env.write_text("PIPEWATCH_TEST_B=from-user\n")
        project_env = tmp_path / "project.env"
        project_env.write_text("PIPEWATCH_TEST_B=from-project\n")

        load_layered_env(user_env_paths=[user_env], project_env_paths=[project_env])

        assert os.environ["PIPEWATCH_TEST_B"] == "from-project"

    def test_real_environment_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PIPEWATCH_TEST_C", "from-shell")
        project_env = tmp_path / ".env"
        project_env.write_text("PIPEWATCH_TEST_C=from-project\n")

        load_layered_env(user_env_paths=[], project_env_paths=[project_env])

        assert os.environ["PIPEWATCH_TEST_C"] == "from-shell"

    def test_defaults_use_xdg_and_project_dir(self, tmp_path, monkeypatch, unset_env):
        unset_env("PIPEWATCH_TEST_D")
        xdg = tmp_path / "xdg"
        (xdg / "pipewatch").mkdir(parents=True)
        (xdg / "pipewatch" / ".env").write_text("PIPEWATCH_TEST_D=xdg\n")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))

        load_layered_env(project_dir=tmp_path)

        assert os.environ["PIPEWATCH_TEST_D"] == "xdg"

    def test_missing_files_are_ignored(self, tmp_path):
        load_layered_env(
            user_env_paths=[tmp_path / "none"], project_env_paths=[tmp_path / "none2"]
        )
