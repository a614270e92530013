"""Tests for networth.config file management."""

import stat
from pathlib import Path

import pytest

from networth.config import (
    create_default_config,
    get_config_path,
    get_setting,
    load_config,
    save_config,
    set_setting,
)


class TestConfigPath:
    """Tests for get_config_path."""

    def test_uses_xdg_config_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should live under XDG_CONFIG_HOME when set."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert get_config_path() == tmp_path / "networth" / "config.toml"

    def test_falls_back_to_dot_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should fall back to ~/.config."""
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        assert get_config_path() == tmp_path / ".config" / "networth" / "config.toml"


class TestLoadAndSave:
    """Tests for loading and saving the config file."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """Should treat a missing config as no settings."""
        assert load_config(tmp_path / "missing.toml") == {}

    def test_create_default(self, tmp_path: Path) -> None:
        """Should create the file with secure permissions."""
        config_path = tmp_path / "nested" / "config.toml"

        create_default_config(config_path)

        assert load_config(config_path) == {"output": "yearly"}
        assert stat.S_IMODE(config_path.stat().st_mode) == 0o600

    def test_save_round_trip(self, tmp_path: Path) -> None:
        """Should save and reload the same settings."""
        config_path = tmp_path / "config.toml"

        save_config({"default_plan": "/plans/plan.toml", "output": "json"}, config_path)

        assert load_config(config_path) == {"default_plan": "/plans/plan.toml", "output": "json"}


class TestSettings:
    """Tests for get_setting and set_setting."""

    def test_get_missing_setting(self, tmp_path: Path) -> None:
        """Should return None for unset keys."""
        assert get_setting("default_plan", tmp_path / "config.toml") is None

    def test_set_keeps_other_settings(self, tmp_path: Path) -> None:
        """Should update one key without losing the rest."""
        config_path = tmp_path / "config.toml"
        create_default_config(config_path)

        set_setting("default_plan", "/plans/plan.toml", config_path)

        assert get_setting("default_plan", config_path) == "/plans/plan.toml"
        assert get_setting("output", config_path) == "yearly"
