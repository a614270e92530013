"""Configuration file management for networth."""

import os
import tomllib
from pathlib import Path
from typing import Any

import tomli_w

OUTPUT_MODES = ("end-only", "yearly", "monthly", "json")


def get_xdg_config_home() -> Path:
    """Get XDG config directory, with fallback to ~/.config."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


def get_config_path() -> Path:
    """Get the config file path (XDG compliant).

    Returns:
        Path to the config file.
    """
    return get_xdg_config_home() / "networth" / "config.toml"


def create_default_config(config_path: Path | None = None) -> None:
    """Create default config file with secure permissions.

    Args:
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    default_config: dict[str, Any] = {
        "output": "yearly",
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(default_config, f)

    os.chmod(config_path, 0o600)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Configuration dictionary, empty if the file doesn't exist yet.
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return {}

    with open(config_path, "rb") as f:
        return tomllib.load(f)


def save_config(config: dict[str, Any], config_path: Path | None = None) -> None:
    """Save configuration to TOML file.

    Args:
        config: Configuration dictionary.
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    os.chmod(config_path, 0o600)


def get_setting(key: str, config_path: Path | None = None) -> Any | None:
    """Get a single setting.

    Args:
        key: Setting name (e.g. "default_plan").
        config_path: Path to config file. If None, uses default location.

    Returns:
        The setting's value or None if it isn't set.
    """
    return load_config(config_path).get(key)


def set_setting(key: str, value: Any, config_path: Path | None = None) -> None:
    """Add or update a single setting, keeping the others.

    Args:
        key: Setting name.
        value: New value; must be TOML serializable.
        config_path: Path to config file. If None, uses default location.
    """
    config = load_config(config_path)
    config[key] = value
    save_config(config, config_path)
