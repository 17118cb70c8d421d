"""Configuration management for dirbak."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from dirbak.blacklist import BLACKLIST_FILE_NAME
from dirbak.rotation import DEFAULT_KEEP

DEFAULT_TEMP_DIRECTORY = "tmp"
DEFAULT_LOG_LEVEL = "INFO"


def dirbak_home() -> Path:
    """Return the dirbak home directory. Defaults to ~/.dirbak/, overridable via DIRBAK_HOME."""
    return Path(os.environ.get("DIRBAK_HOME", Path.home() / ".dirbak"))


def ensure_home() -> Path:
    """Ensure the dirbak home directory exists and return its path."""
    home = dirbak_home()
    home.mkdir(parents=True, exist_ok=True)
    return home


def config_path() -> Path:
    """Return path to the global config.yaml."""
    return dirbak_home() / "config.yaml"


def default_blacklist_path() -> Path:
    """Return the blacklist file used when none is given."""
    return dirbak_home() / BLACKLIST_FILE_NAME


def load_config() -> dict[str, Any] | None:
    """Load the global config.yaml. Returns None if it doesn't exist."""
    path = config_path()
    if not path.exists():
        return None
    with open(path) as file:
        return yaml.safe_load(file)


def save_config(config: dict[str, Any]) -> None:
    """Save the global config.yaml."""
    ensure_home()
    with open(config_path(), "w") as file:
        yaml.dump(config, file, default_flow_style=False, allow_unicode=True)


def default_config() -> dict[str, Any]:
    """Return a default config structure."""
    return {
        "defaults": {
            "destination": None,
            "temp_directory": DEFAULT_TEMP_DIRECTORY,
            "blacklist": str(default_blacklist_path()),
            "keep": DEFAULT_KEEP,
            "seven_zip_directory": None,
        },
        "settings": {
            "log_level": DEFAULT_LOG_LEVEL,
        },
    }


def resolve_setting(
    cli_value: Any,
    key: str,
    config: dict[str, Any] | None = None,
    section: str = "defaults",
) -> Any:
    """Pick a setting: command line value, then config.yaml, then built-in default."""
    if cli_value is not None:
        return cli_value
    if config:
        value = (config.get(section) or {}).get(key)
        if value is not None:
            return value
    return default_config()[section].get(key)
