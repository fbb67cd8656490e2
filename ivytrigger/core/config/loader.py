"""
Configuration loader — reads trigger.yml into a TriggerConfig.

Reads YAML, validates against the Pydantic schema, and returns the
typed config. Relative paths inside the file are resolved later,
against the directory holding it.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from ivytrigger.core.models.trigger import TriggerConfig

logger = logging.getLogger(__name__)

# Default config filename
TRIGGER_CONFIG_FILE = "trigger.yml"


class ConfigError(Exception):
    """Raised when trigger configuration is invalid or missing."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for trigger.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to trigger.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / TRIGGER_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> TriggerConfig:
    """Load and validate trigger configuration.

    Args:
        path: Explicit path to trigger.yml. If None, searches upward.

    Returns:
        Validated TriggerConfig model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(f"No {TRIGGER_CONFIG_FILE} found. Specify one with --config.")

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading trigger config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "trigger" key or be flat
    trigger_data = data["trigger"] if isinstance(data.get("trigger"), dict) else data

    try:
        config = TriggerConfig.model_validate(trigger_data)
    except Exception as e:
        raise ConfigError(f"Invalid trigger configuration: {e}") from e

    if config.settings_file and config.settings_url:
        raise ConfigError("Set only one of 'settings_file' and 'settings_url'")

    logger.info("Loaded trigger '%s' from %s", config.namespace, path)
    return config


def config_dir(config_path: Path) -> Path:
    """Get the directory relative config paths are resolved against."""
    return config_path.parent.resolve()
