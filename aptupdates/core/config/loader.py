"""
Configuration loader — builds the RuntimeConfig for a process.

Sources, lowest precedence first:

    1. Built-in defaults (RuntimeConfig field defaults)
    2. Optional YAML file (--config, or APT_UPDATES_CONFIG)
    3. Environment variables (ZBX_DEBUG, ZBX_UPDATES_THRESHOLD_WARNING,
       APT_UPDATES_TIMEOUT)

The YAML may be flat or wrap its keys under ``apt_updates:``:

    apt_updates:
      debug: false
      warning_threshold: 10
      timeout: 15
      lists_dir: /var/lib/apt/lists
      classifier_workers: 1
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from aptupdates.core.errors import ConfigError
from aptupdates.core.models.config import MIN_TIMEOUT_SECONDS, RuntimeConfig

logger = logging.getLogger(__name__)

CONFIG_ENV = "APT_UPDATES_CONFIG"
DEBUG_ENV = "ZBX_DEBUG"
THRESHOLD_ENV = "ZBX_UPDATES_THRESHOLD_WARNING"
TIMEOUT_ENV = "APT_UPDATES_TIMEOUT"

# YAML key → RuntimeConfig field
_FILE_KEYS = {
    "debug": "debug_logging",
    "warning_threshold": "warning_threshold",
    "timeout": "timeout_seconds",
    "lists_dir": "lists_dir",
    "classifier_workers": "classifier_workers",
}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() == "true" or value.strip() == "1"


def _parse_int(name: str, value: str) -> int | None:
    try:
        return int(value.strip())
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, value)
        return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file into RuntimeConfig field names.

    Raises:
        ConfigError: The file is missing, unreadable or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    section = data.get("apt_updates", data)
    if not isinstance(section, dict):
        raise ConfigError(f"Expected 'apt_updates' to be a mapping in {path}")

    values: dict[str, Any] = {}
    for key, value in section.items():
        field_name = _FILE_KEYS.get(key)
        if field_name is None:
            logger.warning("Unknown config key %r in %s", key, path)
            continue
        values[field_name] = value
    return values


def read_environment(environ: Mapping[str, str]) -> dict[str, Any]:
    """Pick RuntimeConfig overrides out of ``environ``."""
    values: dict[str, Any] = {}

    if DEBUG_ENV in environ:
        values["debug_logging"] = _parse_bool(environ[DEBUG_ENV])

    if THRESHOLD_ENV in environ:
        threshold = _parse_int(THRESHOLD_ENV, environ[THRESHOLD_ENV])
        if threshold is not None:
            values["warning_threshold"] = threshold

    if TIMEOUT_ENV in environ:
        timeout = _parse_int(TIMEOUT_ENV, environ[TIMEOUT_ENV])
        if timeout is not None:
            values["timeout_seconds"] = timeout

    return values


def load_runtime_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> RuntimeConfig:
    """Build the process RuntimeConfig.

    Args:
        path: Explicit YAML config path. Falls back to $APT_UPDATES_CONFIG.
        environ: Environment mapping (default: ``os.environ``).

    Raises:
        ConfigError: The config file or a value in it is invalid.
    """
    environ = os.environ if environ is None else environ

    if path is None and environ.get(CONFIG_ENV):
        path = Path(environ[CONFIG_ENV])

    values: dict[str, Any] = {}
    if path is not None:
        values.update(read_config_file(path))
    values.update(read_environment(environ))

    timeout = values.get("timeout_seconds")
    if isinstance(timeout, int) and timeout < MIN_TIMEOUT_SECONDS:
        logger.info(
            "Timeout %ss is below the %ss minimum, using the minimum",
            timeout, MIN_TIMEOUT_SECONDS,
        )
        values["timeout_seconds"] = MIN_TIMEOUT_SECONDS

    try:
        config = RuntimeConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug("Runtime config: %s", config.model_dump())
    return config
