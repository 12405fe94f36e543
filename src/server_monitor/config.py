"""Configuration loading for the server monitor."""

import logging
import os
from pathlib import Path

import yaml

from .monitoring.config import MonitoringConfig

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised when monitor configuration cannot be loaded or is invalid."""


def _read_yaml(config_path: Path) -> dict:
    """Load a YAML mapping from disk.

    Raises:
        ConfigError: If the file is missing, unparsable, or not a mapping.
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse configuration YAML: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {config_path}")

    logger.debug(f"Loaded configuration from {config_path}")
    return data


def _apply_env_overrides(data: dict) -> dict:
    """Overlay MONITOR_* environment variables on file settings."""
    env_paths = os.getenv("MONITOR_LOG_PATHS")
    if env_paths:
        data["log_paths"] = [p for p in env_paths.split(os.pathsep) if p]

    env_interval = os.getenv("MONITOR_POLL_INTERVAL")
    if env_interval:
        data["poll_interval_seconds"] = env_interval

    env_status_dir = os.getenv("MONITOR_STATUS_DIR")
    if env_status_dir:
        data["status_dir"] = env_status_dir

    env_level = os.getenv("MONITOR_LOG_LEVEL")
    if env_level:
        data["log_level"] = env_level

    return data


def build_config(data: dict) -> MonitoringConfig:
    """Validate a settings mapping and build a MonitoringConfig.

    Raises:
        ConfigError: On unknown keys or invalid values.
    """
    known = set(MonitoringConfig.__dataclass_fields__)
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    log_paths = data.get("log_paths", [])
    if isinstance(log_paths, str):
        log_paths = [log_paths]
    if not isinstance(log_paths, list):
        raise ConfigError("log_paths must be a list of paths")

    try:
        poll_interval = float(data.get("poll_interval_seconds", 5))
        chunk_size = int(data.get("chunk_size_bytes", 64 * 1024))
        backoff_max = int(data.get("error_backoff_max_seconds", 300))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric configuration value: {e}") from e

    if poll_interval <= 0:
        raise ConfigError(f"poll_interval_seconds must be positive, got {poll_interval}")
    if chunk_size <= 0:
        raise ConfigError(f"chunk_size_bytes must be positive, got {chunk_size}")

    log_level = str(data.get("log_level", "INFO")).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ConfigError(
            f"Invalid log_level '{log_level}'. Allowed levels: {', '.join(VALID_LOG_LEVELS)}"
        )

    status_dir = data.get("status_dir")

    return MonitoringConfig(
        log_paths=[str(p) for p in log_paths],
        poll_interval_seconds=poll_interval,
        chunk_size_bytes=chunk_size,
        status_dir=str(status_dir) if status_dir else None,
        error_backoff_max_seconds=backoff_max,
        log_level=log_level,
    )


def load_config(config_path: str | Path | None = None) -> MonitoringConfig:
    """Load monitor configuration from YAML and the environment.

    Args:
        config_path: Optional YAML file. Environment variables
            (MONITOR_LOG_PATHS, MONITOR_POLL_INTERVAL, MONITOR_STATUS_DIR,
            MONITOR_LOG_LEVEL) take precedence over file values.

    Returns:
        Validated configuration.

    Raises:
        ConfigError: If the file cannot be read or a value is invalid.
    """
    data = _read_yaml(Path(config_path)) if config_path else {}
    return build_config(_apply_env_overrides(data))
