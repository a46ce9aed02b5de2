"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to functions)
2. Environment variables (ARRQUEUE_*)
3. Config file (~/.arrqueue/config.toml)
4. Default values

Environment variables:
- ARRQUEUE_CONFIG_PATH: Path to config file (overrides default location)
- ARRQUEUE_LOG_LEVEL: Log level (debug, info, warning, error)
- ARRQUEUE_LOG_FILE: Path to log file
- ARRQUEUE_LOG_FORMAT: Log format (text or json)

Example config file:

    [logging]
    level = "info"

    [[instances]]
    id = "sonarr-main"
    name = "Sonarr"
    service = "sonarr"
    url = "http://localhost:8989"
    api_key = "..."
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from arrqueue.config.env import EnvReader
from arrqueue.config.models import ArrQueueConfig, InstanceConfig, LoggingConfig
from arrqueue.queue.models import Service

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".arrqueue"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"


class ConfigError(Exception):
    """Raised when the config file cannot be read or is invalid."""


def get_default_config_path(env: EnvReader | None = None) -> Path:
    """Get the config file path, honoring ARRQUEUE_CONFIG_PATH."""
    reader = env or EnvReader()
    return reader.get_path("ARRQUEUE_CONFIG_PATH", DEFAULT_CONFIG_FILE)


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file.

    Args:
        path: Path to config file.

    Returns:
        Parsed configuration dict. Empty dict if the file doesn't exist.

    Raises:
        ConfigError: If the file exists but cannot be read or parsed.
    """
    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}

    try:
        with path.open("rb") as f:
            config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    logger.debug("Loaded config from %s", path)
    return config


def _parse_instance(index: int, data: Any) -> InstanceConfig:
    if not isinstance(data, dict):
        raise ConfigError(f"instances[{index}] must be a table")
    try:
        service = Service(str(data.get("service", "")).lower())
    except ValueError as e:
        raise ConfigError(
            f"instances[{index}]: service must be 'sonarr' or 'radarr', "
            f"got {data.get('service')!r}"
        ) from e

    instance_id = data.get("id")
    if not isinstance(instance_id, str):
        raise ConfigError(f"instances[{index}]: id is required")

    try:
        return InstanceConfig(
            id=instance_id,
            name=str(data.get("name") or instance_id),
            service=service,
            url=str(data.get("url", "")).rstrip("/"),
            api_key=str(data.get("api_key", "")),
            enabled=bool(data.get("enabled", True)),
            timeout_seconds=float(data.get("timeout_seconds", 30.0)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"instances[{index}]: {e}") from e


def get_config(
    config_path: Path | None = None,
    env: EnvReader | None = None,
    # CLI overrides (highest precedence)
    log_level: str | None = None,
    log_file: Path | None = None,
    log_json: bool | None = None,
) -> ArrQueueConfig:
    """Get arrqueue configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides ARRQUEUE_CONFIG_PATH).
        env: Environment reader; reads os.environ when None.
        log_level: CLI override for the log level.
        log_file: CLI override for the log file.
        log_json: CLI override selecting JSON log output.

    Returns:
        ArrQueueConfig with merged configuration.

    Raises:
        ConfigError: If the config file or any of its values is invalid.
    """
    reader = env or EnvReader()
    path = config_path or get_default_config_path(reader)
    file_config = load_config_file(path)

    raw_instances = file_config.get("instances", [])
    if not isinstance(raw_instances, list):
        raise ConfigError("instances must be an array of tables ([[instances]])")
    instances = [_parse_instance(i, data) for i, data in enumerate(raw_instances)]

    logging_file = file_config.get("logging", {})
    if not isinstance(logging_file, dict):
        raise ConfigError("logging must be a table ([logging])")
    file_log_path = logging_file.get("file")
    try:
        logging_config = LoggingConfig(
            level=(
                log_level
                or reader.get_str("ARRQUEUE_LOG_LEVEL")
                or logging_file.get("level", "info")
            ),
            file=(
                log_file
                or reader.get_path("ARRQUEUE_LOG_FILE")
                or (Path(file_log_path).expanduser() if file_log_path else None)
            ),
            format=(
                ("json" if log_json else None)
                or reader.get_str("ARRQUEUE_LOG_FORMAT")
                or logging_file.get("format", "text")
            ),
            include_stderr=bool(logging_file.get("include_stderr", False)),
            max_bytes=int(logging_file.get("max_bytes", 10_485_760)),
            backup_count=int(logging_file.get("backup_count", 5)),
        )
        return ArrQueueConfig(instances=instances, logging=logging_config)
    except (TypeError, ValueError) as e:
        raise ConfigError(str(e)) from e
