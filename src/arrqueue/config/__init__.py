"""Configuration for arrqueue: instances and logging."""

from arrqueue.config.env import EnvReader
from arrqueue.config.loader import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    get_config,
    get_default_config_path,
    load_config_file,
)
from arrqueue.config.models import ArrQueueConfig, InstanceConfig, LoggingConfig

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ArrQueueConfig",
    "ConfigError",
    "EnvReader",
    "InstanceConfig",
    "LoggingConfig",
    "get_config",
    "get_default_config_path",
    "load_config_file",
]
