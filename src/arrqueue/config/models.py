"""Configuration data models for arrqueue.

Dataclasses validated in __post_init__ so an invalid config file fails at
load time rather than on first use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from arrqueue.queue.models import Service


@dataclass(frozen=True)
class InstanceConfig:
    """Connection settings for one Sonarr or Radarr instance."""

    id: str
    name: str
    service: Service
    url: str
    api_key: str
    enabled: bool = True

    # Per-request timeout for the instance's HTTP client
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.id.strip():
            raise ValueError("instance id must not be empty")
        if not self.url.startswith(("http://", "https://")):
            raise ValueError(
                f"instance {self.id}: url must start with http:// or https://, "
                f"got {self.url!r}"
            )
        if not self.api_key:
            raise ValueError(f"instance {self.id}: api_key must not be empty")
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"instance {self.id}: timeout_seconds must be positive, "
                f"got {self.timeout_seconds}"
            )


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class ArrQueueConfig:
    """Main configuration object."""

    instances: list[InstanceConfig] = field(default_factory=list)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        """Validate configuration."""
        seen: set[str] = set()
        for instance in self.instances:
            if instance.id in seen:
                raise ValueError(f"duplicate instance id: {instance.id}")
            seen.add(instance.id)

    @property
    def enabled_instances(self) -> list[InstanceConfig]:
        return [instance for instance in self.instances if instance.enabled]

    def get_instance(self, instance_id: str) -> InstanceConfig | None:
        for instance in self.instances:
            if instance.id == instance_id:
                return instance
        return None
