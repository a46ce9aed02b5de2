"""Shared test fixtures for arrqueue."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from click.testing import CliRunner

from arrqueue.config.models import ArrQueueConfig, InstanceConfig, LoggingConfig
from arrqueue.queue.models import (
    ActionCapabilities,
    InstanceQueue,
    MultiInstanceQueue,
    QueueRecord,
    Service,
    StatusMessage,
)

RecordFactory = Callable[..., QueueRecord]


def _make_record(**overrides: Any) -> QueueRecord:
    values: dict[str, Any] = {
        "service": Service.SONARR,
        "instance_id": "sonarr-main",
        "instance_name": "Sonarr",
        "id": 1,
        "title": "Show.S01E01.1080p.WEB-DL",
        "status": "downloading",
        "size": 1000,
        "sizeleft": 500,
    }
    values.update(overrides)
    messages = values.get("status_messages")
    if messages and not isinstance(messages[0], StatusMessage):
        # Allow [("title", ["message", ...]), ...] shorthand
        values["status_messages"] = tuple(
            StatusMessage(title=title, messages=tuple(entries))
            for title, entries in messages
        )
    elif messages is not None:
        values["status_messages"] = tuple(messages)
    return QueueRecord(**values)


@pytest.fixture
def make_record() -> RecordFactory:
    """Return a factory building QueueRecords with sensible defaults."""
    return _make_record


@pytest.fixture
def capabilities() -> Callable[..., ActionCapabilities]:
    """Return a factory for ActionCapabilities."""

    def factory(**kwargs: Any) -> ActionCapabilities:
        return ActionCapabilities(**kwargs)

    return factory


@pytest.fixture
def make_view() -> Callable[[list[QueueRecord]], MultiInstanceQueue]:
    """Return a factory building a MultiInstanceQueue from records."""

    def factory(records: list[QueueRecord]) -> MultiInstanceQueue:
        instances: dict[str, list[QueueRecord]] = {}
        for record in records:
            instances.setdefault(record.instance_id, []).append(record)
        return MultiInstanceQueue(
            instances=tuple(
                InstanceQueue(
                    instance_id=instance_id,
                    instance_name=members[0].instance_name,
                    service=members[0].service,
                    data=tuple(members),
                )
                for instance_id, members in instances.items()
            ),
            aggregated=tuple(records),
            total_count=len(records),
        )

    return factory


@pytest.fixture
def sonarr_instance() -> InstanceConfig:
    return InstanceConfig(
        id="sonarr-main",
        name="Sonarr",
        service=Service.SONARR,
        url="http://sonarr.local:8989",
        api_key="sonarr-key",  # pragma: allowlist secret
    )


@pytest.fixture
def radarr_instance() -> InstanceConfig:
    return InstanceConfig(
        id="radarr-main",
        name="Radarr",
        service=Service.RADARR,
        url="http://radarr.local:7878",
        api_key="radarr-key",  # pragma: allowlist secret
    )


@pytest.fixture
def app_config(
    sonarr_instance: InstanceConfig, radarr_instance: InstanceConfig
) -> ArrQueueConfig:
    """Config with one Sonarr and one Radarr instance."""
    return ArrQueueConfig(
        instances=[sonarr_instance, radarr_instance],
        logging=LoggingConfig(),
    )


@pytest.fixture
def runner() -> CliRunner:
    """Click test runner."""
    return CliRunner()
