"""Unit tests for multi-instance queue aggregation."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from arrqueue.clients.aggregator import (
    RefetchingQueueCache,
    fetch_instance_queue,
    fetch_queues,
)
from arrqueue.clients.arr import ArrConnectionError, ArrQueueClient
from arrqueue.queue.models import MultiInstanceQueue, Service


def _client(instance_id: str, service: Service, records=None, error=None):
    client = MagicMock(spec=ArrQueueClient)
    client.instance_id = instance_id
    client.instance_name = instance_id.title()
    client.service = service
    client.get_queue = AsyncMock(return_value=records or [], side_effect=error)
    return client


class TestFetchInstanceQueue:
    """Tests for fetch_instance_queue()."""

    @pytest.mark.asyncio
    async def test_normalizes_records(self) -> None:
        client = _client("sonarr-main", Service.SONARR, [{"id": 1, "title": "A"}])

        queue = await fetch_instance_queue(client)

        assert queue.instance_id == "sonarr-main"
        assert queue.data[0].id == 1
        assert queue.data[0].instance_id == "sonarr-main"
        assert queue.data[0].service is Service.SONARR

    @pytest.mark.asyncio
    async def test_failure_yields_empty_queue(self) -> None:
        client = _client(
            "radarr-main", Service.RADARR, error=ArrConnectionError("down")
        )

        queue = await fetch_instance_queue(client)

        assert queue.data == ()
        assert queue.service is Service.RADARR


class TestFetchQueues:
    """Tests for fetch_queues()."""

    @pytest.mark.asyncio
    async def test_aggregates_in_instance_order(self) -> None:
        clients = [
            _client("sonarr-main", Service.SONARR, [{"id": 1}, {"id": 2}]),
            _client("radarr-main", Service.RADARR, error=ArrConnectionError("down")),
            _client("radarr-4k", Service.RADARR, [{"id": 1}]),
        ]

        view = await fetch_queues(clients)

        assert [i.instance_id for i in view.instances] == [
            "sonarr-main",
            "radarr-main",
            "radarr-4k",
        ]
        assert [(r.instance_id, r.id) for r in view.aggregated] == [
            ("sonarr-main", 1),
            ("sonarr-main", 2),
            ("radarr-4k", 1),
        ]
        assert view.total_count == 3


class TestRefetchingQueueCache:
    """Tests for RefetchingQueueCache."""

    @pytest.mark.asyncio
    async def test_invalidate_refetches(self) -> None:
        client = _client("sonarr-main", Service.SONARR, [{"id": 7}])
        cache = RefetchingQueueCache([client], view=MultiInstanceQueue.empty())

        await cache.invalidate()

        assert cache.stale is False
        assert [r.id for r in cache.read().aggregated] == [7]
        client.get_queue.assert_awaited_once()
