"""Aggregation of queues from every configured instance.

Instances are fetched concurrently. A failing instance contributes an empty
queue so one unreachable backend never hides the others.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from arrqueue.actions.cache import InMemoryQueueCache
from arrqueue.clients.arr import ArrClientError, ArrQueueClient
from arrqueue.queue.models import InstanceQueue, MultiInstanceQueue
from arrqueue.queue.normalize import normalize_queue_item

logger = logging.getLogger(__name__)


async def fetch_instance_queue(client: ArrQueueClient) -> InstanceQueue:
    """Fetch and normalize one instance's queue.

    Returns:
        The instance queue; empty when the instance cannot be reached.
    """
    try:
        raw_records = await client.get_queue()
    except ArrClientError as e:
        logger.warning(
            "Failed to fetch queue from %s (%s): %s",
            client.instance_name,
            client.instance_id,
            e,
            extra={"service": client.service.value},
        )
        raw_records = []

    records = tuple(
        normalize_queue_item(
            raw, client.service, client.instance_id, client.instance_name
        )
        for raw in raw_records
    )
    return InstanceQueue(
        instance_id=client.instance_id,
        instance_name=client.instance_name,
        service=client.service,
        data=records,
    )


async def fetch_queues(clients: Sequence[ArrQueueClient]) -> MultiInstanceQueue:
    """Fetch every instance's queue concurrently and aggregate them.

    Args:
        clients: One client per enabled instance.

    Returns:
        MultiInstanceQueue with per-instance lists, the flattened aggregate
        in instance order, and its total count.
    """
    instances = tuple(
        await asyncio.gather(*(fetch_instance_queue(client) for client in clients))
    )
    aggregated = tuple(record for instance in instances for record in instance.data)
    logger.debug(
        "Aggregated %d queue records from %d instance(s)",
        len(aggregated),
        len(instances),
        extra={"record_count": len(aggregated)},
    )
    return MultiInstanceQueue(
        instances=instances, aggregated=aggregated, total_count=len(aggregated)
    )


class RefetchingQueueCache(InMemoryQueueCache):
    """Queue cache whose invalidation refetches every instance."""

    def __init__(
        self,
        clients: Sequence[ArrQueueClient],
        view: MultiInstanceQueue | None = None,
    ) -> None:
        super().__init__(view)
        self._clients = clients

    async def refresh(self) -> MultiInstanceQueue:
        """Replace the cached view with freshly fetched backend state."""
        view = await fetch_queues(self._clients)
        self.write(view)
        self.stale = False
        return view

    async def invalidate(self) -> None:
        self.stale = True
        await self.refresh()
