"""Remote call implementations backed by ArrQueueClient instances.

ArrRemote.single_call and ArrRemote.bulk_call satisfy the RemoteSingleCall
and RemoteBulkCall contracts used by QueueActionOrchestrator.

Retry is a removal without blocklisting, which makes the backend grab the
release again. Removal honors the caller's options and may be followed by a
search for the same title. Manual import works on a whole download and is
only offered as a single call.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from arrqueue.clients.arr import ArrClientError, ArrManualImportError, ArrQueueClient
from arrqueue.queue.models import QueueAction, QueueItemId, RemoteCallOptions, Service
from arrqueue.queue.normalize import parse_queue_id

logger = logging.getLogger(__name__)


class ArrRemote:
    """Dispatches planned queue actions to the owning instance client."""

    def __init__(self, clients: Mapping[str, ArrQueueClient]) -> None:
        """Initialize with a mapping of instance id to client."""
        self._clients = clients

    def _client_for(self, instance_id: str, service: Service) -> ArrQueueClient:
        client = self._clients.get(instance_id)
        if client is None:
            raise ArrClientError(f"Unknown instance: {instance_id}")
        if client.service is not service:
            raise ArrClientError(
                f"Instance {instance_id} is {client.service.value}, not {service.value}"
            )
        return client

    @staticmethod
    def _queue_id(item_id: QueueItemId) -> int:
        queue_id = parse_queue_id(item_id)
        if queue_id is None:
            raise ArrClientError(f"Invalid queue identifier: {item_id!r}")
        return queue_id

    async def single_call(
        self,
        instance_id: str,
        service: Service,
        item_id: QueueItemId,
        action: QueueAction,
        options: RemoteCallOptions,
    ) -> None:
        """Perform an action on one queue item.

        Raises:
            ArrClientError: If the instance is unknown, the id is invalid,
                manual import lacks a download id, or the request fails.
        """
        client = self._client_for(instance_id, service)

        if action is QueueAction.MANUAL_IMPORT:
            if not options.download_id:
                raise ArrManualImportError(
                    "Manual import requires a download identifier."
                )
            await client.manual_import(options.download_id)
            return

        queue_id = self._queue_id(item_id)

        if action is QueueAction.RETRY:
            await client.delete_queue_item(
                queue_id,
                remove_from_client=options.remove_from_client,
                blocklist=False,
                change_category=False,
            )
            return

        await client.delete_queue_item(
            queue_id,
            remove_from_client=options.remove_from_client,
            blocklist=options.blocklist,
            change_category=options.change_category,
        )
        if options.search:
            # The item is already gone; a failed search must not fail the action.
            try:
                await client.trigger_search(options.search_payload)
            except ArrClientError as e:
                logger.error(
                    "Search after removing queue item %s failed: %s",
                    queue_id,
                    e,
                    extra={"queue_id": queue_id},
                )

    async def bulk_call(
        self,
        instance_id: str,
        service: Service,
        ids: Sequence[QueueItemId],
        action: QueueAction,
        options: RemoteCallOptions,
    ) -> None:
        """Perform an action on several items of one instance.

        Raises:
            ArrClientError: If the instance is unknown, an id is invalid,
                the action is manual import, or the request fails.
        """
        client = self._client_for(instance_id, service)
        if action is QueueAction.MANUAL_IMPORT:
            raise ArrManualImportError(
                "Manual import cannot be processed as a bulk action."
            )

        queue_ids = [self._queue_id(item_id) for item_id in ids]
        if action is QueueAction.RETRY:
            await client.bulk_delete_queue_items(
                queue_ids,
                remove_from_client=options.remove_from_client,
                blocklist=False,
                change_category=False,
            )
            return

        await client.bulk_delete_queue_items(
            queue_ids,
            remove_from_client=options.remove_from_client,
            blocklist=options.blocklist,
            change_category=options.change_category,
        )
