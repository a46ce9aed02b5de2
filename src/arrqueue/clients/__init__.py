"""Sonarr/Radarr backend access: HTTP client, remote calls, aggregation."""

from arrqueue.clients.aggregator import (
    RefetchingQueueCache,
    fetch_instance_queue,
    fetch_queues,
)
from arrqueue.clients.arr import (
    ArrAuthError,
    ArrClientError,
    ArrConnectionError,
    ArrManualImportError,
    ArrQueueClient,
    create_clients,
)
from arrqueue.clients.remote import ArrRemote

__all__ = [
    "ArrAuthError",
    "ArrClientError",
    "ArrConnectionError",
    "ArrManualImportError",
    "ArrQueueClient",
    "ArrRemote",
    "RefetchingQueueCache",
    "create_clients",
    "fetch_instance_queue",
    "fetch_queues",
]
