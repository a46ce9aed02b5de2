"""Bulk queue actions: planning, optimistic caching and orchestration."""

from arrqueue.actions.cache import (
    PROVISIONAL_STATUS,
    InMemoryQueueCache,
    QueueCache,
    apply_optimistic_update,
)
from arrqueue.actions.exceptions import (
    ManualImportUnavailableError,
    QueueActionError,
    RemoteActionError,
)
from arrqueue.actions.orchestrator import (
    QueueActionOrchestrator,
    RemoteBulkCall,
    RemoteSingleCall,
)
from arrqueue.actions.planner import (
    RemoteCall,
    build_search_payload,
    plan_remote_calls,
)
from arrqueue.actions.requests import (
    QueueActionRequest,
    QueueBulkActionRequest,
    request_for_call,
)

__all__ = [
    "PROVISIONAL_STATUS",
    "InMemoryQueueCache",
    "ManualImportUnavailableError",
    "QueueActionError",
    "QueueActionOrchestrator",
    "QueueActionRequest",
    "QueueBulkActionRequest",
    "QueueCache",
    "RemoteActionError",
    "RemoteBulkCall",
    "RemoteCall",
    "RemoteSingleCall",
    "apply_optimistic_update",
    "build_search_payload",
    "plan_remote_calls",
    "request_for_call",
]
