"""Bulk-action orchestration with optimistic cache updates.

QueueActionOrchestrator.execute() runs one user-triggered action:

1. Plan the remote calls (capability filter, partitioning).
2. Snapshot the cached view and write the optimistic projection, both
   synchronously before the first call is dispatched.
3. Fire every call concurrently and wait for all of them to settle.
4. On any failure, restore the snapshot and raise.
5. Invalidate the cache on every settlement, no-op included, so backend
   state supersedes the projection.

Actions are not serialized against each other; two concurrent actions on
overlapping records settle in undefined order.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeAlias

from arrqueue.actions.cache import QueueCache, apply_optimistic_update
from arrqueue.actions.exceptions import RemoteActionError
from arrqueue.actions.planner import RemoteCall, plan_remote_calls, select_targets
from arrqueue.logging.context import action_context
from arrqueue.queue.models import (
    QueueAction,
    QueueActionOptions,
    QueueItemId,
    QueueRecord,
    RemoteCallOptions,
    Service,
)

logger = logging.getLogger(__name__)

RemoteSingleCall: TypeAlias = Callable[
    [str, Service, QueueItemId, QueueAction, RemoteCallOptions], Awaitable[None]
]
RemoteBulkCall: TypeAlias = Callable[
    [str, Service, Sequence[QueueItemId], QueueAction, RemoteCallOptions],
    Awaitable[None],
]


class QueueActionOrchestrator:
    """Executes bulk queue actions against remote instances.

    The remote calls and the cache are injected so batching and rollback
    can be exercised without a backend.
    """

    def __init__(
        self,
        single_call: RemoteSingleCall,
        bulk_call: RemoteBulkCall,
        cache: QueueCache,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            single_call: Performs an action on one queue item.
            bulk_call: Performs an action on several items of one instance.
            cache: Shared queue view receiving the optimistic projection.
        """
        self._single_call = single_call
        self._bulk_call = bulk_call
        self._cache = cache

    async def _dispatch(self, call: RemoteCall) -> None:
        with action_context(instance_id=call.instance_id):
            if call.ids is not None:
                logger.debug("Bulk %s of %d items", call.action.value, len(call.ids))
                await self._bulk_call(
                    call.instance_id,
                    call.service,
                    list(call.ids),
                    call.action,
                    call.options,
                )
            else:
                logger.debug("%s of item %s", call.action.value, call.item_id)
                await self._single_call(
                    call.instance_id,
                    call.service,
                    call.item_id,
                    call.action,
                    call.options,
                )

    async def execute(
        self,
        action: QueueAction,
        records: Sequence[QueueRecord],
        options: QueueActionOptions | None = None,
    ) -> list[RemoteCall]:
        """Execute an action on the selected records.

        Args:
            action: Action to perform.
            records: User-selected target records.
            options: Action options; defaults apply when None.

        Returns:
            The remote calls that were dispatched. Empty when no record was
            eligible, in which case nothing was sent and no projection was
            written. The cache is invalidated in every case.

        Raises:
            ManualImportUnavailableError: If manual import was requested
                and no target exposes a download id.
            RemoteActionError: If any remote call failed. The cache has
                been restored to its pre-action state.
        """
        with action_context(uuid.uuid4().hex[:8]):
            try:
                calls = plan_remote_calls(action, records, options)
                if not calls:
                    logger.info("No eligible items for %s", action.value)
                    return []

                snapshot = self._cache.read()
                self._cache.write(
                    apply_optimistic_update(
                        snapshot, action, select_targets(action, records)
                    )
                )
                logger.info(
                    "Dispatching %s: %d remote call(s) for %d selected item(s)",
                    action.value,
                    len(calls),
                    len(records),
                    extra={"queue_action": action.value, "item_count": len(records)},
                )

                results = await asyncio.gather(
                    *(self._dispatch(call) for call in calls),
                    return_exceptions=True,
                )
                failures = [
                    (call, result)
                    for call, result in zip(calls, results, strict=True)
                    if isinstance(result, BaseException)
                ]
                if failures:
                    for call, error in failures:
                        logger.warning(
                            "%s failed on %s: %s",
                            action.value,
                            call.instance_id,
                            error,
                            extra={"queue_action": action.value},
                        )
                    self._cache.write(snapshot)
                    logger.debug("Restored cached queue after failed %s", action.value)
                    raise RemoteActionError(failures, len(calls)) from failures[0][1]
                logger.info("%s completed on %d call(s)", action.value, len(calls))
                return calls
            finally:
                # Refresh on every settlement, no-op and precondition failure too
                try:
                    await self._cache.invalidate()
                except Exception as e:
                    logger.warning("Queue refresh after %s failed: %s", action.value, e)
