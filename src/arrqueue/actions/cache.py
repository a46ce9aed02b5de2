"""Queue cache contract and optimistic projection.

The orchestrator is the only writer of provisional state: it snapshots the
cached view, writes a projection of the pending action, and either restores
the snapshot on failure or lets the authoritative refetch replace it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol, runtime_checkable

from arrqueue.queue.models import (
    InstanceQueue,
    MultiInstanceQueue,
    QueueAction,
    QueueRecord,
    match_key,
)

logger = logging.getLogger(__name__)

PROVISIONAL_STATUS: dict[QueueAction, str] = {
    QueueAction.RETRY: "Retry requested",
    QueueAction.MANUAL_IMPORT: "Manual import requested",
}


@runtime_checkable
class QueueCache(Protocol):
    """Read/write/invalidate contract of the shared queue view."""

    def read(self) -> MultiInstanceQueue | None:
        """Return the current view, or None when nothing is cached."""
        ...

    def write(self, view: MultiInstanceQueue | None) -> None:
        """Replace the cached view."""
        ...

    async def invalidate(self) -> None:
        """Mark the view stale and eventually replace it with backend state."""
        ...


class InMemoryQueueCache:
    """QueueCache holding the view in memory.

    invalidate() only marks the view stale; subclasses refetch.
    """

    def __init__(self, view: MultiInstanceQueue | None = None) -> None:
        self._view = view
        self.stale = False

    def read(self) -> MultiInstanceQueue | None:
        return self._view

    def write(self, view: MultiInstanceQueue | None) -> None:
        self._view = view

    async def invalidate(self) -> None:
        self.stale = True


def _target_keys(records: Iterable[QueueRecord]) -> set[str]:
    keys: set[str] = set()
    for record in records:
        key = match_key(record)
        if key is not None:
            keys.add(key)
    return keys


def _is_target(record: QueueRecord, keys: set[str]) -> bool:
    key = match_key(record)
    return key is not None and key in keys


def _project_records(
    records: tuple[QueueRecord, ...],
    action: QueueAction,
    keys: set[str],
) -> tuple[QueueRecord, ...]:
    if action is QueueAction.DELETE:
        return tuple(record for record in records if not _is_target(record, keys))
    label = PROVISIONAL_STATUS[action]
    return tuple(
        replace(record, status=label) if _is_target(record, keys) else record
        for record in records
    )


def apply_optimistic_update(
    previous: MultiInstanceQueue | None,
    action: QueueAction,
    records: Iterable[QueueRecord],
) -> MultiInstanceQueue | None:
    """Project the expected result of an action onto a cached view.

    Removal drops target records from every instance list and from the
    aggregated list. Other actions rewrite the status of target records to a
    provisional label. Records without an id are never matched. The total
    count always follows the projected aggregated list.

    Args:
        previous: Cached view before the action, or None.
        action: Action being performed.
        records: Records targeted by the action.

    Returns:
        The projected view, or None when nothing was cached.
    """
    if previous is None:
        return None

    keys = _target_keys(records)
    if not keys:
        return previous

    instances = tuple(
        InstanceQueue(
            instance_id=instance.instance_id,
            instance_name=instance.instance_name,
            service=instance.service,
            data=_project_records(instance.data, action, keys),
        )
        for instance in previous.instances
    )
    aggregated = _project_records(previous.aggregated, action, keys)

    logger.debug(
        "Projected %s onto %d cached records (%d targets)",
        action.value,
        len(previous.aggregated),
        len(keys),
    )
    return MultiInstanceQueue(
        instances=instances, aggregated=aggregated, total_count=len(aggregated)
    )
