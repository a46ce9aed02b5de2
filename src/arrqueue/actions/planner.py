"""Partitioning of a bulk action into the minimal set of remote calls.

Planning is pure: it turns (action, records, options) into a list of
RemoteCall descriptions and never performs I/O. The orchestrator dispatches
the plan.

Partitioning rules:
- manual import: one call per (instance, service, download id), since the
  backend imports whole downloads, not individual files.
- delete with search: one call per record so each search targets its own
  series/episode or movie.
- everything else: one call per (instance, service); a single-item call when
  the group holds one id, a bulk call otherwise.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from arrqueue.actions.exceptions import ManualImportUnavailableError
from arrqueue.queue.capabilities import filter_items_for_action
from arrqueue.queue.models import (
    QueueAction,
    QueueActionOptions,
    QueueItemId,
    QueueRecord,
    RemoteCallOptions,
    SearchPayload,
    Service,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteCall:
    """One planned request against a backend instance.

    Exactly one of item_id (single call) or ids (bulk call) is set.
    """

    instance_id: str
    service: Service
    action: QueueAction
    options: RemoteCallOptions
    item_id: QueueItemId | None = None
    ids: tuple[QueueItemId, ...] | None = None

    @property
    def is_bulk(self) -> bool:
        return self.ids is not None


def build_search_payload(record: QueueRecord) -> SearchPayload | None:
    """Derive the search target of a record for remove-and-search.

    Sonarr records yield series and episode ids, Radarr records the movie
    id. Returns None when nothing usable is present, so callers omit the
    payload instead of sending an empty one.
    """
    if record.service is Service.SONARR:
        episode_ids = (record.episode_id,) if record.episode_id is not None else None
        if record.series_id is None and episode_ids is None:
            return None
        return SearchPayload(series_id=record.series_id, episode_ids=episode_ids)
    if record.service is Service.RADARR and record.movie_id is not None:
        return SearchPayload(movie_id=record.movie_id)
    return None


def select_targets(
    action: QueueAction, records: Sequence[QueueRecord]
) -> list[QueueRecord]:
    """Apply the capability filter; removal is never filtered."""
    if action is QueueAction.DELETE:
        return list(records)
    return filter_items_for_action(records, action)


def _plan_manual_import(
    records: Sequence[QueueRecord], options: QueueActionOptions
) -> list[RemoteCall]:
    calls: dict[tuple[str, Service, str], RemoteCall] = {}
    missing_download_ids = 0

    for record in records:
        if record.id is None:
            continue
        if not record.download_id:
            missing_download_ids += 1
            continue
        key = (record.instance_id, record.service, record.download_id)
        if key in calls:
            continue
        calls[key] = RemoteCall(
            instance_id=record.instance_id,
            service=record.service,
            action=QueueAction.MANUAL_IMPORT,
            item_id=record.id,
            options=options.to_remote(download_id=record.download_id),
        )

    if not calls and missing_download_ids:
        raise ManualImportUnavailableError()
    if missing_download_ids:
        logger.debug(
            "Skipping %d manual import targets without a download id",
            missing_download_ids,
        )
    return list(calls.values())


def _plan_delete_with_search(
    records: Sequence[QueueRecord], options: QueueActionOptions
) -> list[RemoteCall]:
    calls: list[RemoteCall] = []
    for record in records:
        if record.id is None:
            continue
        calls.append(
            RemoteCall(
                instance_id=record.instance_id,
                service=record.service,
                action=QueueAction.DELETE,
                item_id=record.id,
                options=options.to_remote(
                    search=True, search_payload=build_search_payload(record)
                ),
            )
        )
    return calls


def _plan_by_instance(
    action: QueueAction,
    records: Sequence[QueueRecord],
    options: QueueActionOptions,
) -> list[RemoteCall]:
    groups: dict[tuple[str, Service], list[QueueItemId]] = {}
    for record in records:
        if record.id is None:
            continue
        groups.setdefault((record.instance_id, record.service), []).append(record.id)

    remote_options = options.to_remote()
    calls: list[RemoteCall] = []
    for (instance_id, service), ids in groups.items():
        if len(ids) == 1:
            calls.append(
                RemoteCall(
                    instance_id=instance_id,
                    service=service,
                    action=action,
                    item_id=ids[0],
                    options=remote_options,
                )
            )
        else:
            calls.append(
                RemoteCall(
                    instance_id=instance_id,
                    service=service,
                    action=action,
                    ids=tuple(ids),
                    options=remote_options,
                )
            )
    return calls


def plan_remote_calls(
    action: QueueAction,
    records: Sequence[QueueRecord],
    options: QueueActionOptions | None = None,
) -> list[RemoteCall]:
    """Plan the remote calls needed to apply an action to records.

    Args:
        action: Action to perform.
        records: User-selected target records.
        options: Action options; defaults apply when None.

    Returns:
        Planned calls, possibly empty (a no-op). Records without a backend
        id are never targeted.

    Raises:
        ManualImportUnavailableError: If manual import was requested and
            none of the capable targets carries a download id.
    """
    options = options or QueueActionOptions()
    targets = select_targets(action, records)
    if not targets:
        logger.debug("No capable targets for %s; nothing to do", action.value)
        return []

    if action is QueueAction.MANUAL_IMPORT:
        return _plan_manual_import(targets, options)
    if action is QueueAction.DELETE and options.search:
        return _plan_delete_with_search(targets, options)
    return _plan_by_instance(action, targets, options)
