"""Grouping of queue records into displayable summary rows.

Sibling files of one torrent/nzb share a download id, and Sonarr season
packs share a series, protocol and client. Records sharing a group key with
at least one other record in the current list fold into a single group row;
everything else becomes an item row. Rows are emitted in a single pass over
the input, each group at the position of its first member, so the caller's
ordering is preserved.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from arrqueue.queue.capabilities import summarize_action_capabilities
from arrqueue.queue.models import (
    QueueRecord,
    Service,
    SummaryRow,
    build_key,
)
from arrqueue.queue.progress import compute_progress_value
from arrqueue.queue.status_lines import collect_status_lines, summarize_issue_counts

logger = logging.getLogger(__name__)

DEFAULT_GROUP_TITLE = "Queue group"
DEFAULT_STATUS_LABEL = "Pending"
MIN_GROUP_SIZE = 2


def get_group_key(record: QueueRecord) -> str | None:
    """Derive the group key of a record.

    Priority:
    1. Download id: service:instance:download:{downloadId}
    2. Sonarr series: service:instance:series:{seriesId}:{protocol}:{client}
    3. None (the record always stands alone)

    Args:
        record: Queue record.

    Returns:
        Group key, or None when the record cannot be grouped.
    """
    prefix = f"{record.service.value}:{record.instance_id}"
    if record.download_id:
        return f"{prefix}:download:{record.download_id}"
    if record.service is Service.SONARR and record.series_id:
        protocol = record.protocol or record.download_protocol or "unknown"
        client = record.download_client or "unknown"
        return f"{prefix}:series:{record.series_id}:{protocol}:{client}"
    return None


def derive_title(records: Sequence[QueueRecord]) -> str:
    """Pick a display title from the first record.

    Falls back from series title to movie title, generic title, instance
    name and finally a placeholder.
    """
    if not records:
        return DEFAULT_GROUP_TITLE
    first = records[0]
    return (
        first.series_title
        or first.movie_title
        or first.title
        or first.instance_name
        or DEFAULT_GROUP_TITLE
    )


def _group_status_label(records: Sequence[QueueRecord]) -> str:
    statuses: list[str] = []
    for record in records:
        status = record.status.strip() if isinstance(record.status, str) else ""
        if status and status not in statuses:
            statuses.append(status)
    if not statuses:
        return DEFAULT_STATUS_LABEL
    if len(statuses) == 1:
        return statuses[0]
    return f"{len(statuses)} statuses"


def create_group_summary(group_key: str, records: Sequence[QueueRecord]) -> SummaryRow:
    """Build the summary row of a multi-record group."""
    first = records[0]
    issue_lines = [line for record in records for line in collect_status_lines(record)]
    counts, primary = summarize_action_capabilities(records)
    return SummaryRow(
        key=group_key,
        type="group",
        title=derive_title(records),
        service=first.service,
        instance_name=first.instance_name,
        items=tuple(records),
        issue_lines=tuple(issue_lines),
        issue_summary=tuple(summarize_issue_counts(issue_lines)),
        status_label=_group_status_label(records),
        progress_value=compute_progress_value(records),
        detail_available=True,
        action_counts=counts,
        primary_action=primary,
        group_key=group_key,
        group_count=len(records),
    )


def create_item_summary(record: QueueRecord) -> SummaryRow:
    """Build the summary row of a standalone record."""
    issue_lines = collect_status_lines(record)
    counts, primary = summarize_action_capabilities([record])
    return SummaryRow(
        key=build_key(record),
        type="item",
        title=derive_title([record]),
        service=record.service,
        instance_name=record.instance_name,
        items=(record,),
        issue_lines=tuple(issue_lines),
        issue_summary=tuple(summarize_issue_counts(issue_lines)),
        status_label=record.status or DEFAULT_STATUS_LABEL,
        progress_value=compute_progress_value([record]),
        detail_available=bool(issue_lines),
        action_counts=counts,
        primary_action=primary,
    )


def build_summary_rows(records: Sequence[QueueRecord]) -> list[SummaryRow]:
    """Fold records into group and item summary rows.

    Membership is computed over the given list only, so a group whose
    members were filtered down to one record degrades to an item row.

    Args:
        records: Queue records in display order.

    Returns:
        Summary rows preserving the input order of first appearance.
    """
    members: dict[str, list[QueueRecord]] = {}
    for record in records:
        group_key = get_group_key(record)
        if group_key is not None:
            members.setdefault(group_key, []).append(record)

    emitted: set[str] = set()
    rows: list[SummaryRow] = []
    for record in records:
        group_key = get_group_key(record)
        group = members.get(group_key, []) if group_key is not None else []
        if group_key is not None and len(group) >= MIN_GROUP_SIZE:
            if group_key not in emitted:
                rows.append(create_group_summary(group_key, group))
                emitted.add(group_key)
            continue
        rows.append(create_item_summary(record))

    logger.debug(
        "Built %d summary rows (%d groups) from %d records",
        len(rows),
        len(emitted),
        len(records),
    )
    return rows
