"""Action capability resolution for queue records.

Capability hints are optional. An unknown retry capability resolves to
"allowed" because every supported backend can retry a queue entry, while an
unknown manual-import capability resolves to "not allowed" because manual
import needs the backend to confirm an importable download.
"""

from __future__ import annotations

from collections.abc import Iterable

from arrqueue.queue.models import ActionCounts, QueueAction, QueueRecord


def can_retry(record: QueueRecord) -> bool:
    """Resolve the retry capability of a record (defaults open)."""
    if record.actions is None:
        return True
    return bool(record.actions.can_retry)


def can_manual_import(record: QueueRecord) -> bool:
    """Resolve the manual-import capability of a record (defaults closed)."""
    if record.actions is None:
        return False
    return bool(record.actions.can_manual_import)


def filter_items_for_action(
    records: Iterable[QueueRecord],
    action: QueueAction,
) -> list[QueueRecord]:
    """Return the records the backend currently permits an action on.

    Args:
        records: Candidate records.
        action: Action about to be performed.

    Returns:
        Records capable of the action, in input order. Actions other than
        retry and manual import pass through unfiltered.
    """
    if action is QueueAction.RETRY:
        return [record for record in records if can_retry(record)]
    if action is QueueAction.MANUAL_IMPORT:
        return [record for record in records if can_manual_import(record)]
    return list(records)


def summarize_action_capabilities(
    records: Iterable[QueueRecord],
) -> tuple[ActionCounts, QueueAction | None]:
    """Count capable records per action and pick the row's primary action.

    Returns:
        Tuple of (counts, primary action). Manual import takes precedence
        over retry; None when neither is available.
    """
    manual_import = 0
    retry = 0
    for record in records:
        if can_manual_import(record):
            manual_import += 1
        if can_retry(record):
            retry += 1

    if manual_import > 0:
        primary: QueueAction | None = QueueAction.MANUAL_IMPORT
    elif retry > 0:
        primary = QueueAction.RETRY
    else:
        primary = None

    return ActionCounts(manual_import=manual_import, retry=retry), primary
