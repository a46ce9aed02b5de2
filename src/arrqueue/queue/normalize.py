"""Normalization of raw Sonarr/Radarr queue records.

Queue payloads differ between backends and versions: ids appear under
several names, sizes may be missing or strings, and status messages carry
optional titles. normalize_queue_item() reconciles them into a QueueRecord
and derives action capability hints from the record's state and messages.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from arrqueue.queue.models import (
    ActionCapabilities,
    QueueAction,
    QueueItemId,
    QueueRecord,
    Service,
    StatusMessage,
)

logger = logging.getLogger(__name__)

MANUAL_IMPORT_HINT_KEYWORDS: tuple[str, ...] = (
    "manual import",
    "manual intervention",
    "requires manual",
    "manually import",
    "cannot be imported",
    "could not be imported",
    "no files were found",
    "no matching series",
    "not a valid",
    "stuck pending",
    "import pending",
)

RETRY_HINT_KEYWORDS: tuple[str, ...] = (
    "retry",
    "failed",
    "failure",
    "timed out",
    "timeout",
    "temporarily unavailable",
    "unavailable",
    "disconnected",
    "unauthorized",
    "unauthorised",
    "forbidden",
    "stalled",
    "connection",
    "ioexception",
    "i/o",
)


def to_string(value: Any) -> str | None:
    """Coerce a scalar to a non-empty trimmed string, else None."""
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float) and math.isfinite(value):
        return str(value)
    return None


def to_number(value: Any) -> float | int | None:
    """Coerce a value to a finite number, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return int(parsed) if parsed.is_integer() else parsed
    return None


def to_int(value: Any) -> int | None:
    """Coerce a value to an integer id, else None."""
    number = to_number(value)
    if number is None or not float(number).is_integer():
        return None
    return int(number)


def parse_queue_id(value: QueueItemId | None) -> int | None:
    """Parse a backend queue id from an int or a numeric string.

    Returns:
        The integer id, or None when the value is not a usable id.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return None
        try:
            return int(trimmed)
        except ValueError:
            return None
    return None


def _lower(value: Any) -> str:
    return value.strip().casefold() if isinstance(value, str) else ""


def _nested(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    return value if isinstance(value, Mapping) else {}


def collect_status_texts(raw: Mapping[str, Any]) -> list[str]:
    """Collect every status text of a raw record (titles, messages, errors)."""
    results: list[str] = []
    status_messages = raw.get("statusMessages")
    if isinstance(status_messages, list):
        for entry in status_messages:
            if not isinstance(entry, Mapping):
                continue
            title = to_string(entry.get("title"))
            if title:
                results.append(title)
            messages = entry.get("messages")
            if isinstance(messages, list):
                results.extend(
                    message.strip()
                    for message in messages
                    if isinstance(message, str) and message.strip()
                )
    for key in ("errorMessage", "error"):
        text = raw.get(key)
        if isinstance(text, str) and text.strip():
            results.append(text.strip())
    return results


def _pick_matching(messages: list[str], keywords: tuple[str, ...]) -> str | None:
    for message in messages:
        lower = message.casefold()
        if any(keyword in lower for keyword in keywords):
            return message
    return None


def _raw_download_id(raw: Mapping[str, Any]) -> str | None:
    return to_string(
        raw.get("downloadId")
        or raw.get("guid")
        or raw.get("sourceId")
        or _nested(raw, "data").get("downloadId")
    )


def derive_queue_actions(raw: Mapping[str, Any]) -> ActionCapabilities:
    """Derive action capability hints from a raw queue record.

    Manual import requires a download id plus evidence that the backend is
    waiting on an import: manual-import wording, an import state, an import
    warning, or a completed download stuck pending. Retry is offered on
    retry-style wording or error/warning/stalled/failed states.

    Args:
        raw: Raw record as returned by /api/v3/queue.

    Returns:
        ActionCapabilities with every flag resolved.
    """
    status = _lower(raw.get("status"))
    tracked_state = _lower(raw.get("trackedDownloadState"))
    tracked_status = _lower(raw.get("trackedDownloadStatus"))
    messages = collect_status_texts(raw)
    has_download_id = _raw_download_id(raw) is not None

    manual_import_reason = _pick_matching(messages, MANUAL_IMPORT_HINT_KEYWORDS)
    retry_reason = _pick_matching(messages, RETRY_HINT_KEYWORDS)

    is_pending_state = "pending" in tracked_state
    appears_completed = "completed" in status or "downloadclientunavailable" in status
    is_import_state = any(
        marker in tracked_state
        for marker in ("importpending", "importfailed", "importblocked")
    )
    has_import_warning = "warning" in tracked_status and (
        is_pending_state or appears_completed or is_import_state
    )

    can_manual_import = has_download_id and bool(
        manual_import_reason
        or is_import_state
        or has_import_warning
        or (is_pending_state and appears_completed)
        or ("pending" in tracked_status and appears_completed)
    )

    can_retry = bool(
        retry_reason
        or "error" in tracked_status
        or "warning" in tracked_status
        or any(marker in status for marker in ("failed", "stalled", "retry", "warning"))
    )

    if can_manual_import:
        recommended: QueueAction | None = QueueAction.MANUAL_IMPORT
    elif can_retry:
        recommended = QueueAction.RETRY
    else:
        recommended = None

    return ActionCapabilities(
        can_retry=can_retry,
        can_manual_import=can_manual_import,
        can_remove=True,
        can_change_category=to_string(raw.get("downloadClient")) is not None,
        recommended_action=recommended,
        manual_import_reason=manual_import_reason,
        retry_reason=retry_reason,
    )


def _normalize_status_messages(raw: Mapping[str, Any]) -> tuple[StatusMessage, ...]:
    entries = raw.get("statusMessages")
    if not isinstance(entries, list):
        return ()
    normalized: list[StatusMessage] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        title = to_string(
            entry.get("title") or entry.get("type") or entry.get("source")
        )
        messages: list[str] = []
        raw_messages = entry.get("messages")
        if isinstance(raw_messages, list):
            for message in raw_messages:
                text = to_string(message)
                if text:
                    messages.append(text)
        if title or messages:
            normalized.append(StatusMessage(title=title, messages=tuple(messages)))
    return tuple(normalized)


def _extract_id(raw: Mapping[str, Any]) -> QueueItemId | None:
    for key in ("id", "queueId", "queueItemId", "downloadId"):
        value = raw.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _extract_title(raw: Mapping[str, Any], service: Service) -> str:
    title = to_string(raw.get("title"))
    if title:
        return title
    nested_key = "series" if service is Service.SONARR else "movie"
    return to_string(_nested(raw, nested_key).get("title")) or "Untitled"


def normalize_queue_item(
    raw: Mapping[str, Any],
    service: Service,
    instance_id: str,
    instance_name: str,
) -> QueueRecord:
    """Normalize a raw backend queue record.

    Args:
        raw: Raw record as returned by /api/v3/queue.
        service: Backend the record came from.
        instance_id: Owning instance identifier.
        instance_name: Owning instance display name.

    Returns:
        Normalized QueueRecord with derived action capabilities.
    """
    series = _nested(raw, "series")
    movie = _nested(raw, "movie")
    episode = _nested(raw, "episode")
    data = _nested(raw, "data")

    record_id = _extract_id(raw)
    if record_id is None:
        logger.debug(
            "Queue record without identifier from %s (%s)", instance_name, service.value
        )

    return QueueRecord(
        service=service,
        instance_id=instance_id,
        instance_name=instance_name,
        id=record_id,
        download_id=_raw_download_id(raw),
        title=_extract_title(raw, service),
        series_id=to_int(raw.get("seriesId") or series.get("id")),
        episode_id=to_int(raw.get("episodeId") or episode.get("id")),
        series_title=to_string(series.get("title")),
        movie_id=to_int(raw.get("movieId") or movie.get("id")),
        movie_title=to_string(movie.get("title")),
        status=to_string(raw.get("status")),
        tracked_download_status=to_string(raw.get("trackedDownloadStatus")),
        tracked_download_state=to_string(raw.get("trackedDownloadState")),
        error_message=to_string(raw.get("errorMessage") or raw.get("error")),
        status_messages=_normalize_status_messages(raw),
        size=to_number(raw.get("size", raw.get("sizebytes"))),
        sizeleft=to_number(
            raw.get("sizeleft", raw.get("sizeLeft", raw.get("sizeRemaining")))
        ),
        protocol=to_string(raw.get("protocol") or raw.get("downloadProtocol")),
        download_protocol=to_string(raw.get("downloadProtocol") or raw.get("protocol")),
        download_client=to_string(
            raw.get("downloadClient")
            or raw.get("downloadClientName")
            or data.get("downloadClient")
        ),
        indexer=to_string(
            raw.get("indexer") or data.get("indexer") or data.get("indexerName")
        ),
        actions=derive_queue_actions(raw),
    )
