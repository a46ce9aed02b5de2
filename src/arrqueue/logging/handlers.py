"""JSON log output for arrqueue.

Each line is one JSON object shaped around queue actions. The action and
instance a line belongs to sit at the top level so a log shipper can filter
on them directly; queue fields passed through ``extra=`` are carried under
``fields`` only when they are listed in QUEUE_LOG_FIELDS.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

# Attributes a caller may attach with extra={...}
QUEUE_LOG_FIELDS: tuple[str, ...] = (
    "queue_action",
    "service",
    "queue_id",
    "download_id",
    "item_count",
    "record_count",
)


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON.

    Example output:
        {"ts": "2024-05-01T12:00:00.123+00:00", "level": "warning",
         "logger": "arrqueue.actions.orchestrator", "msg": "retry failed ...",
         "action_id": "a1b2c3d4", "instance_id": "sonarr-main",
         "fields": {"queue_action": "retry"}}
    """

    def __init__(self, fields: Iterable[str] = QUEUE_LOG_FIELDS) -> None:
        super().__init__()
        self._fields = tuple(fields)

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        # Set by ActionContextFilter; absent when the filter is not installed
        action_id = getattr(record, "action_id", None)
        if action_id:
            entry["action_id"] = action_id
        instance_id = getattr(record, "instance_id", None)
        if instance_id:
            entry["instance_id"] = instance_id

        fields = {
            name: getattr(record, name)
            for name in self._fields
            if getattr(record, name, None) is not None
        }
        if fields:
            entry["fields"] = fields

        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
