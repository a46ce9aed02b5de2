"""Completion percentage and size helpers for queue records."""

from __future__ import annotations

import math
from collections.abc import Iterable

from arrqueue.queue.models import QueueRecord


def sum_numbers(values: Iterable[object]) -> float:
    """Sum numeric values, skipping None, booleans and non-finite numbers."""
    total = 0.0
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int | float):
            continue
        if math.isfinite(value):
            total += value
    return total


def compute_progress_value(records: Iterable[QueueRecord]) -> int | None:
    """Compute the completion percentage across one or more records.

    Args:
        records: Records whose size/sizeleft are summed.

    Returns:
        Integer percentage in [0, 100], or None when the total size is
        unknown (zero, missing, or too large to sum to a finite number).
    """
    records = list(records)
    total_size = sum_numbers(record.size for record in records)
    total_left = sum_numbers(record.sizeleft for record in records)
    if not math.isfinite(total_size) or total_size <= 0:
        return None
    completed = max(0.0, total_size - total_left)
    ratio = completed / total_size
    if not math.isfinite(ratio):
        return None
    # Half-up rounding; negative sizeleft would otherwise overshoot 100
    return math.floor(min(ratio, 1.0) * 100 + 0.5)


def format_size_gb(size_bytes: float | None) -> str | None:
    """Format a byte count as gigabytes, e.g. "1.50 GB"."""
    if isinstance(size_bytes, bool) or not isinstance(size_bytes, int | float):
        return None
    return f"{size_bytes / 1024**3:.2f} GB"
