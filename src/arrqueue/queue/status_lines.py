"""Diagnostic line extraction and summarization for queue records.

Backends report per-file status messages, so a season pack can produce one
release name per episode alongside the handful of real diagnostics. This
module collects every line from a record, then filters filenames and
release strings out and collapses duplicates into counted compact lines.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from arrqueue.queue.models import (
    CompactLine,
    IssueSummary,
    MessageTone,
    QueueRecord,
    StatusLine,
    build_key,
)
from arrqueue.queue.tone import escalate_tone, resolve_message_tone

_RELEASE_TOKEN_PATTERN = re.compile(
    r"(s\d{1,2}e\d{1,3}"
    r"|\.720p|\.1080p|\.2160p|\.480p"
    r"|\.web[-_.]?dl|\.webrip|\.bluray"
    r"|\.h\.264|\.h\.265|\.x264|\.x265"
    r"|\.dvdrip|\.proper|\.repack"
    r"|\.amzn|\.nf|\.hbo|\.dsnp)",
    re.IGNORECASE,
)

_FILE_SUFFIX_PATTERN = re.compile(r"\.(mkv|mp4|avi|m4v|ts|rar|zip|7z)$", re.IGNORECASE)

# Minimum dot-delimited segments for a spaced line to count as a release name
_MIN_RELEASE_SEGMENTS = 4


def looks_like_release_name(text: str) -> bool:
    """Check whether a line is a filename or release string.

    A line qualifies when it carries a release token (episode marker,
    resolution, source, codec or platform tag) and is either dotted into at
    least four segments or contains no whitespace. Sentences such as
    "upgrade to 1080p available" are kept.

    Args:
        text: Line to test.

    Returns:
        True if the line should be excluded from diagnostics.
    """
    trimmed = text.strip()
    if not trimmed:
        return False
    if not _RELEASE_TOKEN_PATTERN.search(trimmed):
        return False
    segments = [segment for segment in trimmed.split(".") if segment.strip()]
    return len(segments) >= _MIN_RELEASE_SEGMENTS or not any(
        ch.isspace() for ch in trimmed
    )


def looks_like_file(text: str) -> bool:
    """Check whether a line ends with a video or archive extension."""
    return bool(_FILE_SUFFIX_PATTERN.search(text.strip()))


def collect_status_lines(record: QueueRecord) -> list[StatusLine]:
    """Extract every raw diagnostic line from a record.

    Titles are interleaved with their own messages in array order. A
    non-empty top-level error message is appended last and always tagged
    as an error regardless of its content.

    Args:
        record: Queue record to inspect.

    Returns:
        Ordered list of status lines.
    """
    lines: list[StatusLine] = []
    base_key = build_key(record)

    for entry_index, entry in enumerate(record.status_messages):
        title = entry.title.strip() if isinstance(entry.title, str) else ""
        if title:
            lines.append(
                StatusLine(
                    key=f"{base_key}:status:{entry_index}:title",
                    text=title,
                    tone=resolve_message_tone(title),
                )
            )
        for message_index, message in enumerate(entry.messages):
            if not isinstance(message, str):
                continue
            trimmed = message.strip()
            if not trimmed:
                continue
            lines.append(
                StatusLine(
                    key=f"{base_key}:status:{entry_index}:message:{message_index}",
                    text=trimmed,
                    tone=resolve_message_tone(trimmed),
                )
            )

    if isinstance(record.error_message, str) and record.error_message.strip():
        lines.append(
            StatusLine(
                key=f"{base_key}:error",
                text=record.error_message.strip(),
                tone=MessageTone.ERROR,
            )
        )

    return lines


def summarize_lines(lines: Iterable[StatusLine]) -> list[CompactLine]:
    """Deduplicate status lines into counted compact lines.

    Empty lines, filenames and release names are skipped. Remaining lines
    are keyed by their case-insensitive text; repeats increment the count
    and can only raise the tone. Output follows first-seen order.

    Args:
        lines: Status lines, typically from collect_status_lines().

    Returns:
        Compact lines in first-seen order.
    """
    compact: dict[str, CompactLine] = {}

    for index, line in enumerate(lines):
        trimmed = line.text.strip()
        if not trimmed:
            continue
        if looks_like_file(trimmed) or looks_like_release_name(trimmed):
            continue

        normalized = trimmed.casefold()
        existing = compact.get(normalized)
        if existing is not None:
            existing.count += 1
            existing.tone = escalate_tone(existing.tone, line.tone)
        else:
            compact[normalized] = CompactLine(
                key=f"{line.key}:{index}",
                text=trimmed,
                tone=line.tone,
            )

    return list(compact.values())


def summarize_issue_counts(lines: Iterable[StatusLine]) -> list[IssueSummary]:
    """Count summarized diagnostic occurrences per tone.

    Args:
        lines: Raw status lines.

    Returns:
        One IssueSummary per tone present, in first-seen tone order.
    """
    counts: dict[MessageTone, int] = {}
    for entry in summarize_lines(lines):
        counts[entry.tone] = counts.get(entry.tone, 0) + entry.count
    return [IssueSummary(tone=tone, count=count) for tone, count in counts.items()]
