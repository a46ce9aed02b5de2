"""Queue aggregation, classification and grouping pipeline.

Every function in this package is synchronous and pure: results depend only
on the records passed in and malformed fields degrade to safe defaults.
"""

from arrqueue.queue.capabilities import (
    filter_items_for_action,
    summarize_action_capabilities,
)
from arrqueue.queue.classifier import (
    ISSUE_TYPE_LABELS,
    analyze_queue_item,
    filter_problematic_items,
    get_problematic_count,
    get_problematic_counts,
)
from arrqueue.queue.grouping import build_summary_rows, derive_title, get_group_key
from arrqueue.queue.models import (
    ActionCapabilities,
    CompactLine,
    InstanceQueue,
    IssueAnalysis,
    IssueType,
    MessageTone,
    MultiInstanceQueue,
    QueueAction,
    QueueActionOptions,
    QueueRecord,
    RecommendedAction,
    Service,
    StatusLine,
    StatusMessage,
    SummaryRow,
    build_key,
)
from arrqueue.queue.normalize import normalize_queue_item
from arrqueue.queue.progress import compute_progress_value, format_size_gb
from arrqueue.queue.selection import SelectionSet
from arrqueue.queue.status_lines import (
    collect_status_lines,
    looks_like_release_name,
    summarize_issue_counts,
    summarize_lines,
)
from arrqueue.queue.tone import resolve_message_tone

__all__ = [
    # Models
    "ActionCapabilities",
    "CompactLine",
    "InstanceQueue",
    "IssueAnalysis",
    "IssueType",
    "MessageTone",
    "MultiInstanceQueue",
    "QueueAction",
    "QueueActionOptions",
    "QueueRecord",
    "RecommendedAction",
    "Service",
    "StatusLine",
    "StatusMessage",
    "SummaryRow",
    "build_key",
    # Status lines
    "collect_status_lines",
    "looks_like_release_name",
    "resolve_message_tone",
    "summarize_issue_counts",
    "summarize_lines",
    # Classification
    "ISSUE_TYPE_LABELS",
    "analyze_queue_item",
    "filter_problematic_items",
    "get_problematic_count",
    "get_problematic_counts",
    # Grouping
    "SelectionSet",
    "build_summary_rows",
    "compute_progress_value",
    "derive_title",
    "filter_items_for_action",
    "format_size_gb",
    "get_group_key",
    "normalize_queue_item",
    "summarize_action_capabilities",
]
