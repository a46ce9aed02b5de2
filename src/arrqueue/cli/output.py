"""CLI output formatting for JSON and human-readable output."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any, NoReturn

import click

from arrqueue.queue.classifier import ISSUE_TYPE_LABELS
from arrqueue.queue.models import IssueType, SummaryRow
from arrqueue.queue.status_lines import summarize_lines

if TYPE_CHECKING:
    from arrqueue.cli.exit_codes import ExitCode


def error_exit(
    message: str,
    code: ExitCode | int,
    json_output: bool = False,
) -> NoReturn:
    """Exit with formatted error message.

    Args:
        message: Error message to display.
        code: Exit code to use (ExitCode enum or int).
        json_output: Whether to format output as JSON.
    """
    from arrqueue.cli.exit_codes import ExitCode

    if isinstance(code, ExitCode):
        code_name = code.name
        exit_value = int(code)
    else:
        code_name = "UNKNOWN_ERROR"
        exit_value = code

    if json_output:
        click.echo(
            json.dumps(
                {"status": "failed", "error": {"code": code_name, "message": message}}
            ),
            err=True,
        )
    else:
        click.echo(f"Error: {message}", err=True)

    sys.exit(exit_value)


def row_to_dict(row: SummaryRow) -> dict[str, Any]:
    """Convert a summary row to a JSON-friendly dict."""
    return {
        "key": row.key,
        "type": row.type,
        "title": row.title,
        "service": row.service.value,
        "instanceName": row.instance_name,
        "status": row.status_label,
        "progress": row.progress_value,
        "groupCount": row.group_count,
        "primaryAction": row.primary_action.value if row.primary_action else None,
        "actionCounts": {
            "manualImport": row.action_counts.manual_import,
            "retry": row.action_counts.retry,
        },
        "issues": [
            {"text": line.text, "tone": line.tone.value, "count": line.count}
            for line in summarize_lines(row.issue_lines)
        ],
        "items": [str(record.id) for record in row.items if record.id is not None],
    }


def format_row(row: SummaryRow) -> list[str]:
    """Format a summary row as indented text lines."""
    progress = f"{row.progress_value}%" if row.progress_value is not None else "-"
    header = f"{row.title}  [{row.status_label}, {progress}]"
    if row.is_group:
        header += f"  ({row.group_count} items)"
    lines = [header, f"  key: {row.key}", f"  instance: {row.instance_name}"]
    if row.primary_action is not None:
        lines.append(f"  suggested: {row.primary_action.value}")
    for compact in summarize_lines(row.issue_lines):
        suffix = f" (x{compact.count})" if compact.count > 1 else ""
        lines.append(f"  {compact.tone.value}: {compact.text}{suffix}")
    return lines


def format_problem_counts(counts: dict[IssueType, int], total: int) -> list[str]:
    """Format per issue type counts as aligned text lines."""
    total_label = "Problematic items"
    width = max(len(total_label), *(len(label) for label in ISSUE_TYPE_LABELS.values()))
    lines = [
        f"{ISSUE_TYPE_LABELS[issue_type]:<{width}}  {count}"
        for issue_type, count in counts.items()
    ]
    lines.append(f"{total_label:<{width}}  {total}")
    return lines
