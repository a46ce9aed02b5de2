"""CLI commands for viewing and acting on the aggregated download queue.

Rows are keyed the same way in every command: item rows by
service:instance:id and group rows by their group key, so a key printed by
`queue list` can be passed straight to `queue action`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from pathlib import Path

import click
from pydantic import ValidationError

from arrqueue.actions import (
    ManualImportUnavailableError,
    QueueActionOrchestrator,
    RemoteActionError,
    RemoteCall,
    plan_remote_calls,
    request_for_call,
)
from arrqueue.cli.exit_codes import ExitCode
from arrqueue.cli.output import (
    error_exit,
    format_problem_counts,
    format_row,
    row_to_dict,
)
from arrqueue.clients import (
    ArrQueueClient,
    ArrRemote,
    RefetchingQueueCache,
    create_clients,
    fetch_queues,
)
from arrqueue.config import ArrQueueConfig
from arrqueue.queue import (
    MultiInstanceQueue,
    QueueAction,
    QueueActionOptions,
    QueueRecord,
    SelectionSet,
    build_key,
    build_summary_rows,
    filter_problematic_items,
    get_problematic_count,
    get_problematic_counts,
)
from arrqueue.queue.schema import load_queue_snapshot

logger = logging.getLogger(__name__)

_ACTION_CHOICES: dict[str, QueueAction] = {
    "retry": QueueAction.RETRY,
    "delete": QueueAction.DELETE,
    "manual-import": QueueAction.MANUAL_IMPORT,
}

snapshot_option = click.option(
    "--snapshot",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    default=None,
    help="Read the aggregated queue from a JSON file instead of the instances.",
)


def _require_clients(config: ArrQueueConfig) -> list[ArrQueueClient]:
    clients = create_clients(config.instances)
    if not clients:
        error_exit(
            "No enabled instances configured. Add [[instances]] to the config file.",
            ExitCode.NO_INSTANCES,
        )
    return clients


async def _fetch(clients: Sequence[ArrQueueClient]) -> MultiInstanceQueue:
    try:
        return await fetch_queues(clients)
    finally:
        for client in clients:
            await client.aclose()


def _load_view(config: ArrQueueConfig, snapshot: Path | None) -> MultiInstanceQueue:
    """Load the aggregated queue from a snapshot file or the live instances."""
    if snapshot is None:
        return asyncio.run(_fetch(_require_clients(config)))

    try:
        view = load_queue_snapshot(snapshot.read_text(encoding="utf-8"))
    except ValidationError as e:
        error_exit(
            f"Invalid queue snapshot {snapshot}: {e.error_count()} error(s)",
            ExitCode.INVALID_SNAPSHOT,
        )
    except OSError as e:
        error_exit(f"Cannot read {snapshot}: {e}", ExitCode.INVALID_SNAPSHOT)
    logger.debug("Loaded %d records from %s", len(view.aggregated), snapshot)
    return view


def _resolve_targets(
    records: Sequence[QueueRecord], keys: Sequence[str]
) -> list[QueueRecord]:
    """Resolve row keys (group or item) to the records they cover.

    Item keys match any record, including members of a group.
    Exits with TARGET_NOT_FOUND when a key matches nothing.
    """
    members: dict[str, tuple[QueueRecord, ...]] = {
        build_key(record): (record,) for record in records
    }
    members.update((row.key, row.items) for row in build_summary_rows(records))
    selection = SelectionSet()
    missing: list[str] = []
    for key in keys:
        matched = members.get(key)
        if matched is None:
            missing.append(key)
            continue
        selection.select(matched)
    if missing:
        error_exit(
            f"No queue row matches: {', '.join(missing)}", ExitCode.TARGET_NOT_FOUND
        )
    return selection.resolve(records)


@click.group("queue")
def queue_group() -> None:
    """Inspect and act on the aggregated download queue.

    Examples:

        # Show every row, grouped by download
        arrqueue queue list

        # Show only problematic rows from a saved snapshot
        arrqueue queue list --snapshot queue.json --problems-only

        # Retry a group, then remove and blocklist an item
        arrqueue queue action retry sonarr:main:download:ABC123
        arrqueue queue action delete radarr:main:42 --blocklist --search
    """


@queue_group.command("list")
@snapshot_option
@click.option(
    "--problems-only",
    is_flag=True,
    default=False,
    help="Only show records classified as problematic.",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    help="Output format (default: text).",
)
@click.pass_context
def queue_list(
    ctx: click.Context,
    snapshot: Path | None,
    problems_only: bool,
    output_format: str,
) -> None:
    """List queue rows with status, progress and diagnostics."""
    view = _load_view(ctx.obj["config"], snapshot)
    records = list(view.aggregated)
    if problems_only:
        records = filter_problematic_items(records)
    rows = build_summary_rows(records)

    if output_format.lower() == "json":
        click.echo(json.dumps([row_to_dict(row) for row in rows], indent=2))
        return

    if not rows:
        click.echo("Queue is empty." if not problems_only else "No problems found.")
        return
    for row in rows:
        click.echo("\n".join(format_row(row)))
    click.echo(f"\n{len(rows)} row(s), {len(records)} record(s)")


@queue_group.command("problems")
@snapshot_option
@click.pass_context
def queue_problems(ctx: click.Context, snapshot: Path | None) -> None:
    """Count problematic records per issue type."""
    view = _load_view(ctx.obj["config"], snapshot)
    counts = get_problematic_counts(view.aggregated)
    total = get_problematic_count(view.aggregated)
    click.echo("\n".join(format_problem_counts(counts, total)))


@queue_group.command("action")
@click.argument("action", type=click.Choice(list(_ACTION_CHOICES)))
@click.argument("keys", nargs=-1, required=True)
@snapshot_option
@click.option(
    "--blocklist",
    is_flag=True,
    default=False,
    help="Blocklist the release when removing it.",
)
@click.option(
    "--keep-in-client",
    is_flag=True,
    default=False,
    help="Remove from the queue but keep the download in the client.",
)
@click.option(
    "--change-category",
    is_flag=True,
    default=False,
    help="Move the download to the post-import category instead of removing it.",
)
@click.option(
    "--search",
    is_flag=True,
    default=False,
    help="Search for a replacement after removing (delete only).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Print the planned requests without sending them.",
)
@click.pass_context
def queue_action(
    ctx: click.Context,
    action: str,
    keys: tuple[str, ...],
    snapshot: Path | None,
    blocklist: bool,
    keep_in_client: bool,
    change_category: bool,
    search: bool,
    dry_run: bool,
) -> None:
    """Run ACTION on the queue rows identified by KEYS.

    ACTION is one of retry, delete or manual-import. Items the backend does
    not currently allow the action on are skipped.
    """
    config: ArrQueueConfig = ctx.obj["config"]
    queue_action_kind = _ACTION_CHOICES[action]
    options = QueueActionOptions(
        remove_from_client=not keep_in_client,
        blocklist=blocklist,
        change_category=change_category,
        search=search and queue_action_kind is QueueAction.DELETE,
    )

    view = _load_view(config, snapshot)
    targets = _resolve_targets(view.aggregated, keys)

    if dry_run:
        try:
            calls = plan_remote_calls(queue_action_kind, targets, options)
        except ManualImportUnavailableError as e:
            error_exit(str(e), ExitCode.ACTION_UNAVAILABLE)
        requests = [
            request_for_call(call).model_dump(
                mode="json", by_alias=True, exclude_none=True
            )
            for call in calls
        ]
        click.echo(json.dumps(requests, indent=2))
        return

    clients = _require_clients(config)
    try:
        calls = asyncio.run(
            _execute(clients, view, queue_action_kind, targets, options)
        )
    except ManualImportUnavailableError as e:
        error_exit(str(e), ExitCode.ACTION_UNAVAILABLE)
    except RemoteActionError as e:
        error_exit(str(e), ExitCode.ACTION_FAILED)
    if not calls:
        click.echo(f"No selected item allows {action}; nothing to do.")
        return
    click.echo(
        f"{action}: {len(targets)} item(s) in {len(calls)} request(s) completed."
    )


async def _execute(
    clients: Sequence[ArrQueueClient],
    view: MultiInstanceQueue,
    action: QueueAction,
    targets: Sequence[QueueRecord],
    options: QueueActionOptions,
) -> list[RemoteCall]:
    remote = ArrRemote({client.instance_id: client for client in clients})
    cache = RefetchingQueueCache(clients, view)
    orchestrator = QueueActionOrchestrator(remote.single_call, remote.bulk_call, cache)
    try:
        return await orchestrator.execute(action, targets, options)
    finally:
        for client in clients:
            await client.aclose()
