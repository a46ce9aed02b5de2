"""CLI commands for configured Sonarr/Radarr instances."""

from __future__ import annotations

import asyncio
import logging

import click

from arrqueue.cli.exit_codes import ExitCode
from arrqueue.cli.output import error_exit
from arrqueue.clients import (
    ArrAuthError,
    ArrClientError,
    ArrQueueClient,
    create_clients,
)
from arrqueue.config import ArrQueueConfig

logger = logging.getLogger(__name__)


async def _check(client: ArrQueueClient) -> tuple[ArrQueueClient, str | None]:
    """Validate one instance; returns (client, error message or None)."""
    try:
        await client.validate_connection()
        return client, None
    except ArrAuthError as e:
        return client, f"authentication failed: {e}"
    except ArrClientError as e:
        return client, str(e)
    finally:
        await client.aclose()


async def _check_all(
    clients: list[ArrQueueClient],
) -> list[tuple[ArrQueueClient, str | None]]:
    return list(await asyncio.gather(*(_check(client) for client in clients)))


@click.group("instances")
def instances_group() -> None:
    """Manage configured Sonarr/Radarr instances."""


@instances_group.command("check")
@click.pass_context
def instances_check(ctx: click.Context) -> None:
    """Validate connectivity to every enabled instance.

    Exits with WARNINGS when at least one instance cannot be reached.
    """
    config: ArrQueueConfig = ctx.obj["config"]
    clients = create_clients(config.instances)
    if not clients:
        error_exit("No enabled instances configured.", ExitCode.NO_INSTANCES)

    results = asyncio.run(_check_all(clients))
    failures = 0
    for client, error in results:
        label = f"{client.instance_name} ({client.service.value})"
        if error is None:
            click.echo(f"OK      {label}")
        else:
            failures += 1
            click.echo(f"FAILED  {label}: {error}")

    if failures:
        logger.warning("%d of %d instance(s) unreachable", failures, len(results))
        ctx.exit(int(ExitCode.WARNINGS))
