"""CLI module for arrqueue."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from arrqueue.cli.exit_codes import ExitCode
from arrqueue.cli.output import error_exit
from arrqueue.config import ConfigError, get_config
from arrqueue.logging import configure_logging

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(package_name="arrqueue")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.arrqueue/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """arrqueue - Inspect and act on Sonarr/Radarr download queues."""
    ctx.ensure_object(dict)

    # Tests may inject a ready-made config
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = get_config(
                config_path=config_path,
                log_level=log_level,
                log_file=log_file,
                log_json=log_json or None,
            )
        except ConfigError as e:
            error_exit(str(e), ExitCode.CONFIG_ERROR)

    config = ctx.obj["config"]
    configure_logging(config.logging)
    logger.debug(
        "arrqueue starting: %d instance(s) configured, log_level=%s",
        len(config.instances),
        config.logging.level,
    )


def _register_commands() -> None:
    from arrqueue.cli.instances import instances_group
    from arrqueue.cli.queue import queue_group

    main.add_command(queue_group)
    main.add_command(instances_group)


_register_commands()
