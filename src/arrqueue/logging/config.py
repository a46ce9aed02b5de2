"""Log routing for one arrqueue CLI invocation.

Handlers are attached to the ``arrqueue`` package logger rather than the
root logger. httpx request lines share those handlers at debug level only.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from arrqueue.logging.context import ActionContextFilter
from arrqueue.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from arrqueue.config.models import LoggingConfig

PACKAGE_LOGGER = "arrqueue"
HTTP_LOGGER = "httpx"

# action_tag renders as "[a1b2c3d4:sonarr-main] " inside an action
TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(action_tag)s%(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _formatter(config: LoggingConfig) -> logging.Formatter:
    if config.format.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)


def _open_log_file(path: Path, config: LoggingConfig) -> logging.Handler | None:
    """Open the rotating log file, or return None when it cannot be written."""
    path = path.expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Could not open log file {path}: {e}\n")
        return None


def _reset(logger: logging.Logger) -> None:
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


def configure_logging(config: LoggingConfig) -> None:
    """Route arrqueue log records according to a LoggingConfig.

    Output goes to the log file when one is configured and can be opened,
    and to stderr when no file is in use or include_stderr is set. Calling
    this again replaces the handlers installed by the previous call.

    Args:
        config: Logging configuration.
    """
    level = logging.getLevelName(config.level.upper())
    formatter = _formatter(config)
    context_filter = ActionContextFilter()

    handlers: list[logging.Handler] = []
    if config.file is not None:
        file_handler = _open_log_file(Path(config.file), config)
        if file_handler is not None:
            handlers.append(file_handler)
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    http_logger = logging.getLogger(HTTP_LOGGER)
    _reset(package_logger)
    _reset(http_logger)

    package_logger.setLevel(level)
    for handler in handlers:
        package_logger.addHandler(handler)

    if level == logging.DEBUG:
        http_logger.setLevel(logging.DEBUG)
        for handler in handlers:
            http_logger.addHandler(handler)
    else:
        http_logger.setLevel(logging.NOTSET)
