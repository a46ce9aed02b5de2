"""Structured logging module for arrqueue.

Provides configurable logging with JSON format support and file rotation.
Includes action context support for correlating bulk-action log lines.
"""

from arrqueue.logging.config import configure_logging
from arrqueue.logging.context import (
    ActionContextFilter,
    action_context,
    clear_action_context,
    get_action_context,
    set_action_context,
)
from arrqueue.logging.handlers import JSONFormatter

__all__ = [
    "ActionContextFilter",
    "JSONFormatter",
    "action_context",
    "clear_action_context",
    "configure_logging",
    "get_action_context",
    "set_action_context",
]
