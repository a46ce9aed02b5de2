"""Action context for structured logging.

Propagates the current bulk action and backend instance through contextvars
so every log line emitted while an action runs can be correlated. Each
asyncio task copies the context at creation, so concurrent remote calls
keep their own instance id.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_action_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "action_id", default=None
)
_instance_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "instance_id", default=None
)


def set_action_context(action_id: str, instance_id: str | None = None) -> None:
    """Set the current action context.

    Args:
        action_id: Short identifier of the bulk action (e.g., "a1b2c3d4").
        instance_id: Backend instance being called, or None.
    """
    _action_id.set(action_id)
    _instance_id.set(instance_id)


def clear_action_context() -> None:
    """Clear the current action context."""
    _action_id.set(None)
    _instance_id.set(None)


def get_action_context() -> tuple[str | None, str | None]:
    """Get current action context.

    Returns:
        Tuple of (action_id, instance_id), either may be None.
    """
    return _action_id.get(), _instance_id.get()


@contextmanager
def action_context(
    action_id: str | None = None,
    instance_id: str | None = None,
) -> Generator[None, None, None]:
    """Context manager scoping log lines to an action and/or instance.

    Values left as None inherit from the enclosing context, so an
    instance scope can be nested inside an action scope.

    Example:
        with action_context("a1b2c3d4"):
            with action_context(instance_id="sonarr-main"):
                logger.info("Deleting queue item")
    """
    old_action_id, old_instance_id = get_action_context()
    try:
        if action_id is not None:
            _action_id.set(action_id)
        if instance_id is not None:
            _instance_id.set(instance_id)
        yield
    finally:
        _action_id.set(old_action_id)
        _instance_id.set(old_instance_id)


class ActionContextFilter(logging.Filter):
    """Logging filter that injects action context into log records.

    Adds action_id and instance_id attributes for JSON output and a compact
    action_tag such as [a1b2c3d4:sonarr-main] for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        action_id, instance_id = get_action_context()

        record.action_id = action_id
        record.instance_id = instance_id

        if action_id and instance_id:
            record.action_tag = f"[{action_id}:{instance_id}] "
        elif action_id:
            record.action_tag = f"[{action_id}] "
        elif instance_id:
            record.action_tag = f"[{instance_id}] "
        else:
            record.action_tag = ""

        return True
