"""Severity classification of free-text status messages."""

from __future__ import annotations

from arrqueue.queue.models import MessageTone

# Checked in order; the first tier with a matching keyword wins.
ERROR_KEYWORDS: tuple[str, ...] = (
    "error",
    "fail",
    "denied",
    "invalid",
    "unauthorised",
    "unauthorized",
)

WARNING_KEYWORDS: tuple[str, ...] = (
    "warn",
    "retry",
    "missing",
    "stalled",
    "timeout",
    "delay",
    "pending",
)


def resolve_message_tone(text: str) -> MessageTone:
    """Classify a status message by keyword.

    Args:
        text: Free-text message from a queue record.

    Returns:
        ERROR if the text contains an error keyword, WARNING if it contains
        a warning keyword, INFO otherwise. Matching is a case-insensitive
        substring test.
    """
    normalized = text.casefold()
    if any(keyword in normalized for keyword in ERROR_KEYWORDS):
        return MessageTone.ERROR
    if any(keyword in normalized for keyword in WARNING_KEYWORDS):
        return MessageTone.WARNING
    return MessageTone.INFO


def escalate_tone(current: MessageTone, incoming: MessageTone) -> MessageTone:
    """Return the more severe of two tones. Never downgrades."""
    return incoming if incoming.rank > current.rank else current
