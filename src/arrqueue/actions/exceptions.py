"""Custom exceptions for queue actions.

An empty target set is not an error, and records filtered out by capability
are dropped silently. Only unmet preconditions and remote failures raise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from arrqueue.actions.planner import RemoteCall


class QueueActionError(Exception):
    """Base exception for queue action errors.

    All action-related exceptions inherit from this class, allowing callers
    to catch every action failure with a single except clause.
    """


class ManualImportUnavailableError(QueueActionError):
    """Raised when no selected record exposes a download identifier."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Selected items do not expose a download identifier for manual import."
        )


class RemoteActionError(QueueActionError):
    """Raised after all remote calls settled and at least one failed.

    Attributes:
        failures: (call, exception) pairs for every rejected call.
        total_calls: Number of calls that were dispatched.
    """

    def __init__(
        self,
        failures: list[tuple[RemoteCall, BaseException]],
        total_calls: int,
    ) -> None:
        """Initialize the exception.

        Args:
            failures: Rejected calls with their exceptions.
            total_calls: Number of calls dispatched for the action.
        """
        self.failures = failures
        self.total_calls = total_calls
        first_call, first_error = failures[0]
        if len(failures) == 1:
            message = (
                f"Queue action failed on {first_call.instance_id}: {first_error}"
            )
        else:
            message = (
                f"{len(failures)} of {total_calls} queue requests failed; "
                f"first error on {first_call.instance_id}: {first_error}"
            )
        super().__init__(message)
