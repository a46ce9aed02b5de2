"""Centralized exit codes for all CLI commands.

Exit code ranges:
    0: Success
    1-9: General errors
    10-19: Validation errors (config, input)
    20-29: Target errors
    30-39: Backend connection errors
    40-49: Action errors
    60-69: Warning states
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for arrqueue CLI commands."""

    # Success (0)
    SUCCESS = 0

    # General errors (1-9)
    GENERAL_ERROR = 1
    INTERRUPTED = 2

    # Validation errors (10-19)
    CONFIG_ERROR = 11
    INVALID_SNAPSHOT = 12

    # Target errors (20-29)
    TARGET_NOT_FOUND = 20
    NO_INSTANCES = 21

    # Backend connection errors (30-39)
    CONNECTION_ERROR = 30
    AUTH_ERROR = 31

    # Action errors (40-49)
    ACTION_FAILED = 40
    ACTION_UNAVAILABLE = 41

    # Warning states (60-69)
    WARNINGS = 60
