"""Exit codes shared by all CLI commands."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for ACO CLI commands."""

    SUCCESS = 0

    # A run completed with per-asset failures, or doctor found warnings
    FAILURE = 1

    # Unreadable config, out-of-range values, or no usable encoder
    CONFIG_ERROR = 2
