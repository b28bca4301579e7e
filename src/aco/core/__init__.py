"""Core utilities package.

Small helpers with no dependencies on the rest of ACO: subprocess
invocation and UTC timestamp handling.
"""

from aco.core.datetime_utils import (
    epoch_millis,
    to_base36,
    utc_now_iso,
)
from aco.core.subprocess_utils import run_command, tail_text

__all__ = [
    # Datetime utilities
    "epoch_millis",
    "to_base36",
    "utc_now_iso",
    # Subprocess utilities
    "run_command",
    "tail_text",
]
