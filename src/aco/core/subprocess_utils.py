"""Running ffmpeg and friends.

The encoder probe and the transcoder both go through run_command, so both
get the same timeout handling, decoding and debug logging.
"""

from __future__ import annotations

import logging
import shlex
import subprocess  # nosec B404 - ffmpeg is an external binary
import time
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120


def run_command(
    args: list[str | Path],
    timeout: float = DEFAULT_TIMEOUT,
    errors: str = "replace",
) -> tuple[str, str, int]:
    """Run ``args`` without a shell and return (stdout, stderr, returncode).

    A non-zero exit is returned, not raised. stdin is /dev/null so an
    overwrite prompt can never block the call.

    Raises:
        subprocess.TimeoutExpired: After ``timeout`` seconds; the child has
            already been killed.
        OSError: The executable is missing or not executable.
    """
    argv = [str(arg) for arg in args]
    program = Path(argv[0]).name
    started = time.monotonic()
    logger.debug("Running %s", shlex.join(argv))

    try:
        completed = subprocess.run(  # nosec B603 - argv list, no shell
            argv,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors=errors,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning(
            "%s killed after %ss", program, timeout, extra={"command": program}
        )
        raise

    logger.debug(
        "%s exited with %d in %.2fs",
        program,
        completed.returncode,
        time.monotonic() - started,
        extra={"command": program},
    )
    return completed.stdout or "", completed.stderr or "", completed.returncode


def tail_text(text: str, max_chars: int = 2000) -> str:
    """Keep the end of ``text``; ffmpeg prints its real error after the banner."""
    if len(text) <= max_chars:
        return text
    return "..." + text[-max_chars:]
