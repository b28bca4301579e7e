"""SIGTERM/SIGINT handling for long-running commands.

Both signals mean "stop gracefully": the daemon drains its compression
queue and the backfill finishes the asset in progress. The callback runs on
the event loop thread and receives the signal name.
"""

import asyncio
import logging
import signal
from collections.abc import Callable

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def setup_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    on_signal: Callable[[str], None],
) -> list[signal.Signals]:
    """Route SIGTERM and SIGINT to ``on_signal``.

    Returns:
        The signals that were actually installed. Registration fails
        outside the main thread and on platforms without
        add_signal_handler; that is logged, not raised.
    """
    installed = []

    def _dispatch(sig: signal.Signals) -> None:
        logger.info("Received %s", sig.name)
        on_signal(sig.name)

    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, _dispatch, sig)
        except (ValueError, RuntimeError, NotImplementedError) as e:
            logger.warning("Cannot handle %s here: %s", sig.name, e)
            continue
        installed.append(sig)
    return installed


def remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    """Undo setup_signal_handlers; signals that were never installed are fine."""
    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.remove_signal_handler(sig)
        except (ValueError, RuntimeError, NotImplementedError):
            logger.debug("No handler to remove for %s", sig.name)
