"""Start and stop bookkeeping for `aco serve`.

A shutdown request opens a drain window: the trigger may keep working
through its queue until the window closes, after which queued compressions
are abandoned and left for the next backfill.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShutdownState:
    """A shutdown request and the drain window it opened."""

    reason: str
    """What asked for the shutdown, e.g. "SIGTERM"."""

    requested_at: float
    """time.monotonic() at the request."""

    drain_deadline: float
    """time.monotonic() after which queued work is abandoned."""

    def remaining_seconds(self, now: float | None = None) -> float:
        now = time.monotonic() if now is None else now
        return max(0.0, self.drain_deadline - now)


@dataclass
class DaemonLifecycle:
    """Uptime and shutdown state shared by the server and its handlers."""

    drain_timeout: float = 30.0
    started_at: float = field(default_factory=time.monotonic)
    shutdown: ShutdownState | None = None

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at

    @property
    def is_shutting_down(self) -> bool:
        return self.shutdown is not None

    def request_shutdown(self, reason: str) -> bool:
        """Open the drain window.

        Returns:
            False if shutdown had already been requested; the first reason
            and deadline are kept.
        """
        if self.shutdown is not None:
            logger.debug(
                "Ignoring %s, shutdown already requested by %s",
                reason,
                self.shutdown.reason,
            )
            return False
        now = time.monotonic()
        self.shutdown = ShutdownState(
            reason=reason,
            requested_at=now,
            drain_deadline=now + self.drain_timeout,
        )
        logger.info(
            "Shutdown requested (%s), draining for up to %.1fs",
            reason,
            self.drain_timeout,
        )
        return True

    def drain_budget(self) -> float:
        """Seconds the trigger may still spend draining its queue."""
        if self.shutdown is None:
            return self.drain_timeout
        return self.shutdown.remaining_seconds()
