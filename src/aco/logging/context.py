"""Asset context for structured logging.

The coordinator does not know which trigger called it; the triggers set
this context instead, and AssetContextFilter copies it onto log records.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_asset_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "asset_id", default=None
)
_trigger: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "trigger", default=None
)


@contextmanager
def asset_context(
    asset_id: int | None, trigger: str | None = None
) -> Generator[None, None, None]:
    """Tag log records emitted inside the block with an asset and trigger.

    Safe across asyncio tasks: each task runs in its own context copy.

    Example:
        with asset_context(42, "backfill"):
            logger.info("Compressing")  # -> "[backfill:42] Compressing"
    """
    asset_token = _asset_id.set(asset_id)
    trigger_token = _trigger.set(trigger)
    try:
        yield
    finally:
        _asset_id.reset(asset_token)
        _trigger.reset(trigger_token)


def get_asset_context() -> tuple[int | None, str | None]:
    """Get current (asset_id, trigger), either may be None."""
    return _asset_id.get(), _trigger.get()


class AssetContextFilter(logging.Filter):
    """Logging filter that injects asset context into log records.

    Adds asset_id and trigger attributes for JSON output and a compact
    asset_tag ("[event:42] ") for the text format.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        asset_id, trigger = get_asset_context()
        record.asset_id = asset_id
        record.trigger = trigger

        if asset_id is not None:
            record.asset_tag = f"[{trigger or 'asset'}:{asset_id}] "
        elif trigger:
            record.asset_tag = f"[{trigger}] "
        else:
            record.asset_tag = ""

        return True
