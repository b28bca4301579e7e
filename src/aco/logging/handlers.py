"""JSON log output.

Every entry is one line. Asset context is promoted to top-level keys so log
shippers can index compressions by asset without parsing messages.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries, plus the ones AssetContextFilter adds
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", None, None).__dict__
) | {"message", "asctime", "asset_id", "trigger", "asset_tag"}


class JSONFormatter(logging.Formatter):
    """Format records as ``{"timestamp", "level", "logger", "message", ...}``.

    ``asset_id`` and ``trigger`` appear when set. Values passed through
    ``extra=`` are collected under ``"extra"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        asset_id = getattr(record, "asset_id", None)
        if asset_id is not None:
            entry["asset_id"] = asset_id
        trigger = getattr(record, "trigger", None)
        if trigger is not None:
            entry["trigger"] = trigger

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
