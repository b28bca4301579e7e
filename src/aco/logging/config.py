"""Root logger setup from LoggingConfig."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from aco.logging.context import AssetContextFilter
from aco.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from aco.config.models import LoggingConfig

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(asset_tag)s%(name)s: %(message)s"

# Per-request access lines drown out compression logs below debug
_NOISY_LOGGERS = ("aiohttp.access",)


def _formatter(log_format: str) -> logging.Formatter:
    if log_format.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")


def _file_handler(config: LoggingConfig) -> logging.Handler | None:
    assert config.file is not None
    path = Path(config.file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: cannot write log file {path}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> list[logging.Handler]:
    """Replace the root logger's handlers according to ``config``.

    Logs go to the rotating file when one is configured and can be opened,
    and to stderr otherwise (or additionally, with include_stderr).

    Returns:
        The installed handlers.
    """
    level = logging.getLevelName(config.level.upper())
    handlers: list[logging.Handler] = []

    if config.file is not None:
        file_handler = _file_handler(config)
        if file_handler is not None:
            handlers.append(file_handler)
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = _formatter(config.format)
    context_filter = AssetContextFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(level)

    quiet_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
    return handlers
