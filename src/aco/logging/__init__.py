"""Structured logging module for ACO.

Provides text/JSON log output with file rotation, and asset context
injection so every line logged during a compression names its asset.
"""

from aco.logging.config import configure_logging
from aco.logging.context import (
    AssetContextFilter,
    asset_context,
    get_asset_context,
)
from aco.logging.handlers import JSONFormatter

__all__ = [
    "AssetContextFilter",
    "JSONFormatter",
    "asset_context",
    "configure_logging",
    "get_asset_context",
]
