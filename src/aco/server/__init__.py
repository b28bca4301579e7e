"""Daemon mode: HTTP API, lifecycle and signal handling."""

from aco.server.app import HealthStatus, create_app
from aco.server.lifecycle import DaemonLifecycle, ShutdownState
from aco.server.models import AssetCreateRequest
from aco.server.signals import remove_signal_handlers, setup_signal_handlers

__all__ = [
    "AssetCreateRequest",
    "DaemonLifecycle",
    "HealthStatus",
    "ShutdownState",
    "create_app",
    "remove_signal_handlers",
    "setup_signal_handlers",
]
