"""Typed reads of AUDIO_* and ACO_* environment variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

N = TypeVar("N", int, float)


class EnvReader:
    """Reads settings from a mapping, os.environ unless one is injected.

    Blank values count as unset. A number that does not parse is logged and
    treated as unset, so one typo in a unit file falls back to the default
    instead of keeping the daemon from starting.

    Example:
        reader = EnvReader(env={"AUDIO_BITRATE_KBPS": "64"})
        reader.get_int("AUDIO_BITRATE_KBPS", 80)  # -> 64
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def get_str(self, var: str, default: str | None = None) -> str | None:
        value = (self._env.get(var) or "").strip()
        return value or default

    def _get_number(
        self, var: str, default: N | None, parse: Callable[[str], N], kind: str
    ) -> N | None:
        raw = self.get_str(var)
        if raw is None:
            return default
        try:
            return parse(raw)
        except ValueError:
            logger.warning("Invalid %s value for %s: %s", kind, var, raw)
            return default

    def get_int(self, var: str, default: int | None = None) -> int | None:
        return self._get_number(var, default, int, "integer")

    def get_float(self, var: str, default: float | None = None) -> float | None:
        return self._get_number(var, default, float, "float")

    def get_path(self, var: str, default: Path | None = None) -> Path | None:
        """Path with ``~`` expanded; whether it exists is not checked."""
        raw = self.get_str(var)
        return Path(raw).expanduser() if raw is not None else default
