"""Encoder detection and the startup capability probe.

The pipeline only works with an ffmpeg build that ships the MP3 encoder, so
every entry point probes once before doing any work.
"""

import logging
import re
import shutil
import subprocess  # nosec B404 - subprocess is required for tool detection
from datetime import datetime, timezone
from pathlib import Path

from aco.compression.exceptions import EncoderConfigurationError
from aco.core.subprocess_utils import run_command
from aco.tools.models import MP3_ENCODER, FFmpegInfo, ToolStatus

logger = logging.getLogger(__name__)

# Timeout for version/capability detection commands (seconds)
DETECTION_TIMEOUT = 10

REQUIRED_ENCODER = MP3_ENCODER

_VERSION_PATTERN = re.compile(r"ffmpeg version (\S+)")
_ENCODER_LINE = re.compile(r"\s+[VASFXBDI.]{6}\s+(\S+)")


def parse_version_string(version_str: str) -> tuple[int, ...] | None:
    """Parse a version string into a comparable tuple.

    Handles "6.1.1" -> (6, 1, 1), "n6.1" -> (6, 1) and distro suffixes like
    "4.4.2-0ubuntu0.22.04.1" -> (4, 4, 2).

    Returns:
        Tuple of version components, or None if parsing fails.
    """
    if not version_str:
        return None

    version_str = version_str.lstrip("nv")
    match = re.match(r"(\d+(?:\.\d+)*)", version_str)
    if not match:
        return None
    return tuple(int(p) for p in match.group(1).split("."))


def find_ffmpeg(configured_path: Path | None = None) -> Path | None:
    """Find the ffmpeg executable, preferring the configured path."""
    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning("Configured path for ffmpeg is not a file: %s", configured_path)

    which_result = shutil.which("ffmpeg")
    if which_result:
        return Path(which_result)
    return None


def _run_detection(args: list[str]) -> tuple[str, str, int]:
    try:
        return run_command(args, timeout=DETECTION_TIMEOUT)
    except subprocess.TimeoutExpired:
        return "", "timeout", -1
    except OSError as e:
        return "", str(e), -1


def parse_encoder_list(output: str) -> set[str]:
    """Parse `ffmpeg -encoders` output into a set of lowercase encoder names."""
    # Format: " A....D libmp3lame    libmp3lame MP3 (MPEG audio layer 3)"
    # The legend lines (" A..... = Audio") match too and yield "="
    return {
        match.group(1).casefold()
        for line in output.split("\n")
        if (match := _ENCODER_LINE.match(line)) and match.group(1) != "="
    }


def detect_ffmpeg(configured_path: Path | None = None) -> FFmpegInfo:
    """Detect ffmpeg, its version and its encoders.

    Never raises; problems are reported through ``status``.
    """
    info = FFmpegInfo(detected_at=datetime.now(timezone.utc))

    path = find_ffmpeg(configured_path)
    if not path:
        info.status_message = "ffmpeg not found in PATH"
        return info
    info.path = path

    stdout, stderr, rc = _run_detection([str(path), "-version"])
    if rc != 0:
        info.status = ToolStatus.ERROR
        info.status_message = f"Failed to get ffmpeg version: {stderr.strip()}"
        return info

    version_match = _VERSION_PATTERN.search(stdout)
    if version_match:
        info.version = version_match.group(1)
        info.version_tuple = parse_version_string(info.version)
        if info.version_tuple is None:
            logger.warning(
                "Could not parse ffmpeg version '%s' into comparable tuple",
                info.version,
            )

    stdout, stderr, rc = _run_detection([str(path), "-hide_banner", "-encoders"])
    if rc == 0:
        info.encoders = parse_encoder_list(stdout)
    else:
        logger.warning("Failed to enumerate ffmpeg encoders: %s", stderr.strip())

    info.status = ToolStatus.AVAILABLE
    return info


def probe_encoder(configured_path: Path | None = None) -> FFmpegInfo:
    """Verify that a usable MP3 encoder is installed.

    Args:
        configured_path: Optional configured path to ffmpeg.

    Returns:
        The detected FFmpegInfo.

    Raises:
        EncoderConfigurationError: If ffmpeg is missing or broken, or was
            built without libmp3lame.
    """
    info = detect_ffmpeg(configured_path)
    if not info.is_available():
        raise EncoderConfigurationError(
            info.status_message or "ffmpeg is not available"
        )
    if not info.can_encode_mp3:
        raise EncoderConfigurationError(
            f"ffmpeg at {info.path} was built without the {REQUIRED_ENCODER} "
            "encoder"
        )
    logger.info(
        "Using ffmpeg %s at %s", info.version or "(unknown version)", info.path
    )
    return info
