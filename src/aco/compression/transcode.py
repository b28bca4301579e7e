"""Invocation of the external MP3 encoder."""

from __future__ import annotations

import asyncio
import logging
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import time
from pathlib import Path

from aco.compression.exceptions import EncoderUnavailableError, TranscodeError
from aco.config.models import CompressionProfile
from aco.core.subprocess_utils import run_command, tail_text

logger = logging.getLogger(__name__)

TARGET_EXTENSION = ".mp3"
TARGET_MIME_TYPE = "audio/mpeg"
TARGET_CODEC = "libmp3lame"

DEFAULT_TRANSCODE_TIMEOUT = 600


def build_transcode_command(
    ffmpeg_path: Path | str,
    input_path: Path,
    output_path: Path,
    profile: CompressionProfile,
) -> list[str]:
    """Build the ffmpeg argument list for one conversion.

    Video streams and container metadata are dropped; the output is
    overwritten if it exists.
    """
    return [
        str(ffmpeg_path),
        "-hide_banner",
        "-nostdin",
        "-i",
        str(input_path),
        "-vn",
        "-ac",
        str(profile.channels),
        "-ar",
        str(profile.sample_rate_hz),
        "-c:a",
        TARGET_CODEC,
        "-b:a",
        f"{profile.bitrate_kbps}k",
        "-map_metadata",
        "-1",
        "-y",
        str(output_path),
    ]


def remove_partial_output(output_path: Path) -> None:
    """Remove whatever the encoder left at output_path."""
    try:
        output_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove partial output %s: %s", output_path, e)


def _timeout_stderr(error: subprocess.TimeoutExpired) -> str:
    stderr = error.stderr
    if stderr is None:
        return ""
    if isinstance(stderr, bytes):
        return stderr.decode("utf-8", errors="replace")
    return stderr


class AudioTranscoder:
    """Runs ffmpeg to convert one file to the compression profile.

    The blocking subprocess wait happens in a worker thread so callers on
    the event loop stay responsive.
    """

    def __init__(
        self,
        ffmpeg_path: Path | str = "ffmpeg",
        timeout_seconds: float = DEFAULT_TRANSCODE_TIMEOUT,
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.timeout_seconds = timeout_seconds

    async def transcode(
        self, input_path: Path, output_path: Path, profile: CompressionProfile
    ) -> None:
        """Convert input_path into output_path.

        Raises:
            EncoderUnavailableError: If ffmpeg cannot be launched.
            TranscodeError: On non-zero exit or timeout. Any partial output
                has been removed.
        """
        await asyncio.to_thread(output_path.parent.mkdir, parents=True, exist_ok=True)
        command = build_transcode_command(
            self.ffmpeg_path, input_path, output_path, profile
        )
        await asyncio.to_thread(self._run, command, input_path, output_path)

    def _run(self, command: list[str], input_path: Path, output_path: Path) -> None:
        start = time.monotonic()
        try:
            _, stderr, returncode = run_command(command, timeout=self.timeout_seconds)
        except subprocess.TimeoutExpired as e:
            remove_partial_output(output_path)
            raise TranscodeError(
                f"Encoder timed out after {self.timeout_seconds}s on {input_path}",
                stderr=tail_text(_timeout_stderr(e)),
                timed_out=True,
            ) from e
        except FileNotFoundError as e:
            remove_partial_output(output_path)
            raise EncoderUnavailableError(
                f"Encoder not found: {self.ffmpeg_path}", stderr=str(e)
            ) from e
        except OSError as e:
            remove_partial_output(output_path)
            raise TranscodeError(
                f"Failed to launch encoder {self.ffmpeg_path}: {e}", stderr=str(e)
            ) from e

        if returncode != 0:
            remove_partial_output(output_path)
            raise TranscodeError(
                f"Encoder exited with code {returncode} on {input_path}",
                returncode=returncode,
                stderr=tail_text(stderr),
            )

        if stderr:
            logger.debug(
                "Encoder diagnostics for %s: %s", input_path, tail_text(stderr)
            )
        logger.debug(
            "Transcoded %s -> %s in %.2fs",
            input_path,
            output_path,
            time.monotonic() - start,
        )
