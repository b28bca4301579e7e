"""External encoder detection."""

from aco.tools.detection import (
    REQUIRED_ENCODER,
    detect_ffmpeg,
    find_ffmpeg,
    parse_encoder_list,
    parse_version_string,
    probe_encoder,
)
from aco.tools.models import MP3_ENCODER, FFmpegInfo, ToolStatus

__all__ = [
    "MP3_ENCODER",
    "REQUIRED_ENCODER",
    "FFmpegInfo",
    "ToolStatus",
    "detect_ffmpeg",
    "find_ffmpeg",
    "parse_encoder_list",
    "parse_version_string",
    "probe_encoder",
]
