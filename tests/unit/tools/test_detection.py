"""Tests for ffmpeg detection and the startup encoder probe."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from aco.compression.exceptions import EncoderConfigurationError
from aco.tools.detection import (
    detect_ffmpeg,
    parse_encoder_list,
    parse_version_string,
    probe_encoder,
)
from aco.tools.models import FFmpegInfo, ToolStatus

VERSION_OUTPUT = """ffmpeg version 6.1.1-3ubuntu5 Copyright (c) 2000-2023 the FFmpeg developers
built with gcc 13 (Ubuntu 13.2.0-23ubuntu3)
configuration: --prefix=/usr --enable-gpl --enable-libmp3lame
"""

ENCODERS_OUTPUT = """Encoders:
 V..... = Video
 A..... = Audio
 ------
 V....D libx264              libx264 H.264 / AVC / MPEG-4 AVC
 A....D aac                  AAC (Advanced Audio Coding)
 A....D libmp3lame           libmp3lame MP3 (MPEG audio layer 3)
"""


def _fake_run(encoders_output: str = ENCODERS_OUTPUT):
    def run(args, timeout=None):
        if "-version" in args:
            return VERSION_OUTPUT, "", 0
        if "-encoders" in args:
            return encoders_output, "", 0
        raise AssertionError(f"unexpected command {args}")

    return run


class TestParsing:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("6.1.1", (6, 1, 1)),
            ("n6.1", (6, 1)),
            ("4.4.2-0ubuntu0.22.04.1", (4, 4, 2)),
            ("git-2024", None),
            ("", None),
        ],
    )
    def test_parse_version_string(self, text, expected):
        assert parse_version_string(text) == expected

    def test_parse_encoder_list(self):
        encoders = parse_encoder_list(ENCODERS_OUTPUT)

        assert {"libx264", "aac", "libmp3lame"} <= encoders
        assert "=" not in encoders


class TestDetectFfmpeg:
    def test_missing_binary(self):
        with patch("aco.tools.detection.shutil.which", return_value=None):
            info = detect_ffmpeg()

        assert info.status == ToolStatus.MISSING
        assert not info.is_available()

    def test_available_with_encoders(self):
        with (
            patch("aco.tools.detection.shutil.which", return_value="/usr/bin/ffmpeg"),
            patch("aco.tools.detection.run_command", side_effect=_fake_run()),
        ):
            info = detect_ffmpeg()

        assert info.is_available()
        assert info.path == Path("/usr/bin/ffmpeg")
        assert info.version == "6.1.1-3ubuntu5"
        assert info.version_tuple == (6, 1, 1)
        assert info.has_encoder("LIBMP3LAME")

    def test_configured_path_preferred(self, temp_dir):
        ffmpeg = temp_dir / "ffmpeg"
        ffmpeg.write_text("#!/bin/sh\n")
        with (
            patch("aco.tools.detection.shutil.which") as mock_which,
            patch("aco.tools.detection.run_command", side_effect=_fake_run()),
        ):
            info = detect_ffmpeg(ffmpeg)

        assert info.path == ffmpeg
        mock_which.assert_not_called()

    def test_version_timeout_is_error(self):
        with (
            patch("aco.tools.detection.shutil.which", return_value="/usr/bin/ffmpeg"),
            patch(
                "aco.tools.detection.run_command",
                side_effect=subprocess.TimeoutExpired("ffmpeg", 10),
            ),
        ):
            info = detect_ffmpeg()

        assert info.status == ToolStatus.ERROR


class TestProbeEncoder:
    def test_raises_when_missing(self):
        with patch("aco.tools.detection.shutil.which", return_value=None):
            with pytest.raises(EncoderConfigurationError, match="not found"):
                probe_encoder()

    def test_raises_without_libmp3lame(self):
        encoders = ENCODERS_OUTPUT.replace("libmp3lame ", "libshine ")
        with (
            patch("aco.tools.detection.shutil.which", return_value="/usr/bin/ffmpeg"),
            patch(
                "aco.tools.detection.run_command", side_effect=_fake_run(encoders)
            ),
        ):
            with pytest.raises(EncoderConfigurationError, match="libmp3lame"):
                probe_encoder()

    def test_returns_info_when_usable(self):
        with (
            patch("aco.tools.detection.shutil.which", return_value="/usr/bin/ffmpeg"),
            patch("aco.tools.detection.run_command", side_effect=_fake_run()),
        ):
            info = probe_encoder()

        assert info.has_encoder("libmp3lame")


class TestFFmpegInfo:
    def test_can_encode_mp3_needs_available_binary(self):
        info = FFmpegInfo(encoders={"libmp3lame"})
        assert not info.can_encode_mp3

        info.status = ToolStatus.AVAILABLE
        assert info.can_encode_mp3

    def test_to_dict(self):
        info = FFmpegInfo(
            path=Path("/usr/bin/ffmpeg"),
            version="6.1",
            status=ToolStatus.AVAILABLE,
            encoders={"aac", "libmp3lame"},
        )

        data = info.to_dict()

        assert data["path"] == "/usr/bin/ffmpeg"
        assert data["status"] == "available"
        assert data["mp3_encoder"] is True
        assert data["encoders"] == ["aac", "libmp3lame"]
