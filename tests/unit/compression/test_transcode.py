"""Tests for the ffmpeg invocation."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from aco.compression.exceptions import EncoderUnavailableError, TranscodeError
from aco.compression.transcode import AudioTranscoder, build_transcode_command
from aco.config.models import CompressionProfile


class TestBuildTranscodeCommand:
    def test_argument_order(self):
        profile = CompressionProfile(bitrate_kbps=80, channels=1, sample_rate_hz=22050)

        command = build_transcode_command(
            "ffmpeg", Path("in.wav"), Path("out.mp3"), profile
        )

        assert command == [
            "ffmpeg",
            "-hide_banner",
            "-nostdin",
            "-i",
            "in.wav",
            "-vn",
            "-ac",
            "1",
            "-ar",
            "22050",
            "-c:a",
            "libmp3lame",
            "-b:a",
            "80k",
            "-map_metadata",
            "-1",
            "-y",
            "out.mp3",
        ]


class TestAudioTranscoder:
    """Tests for AudioTranscoder with run_command mocked."""

    @pytest.fixture
    def paths(self, temp_dir):
        source = temp_dir / "in.wav"
        source.write_bytes(b"RIFF")
        return source, temp_dir / "out" / "result.mp3"

    @pytest.mark.asyncio
    async def test_success(self, paths, profile):
        source, target = paths

        def fake_run(args, timeout):
            Path(args[-1]).write_bytes(b"ID3")
            return "", "size=10kB", 0

        transcoder = AudioTranscoder("ffmpeg", timeout_seconds=30)
        with patch(
            "aco.compression.transcode.run_command", side_effect=fake_run
        ) as mock_run:
            await transcoder.transcode(source, target, profile)

        assert target.read_bytes() == b"ID3"
        assert mock_run.call_args.kwargs["timeout"] == 30

    @pytest.mark.asyncio
    async def test_non_zero_exit_removes_partial(self, paths, profile):
        source, target = paths

        def fake_run(args, timeout):
            Path(args[-1]).write_bytes(b"partial")
            return "", "Invalid data found when processing input", 1

        with patch("aco.compression.transcode.run_command", side_effect=fake_run):
            with pytest.raises(TranscodeError) as exc_info:
                await AudioTranscoder().transcode(source, target, profile)

        assert exc_info.value.returncode == 1
        assert "Invalid data" in exc_info.value.stderr
        assert not exc_info.value.timed_out
        assert not target.exists()

    @pytest.mark.asyncio
    async def test_timeout(self, paths, profile):
        source, target = paths

        with patch(
            "aco.compression.transcode.run_command",
            side_effect=subprocess.TimeoutExpired("ffmpeg", 5, stderr=b"frame=  10"),
        ):
            with pytest.raises(TranscodeError) as exc_info:
                await AudioTranscoder(timeout_seconds=5).transcode(
                    source, target, profile
                )

        assert exc_info.value.timed_out
        assert exc_info.value.returncode is None
        assert "frame" in exc_info.value.stderr

    @pytest.mark.asyncio
    async def test_missing_binary(self, paths, profile):
        source, target = paths

        with patch(
            "aco.compression.transcode.run_command",
            side_effect=FileNotFoundError("ffmpeg"),
        ):
            with pytest.raises(EncoderUnavailableError):
                await AudioTranscoder("/missing/ffmpeg").transcode(
                    source, target, profile
                )

    @pytest.mark.asyncio
    async def test_encoder_unavailable_is_transcode_error(self, paths, profile):
        source, target = paths

        with patch(
            "aco.compression.transcode.run_command",
            side_effect=FileNotFoundError("ffmpeg"),
        ):
            with pytest.raises(TranscodeError):
                await AudioTranscoder().transcode(source, target, profile)
