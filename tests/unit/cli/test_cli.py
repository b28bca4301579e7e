"""Tests for the aco command line."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from aco.cli import main
from aco.compression.exceptions import EncoderConfigurationError
from aco.config.models import ACOConfig, StorageConfig
from aco.tools.models import FFmpegInfo, ToolStatus


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config(temp_dir: Path, public_dir: Path) -> ACOConfig:
    return ACOConfig(
        storage=StorageConfig(
            public_dir=public_dir, database_path=temp_dir / "assets.db"
        )
    )


@pytest.fixture
def ffmpeg_info() -> FFmpegInfo:
    return FFmpegInfo(
        path=Path("/usr/bin/ffmpeg"),
        version="6.1.1",
        status=ToolStatus.AVAILABLE,
        encoders={"libmp3lame", "aac"},
    )


@pytest.fixture
def encoder(ffmpeg_info, fake_transcoder):
    """Pretend a working encoder is installed, transcoding with the fake."""
    with (
        patch("aco.cli.helpers.probe_encoder", return_value=ffmpeg_info),
        patch(
            "aco.compression.factory.AudioTranscoder", return_value=fake_transcoder
        ),
    ):
        yield fake_transcoder


def invoke(runner, config, *args):
    return runner.invoke(main, list(args), obj={"config": config})


class TestMain:
    def test_help_lists_commands(self, runner, config):
        result = invoke(runner, config, "--help")

        assert result.exit_code == 0
        for command in ("backfill", "compress", "doctor", "serve"):
            assert command in result.output

    def test_invalid_config_file(self, runner, temp_dir):
        path = temp_dir / "broken.toml"
        path.write_text("[storage\npublic_dir = ")

        result = runner.invoke(main, ["--config", str(path), "doctor"])

        assert result.exit_code == 2
        assert "Configuration error" in result.output

    def test_out_of_range_config_value(self, runner, temp_dir):
        path = temp_dir / "config.toml"
        path.write_text("[server]\nport = 0\n")

        result = runner.invoke(main, ["--config", str(path), "doctor"])

        assert result.exit_code == 2
        assert "port must be 1-65535" in result.output


class TestCompressCommand:
    def test_compresses_asset(self, runner, config, encoder, make_asset, store):
        asset = make_asset(size_kb=2048)

        result = invoke(runner, config, "compress", str(asset.id))

        assert result.exit_code == 0, result.output
        assert f"Compressed asset {asset.id} -> /uploads/track_0001_m" in result.output
        assert store.get_asset(asset.id).mime_type == "audio/mpeg"

    def test_reports_skip(self, runner, config, encoder, make_asset):
        asset = make_asset(size_kb=10)

        result = invoke(runner, config, "compress", str(asset.id))

        assert result.exit_code == 0
        assert f"Skipped asset {asset.id}: below size threshold" in result.output
        assert encoder.calls == []

    def test_failure_exit_code(self, runner, config, encoder, make_asset, store):
        asset = make_asset(size_kb=2048)
        encoder.fail_with(returncode=1, stderr="Invalid data found")

        result = invoke(runner, config, "compress", str(asset.id))

        assert result.exit_code == 1
        assert f"compression of asset {asset.id} failed" in result.output
        assert store.get_asset(asset.id) == asset

    def test_missing_encoder(self, runner, config, make_asset):
        asset = make_asset()
        error = EncoderConfigurationError("ffmpeg not found in PATH")

        with patch("aco.cli.helpers.probe_encoder", side_effect=error):
            result = invoke(runner, config, "compress", str(asset.id))

        assert result.exit_code == 2
        assert "ffmpeg not found in PATH" in result.output


class TestBackfillCommand:
    def test_compresses_eligible_assets(self, runner, config, encoder, make_asset):
        make_asset(size_kb=2048)
        make_asset(size_kb=10)
        make_asset(provider="aws-s3", write_file=False)

        result = invoke(runner, config, "backfill", "--page-size", "1")

        assert result.exit_code == 0, result.output
        assert "Processed 2 asset(s): 1 compressed, 1 skipped, 0 failed" in (
            result.output
        )
        assert len(encoder.calls) == 1

    def test_min_size_override(self, runner, config, encoder, make_asset):
        make_asset(size_kb=10)

        result = invoke(runner, config, "backfill", "--min-size-kb", "0")

        assert result.exit_code == 0, result.output
        assert "1 compressed" in result.output

    def test_failures_exit_nonzero(self, runner, config, encoder, make_asset):
        make_asset(size_kb=2048)
        encoder.fail_with()

        result = invoke(runner, config, "backfill")

        assert result.exit_code == 1
        assert "1 failed" in result.output

    def test_rejects_invalid_page_size(self, runner, config):
        result = invoke(runner, config, "backfill", "--page-size", "0")
        assert result.exit_code == 2


class TestDoctorCommand:
    def test_all_ok(self, runner, config, store, ffmpeg_info):
        with patch("aco.cli.doctor.detect_ffmpeg", return_value=ffmpeg_info):
            result = invoke(runner, config, "doctor")

        assert result.exit_code == 0
        assert "✓ ffmpeg: 6.1.1" in result.output
        assert "✓ encoder: libmp3lame" in result.output

    def test_json_output(self, runner, config, store, ffmpeg_info):
        with patch("aco.cli.doctor.detect_ffmpeg", return_value=ffmpeg_info):
            result = invoke(runner, config, "doctor", "--json")

        data = json.loads(result.stdout)
        assert data["encoder"] == {"name": "libmp3lame", "available": True}
        assert data["database"]["connected"] is True
        assert data["database"]["assets"] == 0
        assert data["exit_code"] == 0

    def test_reports_asset_counts(self, runner, config, make_asset, ffmpeg_info):
        make_asset(write_file=False)
        make_asset(provider="aws-s3", write_file=False)

        with patch("aco.cli.doctor.detect_ffmpeg", return_value=ffmpeg_info):
            result = invoke(runner, config, "doctor")

        assert "2 asset(s), 1 stored locally" in result.output

    def test_missing_database_is_warning(self, runner, config, ffmpeg_info):
        with patch("aco.cli.doctor.detect_ffmpeg", return_value=ffmpeg_info):
            result = invoke(runner, config, "doctor")

        assert result.exit_code == 1
        assert "✗ database" in result.output

    def test_missing_lame_is_critical(self, runner, config, store, ffmpeg_info):
        ffmpeg_info.encoders = {"aac"}

        with patch("aco.cli.doctor.detect_ffmpeg", return_value=ffmpeg_info):
            result = invoke(runner, config, "doctor")

        assert result.exit_code == 2
        assert "--enable-libmp3lame" in result.output

    def test_missing_ffmpeg(self, runner, config, store):
        missing = FFmpegInfo(status_message="ffmpeg not found in PATH")

        with patch("aco.cli.doctor.detect_ffmpeg", return_value=missing):
            result = invoke(runner, config, "doctor")

        assert result.exit_code == 2
        assert "✗ ffmpeg: not found" in result.output
