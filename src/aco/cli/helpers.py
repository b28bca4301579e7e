"""Helpers shared by CLI commands."""

from __future__ import annotations

import logging
import sys

import click

from aco.cli.exit_codes import ExitCode
from aco.compression.exceptions import EncoderConfigurationError
from aco.config.models import ACOConfig
from aco.tools.detection import probe_encoder
from aco.tools.models import FFmpegInfo

logger = logging.getLogger(__name__)


def get_cli_config(ctx: click.Context) -> ACOConfig:
    """Return the configuration loaded by the main group."""
    return ctx.obj["config"]


def require_encoder(config: ACOConfig) -> FFmpegInfo:
    """Probe the encoder, exiting with CONFIG_ERROR if it is unusable."""
    try:
        return probe_encoder(config.transcode.ffmpeg_path)
    except EncoderConfigurationError as e:
        logger.error("Encoder check failed: %s", e)
        click.echo(f"Error: {e}", err=True)
        click.echo("Run 'aco doctor' for details.", err=True)
        sys.exit(ExitCode.CONFIG_ERROR)
