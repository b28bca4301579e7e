"""CLI compress command: compress a single asset by id."""

import asyncio
import sys

import click

from aco.cli.exit_codes import ExitCode
from aco.cli.helpers import get_cli_config, require_encoder
from aco.compression.exceptions import CompressionError
from aco.compression.factory import create_pipeline

TRIGGER_NAME = "cli"


@click.command("compress")
@click.argument("asset_id", type=int)
@click.pass_context
def compress_command(ctx: click.Context, asset_id: int) -> None:
    """Compress one asset now, if it is eligible."""
    config = get_cli_config(ctx)
    ffmpeg = require_encoder(config)
    pipeline = create_pipeline(config, ffmpeg_path=str(ffmpeg.path))

    try:
        outcome = asyncio.run(
            pipeline.coordinator.compress(asset_id, trigger=TRIGGER_NAME)
        )
    except CompressionError as e:
        click.echo(f"Error: compression of asset {asset_id} failed: {e}", err=True)
        sys.exit(ExitCode.FAILURE)

    if outcome.skipped:
        assert outcome.reason is not None
        message = f"Skipped asset {asset_id}: {outcome.reason.value}"
        if outcome.detail:
            message += f" ({outcome.detail})"
        click.echo(message)
        return

    assert outcome.record is not None
    click.echo(
        f"Compressed asset {asset_id} -> {outcome.record.url} "
        f"({outcome.record.size_kb:.1f} KB)"
    )
    if not outcome.original_deleted:
        click.echo(f"Warning: original file was not deleted: {outcome.source_path}")
