"""CLI backfill command: compress audio uploaded before the trigger ran."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import sys

import click

from aco.cli.exit_codes import ExitCode
from aco.cli.helpers import get_cli_config, require_encoder
from aco.compression.factory import create_pipeline
from aco.jobs.backfill import BackfillRunner, BackfillSummary
from aco.server.signals import remove_signal_handlers, setup_signal_handlers

logger = logging.getLogger(__name__)


async def run_backfill(runner: BackfillRunner) -> BackfillSummary:
    """Run the backfill with SIGINT/SIGTERM wired to a graceful stop."""
    loop = asyncio.get_running_loop()
    setup_signal_handlers(loop, lambda _signal_name: runner.request_stop())
    try:
        return await runner.run()
    finally:
        remove_signal_handlers(loop)


@click.command("backfill")
@click.option(
    "--page-size",
    type=click.IntRange(1, 1000),
    default=None,
    help="Records fetched per page (default: 100).",
)
@click.option(
    "--min-size-kb",
    type=click.FloatRange(min=0),
    default=None,
    help="Skip files smaller than this many KB (default: 1024).",
)
@click.option(
    "--bitrate-kbps",
    type=click.IntRange(min=1),
    default=None,
    help="Target MP3 bitrate (default: 80).",
)
@click.pass_context
def backfill_command(
    ctx: click.Context,
    page_size: int | None,
    min_size_kb: float | None,
    bitrate_kbps: int | None,
) -> None:
    """Compress every eligible audio asset already in the store.

    Safe to interrupt and re-run: assets that were already compressed are
    skipped. Ctrl+C stops after the asset in progress.

    \b
    Examples:
        aco backfill
        aco backfill --page-size 50 --min-size-kb 512
    """
    config = get_cli_config(ctx)
    profile_changes = {}
    if min_size_kb is not None:
        profile_changes["min_size_threshold_kb"] = min_size_kb
    if bitrate_kbps is not None:
        profile_changes["bitrate_kbps"] = bitrate_kbps
    if profile_changes:
        config = dataclasses.replace(
            config, profile=dataclasses.replace(config.profile, **profile_changes)
        )

    ffmpeg = require_encoder(config)
    pipeline = create_pipeline(config, ffmpeg_path=str(ffmpeg.path))
    runner = BackfillRunner(
        pipeline.store,
        pipeline.coordinator,
        page_size=page_size or config.backfill.page_size,
    )

    summary = asyncio.run(run_backfill(runner))

    click.echo(
        f"Processed {summary.processed} asset(s): {summary.compressed} compressed, "
        f"{summary.skipped} skipped, {summary.failed} failed"
    )
    if summary.stopped:
        click.echo("Stopped early; run again to continue.")
    if summary.failed:
        sys.exit(ExitCode.FAILURE)
