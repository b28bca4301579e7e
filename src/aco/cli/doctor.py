"""ACO doctor command for checking the encoder and storage setup."""

import json
import logging
import sqlite3
import sys
from pathlib import Path

import click

from aco.cli.exit_codes import ExitCode
from aco.cli.helpers import get_cli_config
from aco.db.connection import check_database_connectivity
from aco.db.store import SqliteAssetStore
from aco.db.types import LOCAL_PROVIDER
from aco.tools.detection import REQUIRED_ENCODER, detect_ffmpeg

logger = logging.getLogger(__name__)


def _format_status(ok: bool) -> str:
    """Format status for display."""
    return "✓" if ok else "✗"


def _asset_counts(db_path: Path) -> tuple[int, int] | None:
    """(all assets, local assets), or None if the schema is not there yet."""
    store = SqliteAssetStore(db_path)
    try:
        return store.count(), store.count(LOCAL_PROVIDER)
    except sqlite3.Error as e:
        logger.debug("Cannot count assets in %s: %s", db_path, e)
        return None


@click.command("doctor")
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results as JSON",
)
@click.pass_context
def doctor_command(ctx: click.Context, json_output: bool) -> None:
    """Check ffmpeg, the MP3 encoder and the storage locations.

    Exit codes:
      0 - Everything available
      1 - Warnings (database or public directory missing)
      2 - Critical issues (ffmpeg or libmp3lame missing)
    """
    config = get_cli_config(ctx)
    ffmpeg = detect_ffmpeg(config.transcode.ffmpeg_path)
    has_encoder = ffmpeg.can_encode_mp3
    public_dir = config.storage.public_dir
    public_ok = public_dir.is_dir()
    db_path = config.storage.database_path
    db_ok = check_database_connectivity(db_path)
    counts = _asset_counts(db_path) if db_ok else None

    if not has_encoder:
        exit_code = ExitCode.CONFIG_ERROR
    elif not (public_ok and db_ok):
        exit_code = ExitCode.FAILURE
    else:
        exit_code = ExitCode.SUCCESS

    if json_output:
        result = {
            "ffmpeg": ffmpeg.to_dict(),
            "encoder": {"name": REQUIRED_ENCODER, "available": has_encoder},
            "public_dir": {"path": str(public_dir), "exists": public_ok},
            "database": {
                "path": str(db_path),
                "connected": db_ok,
                "assets": counts[0] if counts else None,
                "local_assets": counts[1] if counts else None,
            },
            "exit_code": int(exit_code),
        }
        click.echo(json.dumps(result, indent=2))
        sys.exit(exit_code)

    click.echo("ACO Health Check")
    click.echo("=" * 40)
    version = ffmpeg.version or "not found"
    path_info = f" ({ffmpeg.path})" if ffmpeg.path else ""
    ffmpeg_status = _format_status(ffmpeg.is_available())
    click.echo(f"  {ffmpeg_status} ffmpeg: {version}{path_info}")
    if not ffmpeg.is_available():
        click.echo(f"    └─ {ffmpeg.status_message}")
        click.echo("    └─ Install ffmpeg: https://ffmpeg.org/download.html")
    click.echo(f"  {_format_status(has_encoder)} encoder: {REQUIRED_ENCODER}")
    if ffmpeg.is_available() and not has_encoder:
        click.echo("    └─ Install an ffmpeg build with --enable-libmp3lame")
    click.echo(f"  {_format_status(public_ok)} public dir: {public_dir}")
    click.echo(f"  {_format_status(db_ok)} database: {db_path}")
    if counts is not None:
        click.echo(f"    └─ {counts[0]} asset(s), {counts[1]} stored locally")
    if not db_ok:
        click.echo("    └─ Created on first 'aco serve' or 'aco backfill'")

    sys.exit(exit_code)
