"""CLI module for the Audio Compression Orchestrator."""

import dataclasses
import logging
import sys
from pathlib import Path

import click

from aco.cli.exit_codes import ExitCode
from aco.config import ConfigFileError, get_config
from aco.config.loader import get_data_dir

logger = logging.getLogger(__name__)


def _configure_logging(
    ctx: click.Context,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    from aco.logging import configure_logging

    overrides: dict[str, object] = {}
    if log_level is not None:
        overrides["level"] = log_level
    if log_file is not None:
        overrides["file"] = log_file
    if log_json:
        overrides["format"] = "json"
    config = ctx.obj["config"]
    configure_logging(dataclasses.replace(config.logging, **overrides))


@click.group()
@click.version_option(package_name="aco")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to configuration file (default: ~/.aco/config.toml).",
)
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
    config_path: Path | None,
) -> None:
    """Audio Compression Orchestrator - shrink uploaded audio for mobile."""
    ctx.ensure_object(dict)

    # Tests may pass a ready-made config
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = get_config(config_path=config_path)
        except (ConfigFileError, ValueError) as e:
            click.echo(f"Configuration error: {e}", err=True)
            sys.exit(ExitCode.CONFIG_ERROR)

    _configure_logging(ctx, log_level, log_file, log_json)
    logger.debug(
        "ACO starting: data_dir=%s, config=%s",
        str(get_data_dir()).replace(str(Path.home()), "~"),
        config_path or "default",
    )


# Defer import to avoid circular dependency
def _register_commands():
    from aco.cli.backfill import backfill_command
    from aco.cli.compress import compress_command
    from aco.cli.doctor import doctor_command
    from aco.cli.serve import serve_command

    main.add_command(backfill_command)
    main.add_command(compress_command)
    main.add_command(doctor_command)
    main.add_command(serve_command)


_register_commands()
