"""CLI serve command for daemon mode.

`aco serve` accepts asset registrations over HTTP and compresses new audio
uploads in the background.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import os
import sys

import click

from aco.cli.exit_codes import ExitCode
from aco.cli.helpers import get_cli_config, require_encoder
from aco.compression.factory import create_pipeline
from aco.config.models import ACOConfig

logger = logging.getLogger(__name__)


async def run_server(config: ACOConfig, ffmpeg_path: str | None = None) -> int:
    """Run the daemon until SIGTERM/SIGINT.

    Returns:
        Exit code (0 for clean shutdown, non-zero for errors).
    """
    from aiohttp import web

    from aco.events.bus import EventBus
    from aco.events.trigger import CompressionEventTrigger
    from aco.server.app import create_app
    from aco.server.lifecycle import DaemonLifecycle
    from aco.server.signals import remove_signal_handlers, setup_signal_handlers

    bind = config.server.bind
    port = config.server.port
    lifecycle = DaemonLifecycle(drain_timeout=config.server.shutdown_timeout)
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def request_shutdown(reason: str) -> None:
        lifecycle.request_shutdown(reason)
        shutdown_event.set()

    setup_signal_handlers(loop, request_shutdown)

    pipeline = await asyncio.to_thread(create_pipeline, config, ffmpeg_path)
    bus = EventBus()
    trigger = CompressionEventTrigger(
        bus,
        pipeline.coordinator,
        workers=config.trigger.workers,
        queue_size=config.trigger.queue_size,
    )
    app = create_app(pipeline.store, bus, trigger=trigger, lifecycle=lifecycle)

    runner = web.AppRunner(app)
    await runner.setup()

    try:
        site = web.TCPSite(runner, bind, port)
        await site.start()

        logger.info(
            "ACO daemon started on http://%s:%d (PID %d)", bind, port, os.getpid()
        )
        logger.info("Health endpoint: http://%s:%d/health", bind, port)
        logger.info("Press Ctrl+C or send SIGTERM to stop")

        await shutdown_event.wait()

    except OSError as e:
        if e.errno == 98:
            logger.error("Port %d is already in use", port)
        elif e.errno == 99:
            logger.error("Cannot bind to address %s", bind)
        else:
            logger.error("Server error: %s", e)
        return ExitCode.FAILURE
    finally:
        remove_signal_handlers(loop)
        # Cleanup stops the trigger, draining its queue
        await runner.cleanup()
        logger.info("ACO daemon stopped")

    return ExitCode.SUCCESS


@click.command("serve")
@click.option(
    "--bind",
    type=str,
    default=None,
    help="Address to bind to (default: 127.0.0.1).",
)
@click.option(
    "--port",
    "-p",
    type=click.IntRange(1, 65535),
    default=None,
    help="Port to bind to (default: 8331).",
)
@click.pass_context
def serve_command(ctx: click.Context, bind: str | None, port: int | None) -> None:
    """Run ACO as a background daemon.

    Serves POST /api/assets and GET /health, compressing new audio uploads
    as they are registered. Handles graceful shutdown on SIGTERM (from
    systemd) or SIGINT (Ctrl+C).

    \b
    Examples:
        aco serve                  # Start with defaults
        aco serve --port 9000      # Custom port
        aco serve --bind 0.0.0.0   # Listen on all interfaces
    """
    config = get_cli_config(ctx)
    server_changes = {}
    if bind is not None:
        server_changes["bind"] = bind
    if port is not None:
        server_changes["port"] = port
    if server_changes:
        config = dataclasses.replace(
            config, server=dataclasses.replace(config.server, **server_changes)
        )

    if config.server.port < 1024:
        logger.warning(
            "Port %d is privileged and may require root", config.server.port
        )

    ffmpeg = require_encoder(config)
    logger.info(
        "Starting ACO daemon (bind=%s, port=%d, timeout=%.1fs)",
        config.server.bind,
        config.server.port,
        config.server.shutdown_timeout,
    )

    exit_code = asyncio.run(run_server(config, ffmpeg_path=str(ffmpeg.path)))
    sys.exit(exit_code)
