"""aiohttp application for daemon mode.

Endpoints:
    GET /health - Daemon and trigger health
    POST /api/assets - Register a new asset and publish asset.created
    GET /api/assets/{id} - Fetch a stored asset
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, field

from aiohttp import web
from pydantic import ValidationError

from aco import __version__
from aco.db.connection import check_database_connectivity
from aco.db.store import SqliteAssetStore
from aco.events.bus import ASSET_CREATED, AssetCreatedEvent, EventBus
from aco.events.trigger import CompressionEventTrigger
from aco.server.lifecycle import DaemonLifecycle
from aco.server.models import AssetCreateRequest

logger = logging.getLogger(__name__)

HEALTH_CHECK_TIMEOUT = 5.0  # seconds

STORE_KEY = web.AppKey("store", SqliteAssetStore)
BUS_KEY = web.AppKey("bus", EventBus)
TRIGGER_KEY = web.AppKey("trigger", CompressionEventTrigger)
LIFECYCLE_KEY = web.AppKey("lifecycle", DaemonLifecycle)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@dataclass
class HealthStatus:
    """Health check response payload."""

    status: str
    """Overall status: 'healthy' or 'degraded'."""

    database: str
    """Database connectivity: 'connected' or 'disconnected'."""

    uptime_seconds: float
    version: str
    shutting_down: bool = False
    trigger: dict[str, int] = field(default_factory=dict)
    """Event trigger counters plus the queue depth."""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


async def check_database_health(store: SqliteAssetStore) -> bool:
    """Check database connectivity without blocking the event loop."""
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(check_database_connectivity, store.db_path),
            timeout=HEALTH_CHECK_TIMEOUT,
        )
    except asyncio.TimeoutError:
        logger.warning(
            "Database health check timed out after %.1fs", HEALTH_CHECK_TIMEOUT
        )
        return False


def shutdown_check(handler: Handler) -> Handler:
    """Decorator that returns 503 while the daemon is shutting down."""

    async def wrapper(request: web.Request) -> web.StreamResponse:
        lifecycle = request.app.get(LIFECYCLE_KEY)
        if lifecycle and lifecycle.is_shutting_down:
            return web.json_response(
                {"error": "Service is shutting down"},
                status=503,
            )
        return await handler(request)

    return wrapper


async def health_handler(request: web.Request) -> web.Response:
    """Handle GET /health.

    Returns 200 when healthy, 503 when the database is unreachable or the
    daemon is shutting down.
    """
    store = request.app[STORE_KEY]
    lifecycle = request.app.get(LIFECYCLE_KEY)
    trigger = request.app.get(TRIGGER_KEY)

    db_connected = await check_database_health(store)
    shutting_down = lifecycle.is_shutting_down if lifecycle else False

    trigger_stats: dict[str, int] = {}
    if trigger is not None:
        trigger_stats = trigger.stats.to_dict()
        trigger_stats["pending"] = trigger.pending

    healthy = db_connected and not shutting_down
    health = HealthStatus(
        status="healthy" if healthy else "degraded",
        database="connected" if db_connected else "disconnected",
        uptime_seconds=round(lifecycle.uptime_seconds, 1) if lifecycle else 0.0,
        version=__version__,
        shutting_down=shutting_down,
        trigger=trigger_stats,
    )
    return web.json_response(health.to_dict(), status=200 if healthy else 503)


@shutdown_check
async def create_asset_handler(request: web.Request) -> web.Response:
    """Handle POST /api/assets.

    The response is sent as soon as the record is stored; compression runs
    afterwards and never changes the response.
    """
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        return web.json_response({"error": "Invalid JSON payload"}, status=400)

    try:
        create_request = AssetCreateRequest.model_validate(payload)
    except ValidationError as e:
        return web.json_response(
            {
                "error": "Invalid request",
                "details": e.errors(include_url=False, include_context=False),
            },
            status=400,
        )

    store = request.app[STORE_KEY]
    record = await asyncio.to_thread(store.insert_asset, create_request.to_record())
    logger.info("Registered asset %s (%s)", record.id, record.url)

    request.app[BUS_KEY].publish(ASSET_CREATED, AssetCreatedEvent(record=record))
    return web.json_response(record.to_dict(), status=201)


async def get_asset_handler(request: web.Request) -> web.Response:
    """Handle GET /api/assets/{id}."""
    try:
        asset_id = int(request.match_info["id"])
    except ValueError:
        return web.json_response({"error": "Invalid asset id"}, status=400)

    record = await asyncio.to_thread(request.app[STORE_KEY].get_asset, asset_id)
    if record is None:
        return web.json_response({"error": "Asset not found"}, status=404)
    return web.json_response(record.to_dict())


async def _start_trigger(app: web.Application) -> None:
    trigger = app.get(TRIGGER_KEY)
    if trigger is not None:
        await trigger.start()


async def _stop_trigger(app: web.Application) -> None:
    trigger = app.get(TRIGGER_KEY)
    if trigger is None:
        return
    lifecycle = app.get(LIFECYCLE_KEY)
    timeout = lifecycle.drain_budget() if lifecycle else 30.0
    await trigger.stop(timeout=timeout)


def create_app(
    store: SqliteAssetStore,
    bus: EventBus,
    trigger: CompressionEventTrigger | None = None,
    lifecycle: DaemonLifecycle | None = None,
) -> web.Application:
    """Create and configure the aiohttp Application.

    Args:
        store: Asset store; its schema must already exist.
        bus: Bus that receives asset.created events.
        trigger: Optional compression trigger, started and stopped with the
            application.
        lifecycle: Optional lifecycle for uptime and shutdown state.

    Returns:
        Configured aiohttp Application instance.
    """
    app = web.Application()
    app[STORE_KEY] = store
    app[BUS_KEY] = bus
    if trigger is not None:
        app[TRIGGER_KEY] = trigger
    if lifecycle is not None:
        app[LIFECYCLE_KEY] = lifecycle

    app.router.add_get("/health", health_handler)
    app.router.add_post("/api/assets", create_asset_handler)
    app.router.add_get("/api/assets/{id}", get_asset_handler)

    app.on_startup.append(_start_trigger)
    app.on_cleanup.append(_stop_trigger)
    return app
