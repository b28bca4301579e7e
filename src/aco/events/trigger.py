"""Event-driven compression of newly created assets.

The bus handler only pre-filters and enqueues; worker tasks run the
coordinator, so the code that publishes asset.created never waits on a
transcode and never sees its failures.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import asdict, dataclass

from aco.compression.classifier import is_audio_asset
from aco.compression.coordinator import CompressionCoordinator
from aco.compression.exceptions import CompressionError
from aco.db.types import StorageProvider
from aco.events.bus import ASSET_CREATED, AssetCreatedEvent, EventBus

logger = logging.getLogger(__name__)

TRIGGER_NAME = "event"


@dataclass
class TriggerStats:
    """Counters for the event trigger since start()."""

    received: int = 0
    filtered: int = 0
    enqueued: int = 0
    dropped: int = 0
    compressed: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class CompressionEventTrigger:
    """Subscribes to asset.created and compresses eligible assets.

    The queue is bounded; when it is full new assets are dropped with a
    warning and left for the next backfill run.
    """

    def __init__(
        self,
        bus: EventBus,
        coordinator: CompressionCoordinator,
        workers: int = 1,
        queue_size: int = 100,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        if queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {queue_size}")
        self.bus = bus
        self.coordinator = coordinator
        self.workers = workers
        self.queue_size = queue_size
        self.stats = TriggerStats()
        self._stats_lock = threading.Lock()
        self._queue: asyncio.Queue[int] | None = None
        self._tasks: list[asyncio.Task[None]] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread: int | None = None

    @property
    def is_running(self) -> bool:
        return bool(self._tasks)

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def start(self) -> None:
        """Subscribe to the bus and spawn the worker tasks."""
        if self.is_running:
            raise RuntimeError("Event trigger already started")
        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self.stats = TriggerStats()
        self.bus.subscribe(ASSET_CREATED, self.handle_asset_created)
        self._tasks = [
            asyncio.create_task(self._worker(), name=f"aco-compress-{i}")
            for i in range(self.workers)
        ]
        logger.info(
            "Event trigger started (workers=%d, queue_size=%d)",
            self.workers,
            self.queue_size,
        )

    async def stop(self, timeout: float = 30.0) -> None:
        """Unsubscribe, let queued work finish, then cancel the workers.

        Work still queued after ``timeout`` seconds is abandoned.
        """
        if not self.is_running:
            return
        self.bus.unsubscribe(ASSET_CREATED, self.handle_asset_created)
        assert self._queue is not None
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Event trigger stopped with %d asset(s) still queued", self.pending
            )
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Event trigger stopped: %s", self.stats.to_dict())

    def _count(self, counter: str) -> None:
        # Publishers on other threads and the loop both update the counters
        with self._stats_lock:
            setattr(self.stats, counter, getattr(self.stats, counter) + 1)

    def handle_asset_created(self, event: AssetCreatedEvent) -> None:
        """Bus handler: pre-filter the new asset and enqueue its id."""
        self._count("received")
        record = event.record
        if record.id is None:
            self._count("filtered")
            return
        if record.storage_provider != StorageProvider.LOCAL or not is_audio_asset(
            record
        ):
            self._count("filtered")
            logger.debug("Ignoring asset %s (not a local audio file)", record.id)
            return

        if self._loop is None or self._queue is None:
            logger.warning("Event trigger not started, dropping asset %s", record.id)
            self._count("dropped")
            return
        if threading.get_ident() == self._loop_thread:
            self._enqueue(record.id)
        else:
            self._loop.call_soon_threadsafe(self._enqueue, record.id)

    def _enqueue(self, asset_id: int) -> None:
        assert self._queue is not None
        try:
            self._queue.put_nowait(asset_id)
        except asyncio.QueueFull:
            self._count("dropped")
            logger.warning(
                "Compression queue full (%d), dropping asset %s; "
                "the next backfill will pick it up",
                self.queue_size,
                asset_id,
            )
            return
        self._count("enqueued")

    async def _worker(self) -> None:
        assert self._queue is not None
        while True:
            asset_id = await self._queue.get()
            try:
                await self._process(asset_id)
            finally:
                self._queue.task_done()

    async def _process(self, asset_id: int) -> None:
        try:
            outcome = await self.coordinator.compress(asset_id, trigger=TRIGGER_NAME)
        except CompressionError as e:
            self._count("failed")
            logger.error("Event compression failed for asset %s: %s", asset_id, e)
            return
        except Exception:
            self._count("failed")
            logger.exception("Unexpected error compressing asset %s", asset_id)
            return
        if outcome.skipped:
            self._count("skipped")
        else:
            self._count("compressed")
