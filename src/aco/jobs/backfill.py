"""Backfill: compress assets that were uploaded before the trigger existed.

Records are processed strictly one at a time, oldest first. Compressed
records keep their position in the ordering, so the offset cursor stays
valid while the run rewrites the rows it has already visited. Stopping a
run and starting it again is safe: finished records are skipped.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import asdict, dataclass

from aco.compression.classifier import is_audio_asset
from aco.compression.coordinator import CompressionCoordinator
from aco.compression.exceptions import CompressionError
from aco.db.store import AssetStore
from aco.db.types import AssetRecord

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
TRIGGER_NAME = "backfill"


@dataclass
class BackfillSummary:
    """Counts for one backfill run.

    ``processed`` counts every record fetched, so it always equals
    ``compressed + skipped + failed``.
    """

    processed: int = 0
    compressed: int = 0
    skipped: int = 0
    failed: int = 0
    pages: int = 0
    stopped: bool = False

    def to_dict(self) -> dict[str, int | bool]:
        return asdict(self)


class BackfillRunner:
    """Pages through local assets and runs the coordinator on each."""

    def __init__(
        self,
        store: AssetStore,
        coordinator: CompressionCoordinator,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.store = store
        self.coordinator = coordinator
        self.page_size = page_size
        self._stop_requested = threading.Event()

    def request_stop(self) -> None:
        """Ask the run to end after the record in progress."""
        if not self._stop_requested.is_set():
            logger.info("Backfill stop requested, finishing current asset")
        self._stop_requested.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    async def run(self) -> BackfillSummary:
        """Run the backfill until the collection is exhausted or stopped.

        Returns:
            Summary counts. Individual failures are counted, never raised.
        """
        summary = BackfillSummary()
        start = time.monotonic()
        logger.info("Starting backfill (page_size=%d)", self.page_size)

        page = 1
        while not self.stop_requested:
            records = await asyncio.to_thread(
                self.store.fetch_local_page, page, self.page_size
            )
            summary.pages += 1
            logger.debug("Fetched page %d: %d record(s)", page, len(records))

            for record in records:
                if self.stop_requested:
                    break
                summary.processed += 1
                await self._process(record, summary)

            if len(records) < self.page_size:
                break
            page += 1

        summary.stopped = self.stop_requested
        logger.info(
            "Backfill %s: %d processed, %d compressed, %d skipped, %d failed "
            "in %.1f seconds",
            "stopped" if summary.stopped else "finished",
            summary.processed,
            summary.compressed,
            summary.skipped,
            summary.failed,
            time.monotonic() - start,
        )
        return summary

    async def _process(self, record: AssetRecord, summary: BackfillSummary) -> None:
        if record.is_compressed or not is_audio_asset(record):
            summary.skipped += 1
            return

        try:
            outcome = await self.coordinator.compress(record, trigger=TRIGGER_NAME)
        except CompressionError as e:
            summary.failed += 1
            logger.error("Failed to compress asset %s: %s", record.id, e)
            return
        except Exception:
            summary.failed += 1
            logger.exception("Unexpected error compressing asset %s", record.id)
            return

        if outcome.skipped:
            summary.skipped += 1
        else:
            summary.compressed += 1
            assert outcome.record is not None
            logger.info(
                "Compressed file %s -> %s", record.url, outcome.record.url
            )
