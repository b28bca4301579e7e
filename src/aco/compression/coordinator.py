"""Replacement of an audio asset by its compressed rendition.

The coordinator drives one asset through

    CLASSIFIED -> TRANSCODING -> VERIFYING -> SWAPPING -> FINALIZED

and does not know whether the event trigger or the backfill called it. The
original file is deleted only after the metadata update has committed, so a
failure at any earlier point leaves the asset exactly as it was.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from aco.compression.classifier import Classification, SkipReason, classify
from aco.compression.exceptions import (
    ConcurrentModificationError,
    MetadataUpdateError,
    TranscodeError,
    VerificationError,
)
from aco.compression.locks import AssetLockRegistry
from aco.compression.storage import PublicStorage, TargetPaths
from aco.compression.transcode import (
    TARGET_EXTENSION,
    TARGET_MIME_TYPE,
    AudioTranscoder,
    remove_partial_output,
)
from aco.config.models import CompressionProfile
from aco.core.datetime_utils import utc_now_iso
from aco.db.store import AssetStore
from aco.db.types import AssetRecord, CompressionUpdate
from aco.logging import asset_context

logger = logging.getLogger(__name__)


class CompressionState(Enum):
    """Lifecycle state of one compression attempt."""

    CLASSIFIED = "classified"
    TRANSCODING = "transcoding"
    VERIFYING = "verifying"
    SWAPPING = "swapping"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass
class CompressionOutcome:
    """Result of a compression attempt that did not raise."""

    asset_id: int | None
    skipped: bool
    state: CompressionState
    reason: SkipReason | None = None
    detail: str | None = None
    record: AssetRecord | None = None
    source_path: Path | None = None
    output_path: Path | None = None
    original_deleted: bool = False

    @property
    def compressed(self) -> bool:
        return not self.skipped and self.state == CompressionState.FINALIZED

    @classmethod
    def from_skip(
        cls, asset_id: int | None, classification: Classification
    ) -> CompressionOutcome:
        return cls(
            asset_id=asset_id,
            skipped=True,
            state=CompressionState.CLASSIFIED,
            reason=classification.reason,
            detail=classification.detail,
        )


def build_compression_metadata(
    record: AssetRecord, profile: CompressionProfile, compressed_at: str
) -> dict[str, Any]:
    """Metadata stored on the record once it points at the compressed file.

    Keys the pipeline does not own are carried over unchanged.
    """
    existing = record.compression_metadata
    metadata = dict(existing) if isinstance(existing, dict) else {}
    metadata.update(
        {
            "compressed": True,
            "profile": profile.to_metadata(),
            "compressed_at": compressed_at,
            "original_asset_descriptor": {
                "url": record.url,
                "content_hash": record.content_hash,
                "extension": record.extension,
                "mime_type": record.mime_type,
                "size_kb": record.size_kb or None,
            },
        }
    )
    return metadata


def measure_output(output_path: Path) -> float:
    """Return the output size in KB (bytes / 1024).

    Raises:
        VerificationError: If the file is missing or empty. An empty file
            is removed.
    """
    try:
        size_bytes = output_path.stat().st_size
    except FileNotFoundError as e:
        raise VerificationError(output_path) from e
    if size_bytes == 0:
        remove_partial_output(output_path)
        raise VerificationError(
            output_path, f"Encoder produced an empty file: {output_path}"
        )
    return size_bytes / 1024


class CompressionCoordinator:
    """Compresses one asset at a time and swaps the record to the new file.

    Example:
        coordinator = CompressionCoordinator(store, transcoder, storage, profile)
        outcome = await coordinator.compress(42)
    """

    def __init__(
        self,
        store: AssetStore,
        transcoder: AudioTranscoder,
        storage: PublicStorage,
        profile: CompressionProfile,
        locks: AssetLockRegistry | None = None,
    ) -> None:
        self.store = store
        self.transcoder = transcoder
        self.storage = storage
        self.profile = profile
        self.locks = locks or AssetLockRegistry()

    async def compress(
        self, asset: AssetRecord | int | None, trigger: str | None = None
    ) -> CompressionOutcome:
        """Compress an asset if it is eligible.

        The record is re-read from the store under the per-asset lease, so
        a stale record passed in by a caller never causes a second
        compression.

        Args:
            asset: The record (or its id) to compress.
            trigger: Name of the caller, used to tag log records.

        Returns:
            A skipped outcome, or a finalized outcome holding the updated
            record.

        Raises:
            TranscodeError: The encoder failed; the asset is unchanged.
            VerificationError: The encoder produced nothing usable; the
                asset is unchanged.
            MetadataUpdateError: The record could not be updated; the asset
                is unchanged and the new file is an orphan.
            ConcurrentModificationError: Another run replaced the asset
                first; the new file has been removed.
        """
        asset_id = asset if isinstance(asset, int) else getattr(asset, "id", None)
        if asset_id is None:
            return CompressionOutcome.from_skip(
                None, classify(None, self.profile, self.storage)
            )

        with asset_context(asset_id, trigger):
            async with self.locks.hold(asset_id):
                record = await asyncio.to_thread(self.store.get_asset, asset_id)
                return await self._compress_record(asset_id, record)

    async def _compress_record(
        self, asset_id: int, record: AssetRecord | None
    ) -> CompressionOutcome:
        classification = await asyncio.to_thread(
            classify, record, self.profile, self.storage
        )
        if not classification.eligible or record is None:
            assert classification.reason is not None
            logger.info(
                "Skipping asset %s: %s",
                asset_id,
                classification.reason.value,
                extra={"skip_reason": classification.reason.value},
            )
            if classification.detail:
                logger.debug("Skip detail: %s", classification.detail)
            return CompressionOutcome.from_skip(asset_id, classification)

        source_path = classification.source_path
        assert source_path is not None
        state = CompressionState.TRANSCODING
        try:
            target = await asyncio.to_thread(
                self.storage.build_target, record.content_hash, None, source_path
            )
        except OSError as e:
            error = TranscodeError(f"Cannot reserve output file: {e}")
            self._log_failure(asset_id, state, error)
            raise error from e

        try:
            await self.transcoder.transcode(source_path, target.path, self.profile)
            state = CompressionState.VERIFYING
            size_kb = await asyncio.to_thread(measure_output, target.path)
        except (TranscodeError, VerificationError) as e:
            await asyncio.to_thread(remove_partial_output, target.path)
            self._log_failure(asset_id, state, e)
            raise

        state = CompressionState.SWAPPING
        updated = await self._swap(record, target, size_kb)

        original_deleted = await asyncio.to_thread(self._delete_original, source_path)
        logger.info(
            "Compressed asset %s: %s -> %s (%.1f KB -> %.1f KB)",
            asset_id,
            record.url,
            updated.url,
            record.size_kb,
            size_kb,
            extra={"output_path": str(target.path), "size_kb": round(size_kb, 1)},
        )
        return CompressionOutcome(
            asset_id=asset_id,
            skipped=False,
            state=CompressionState.FINALIZED,
            record=updated,
            source_path=source_path,
            output_path=target.path,
            original_deleted=original_deleted,
        )

    async def _swap(
        self, record: AssetRecord, target: TargetPaths, size_kb: float
    ) -> AssetRecord:
        assert record.id is not None
        update = CompressionUpdate(
            content_hash=target.content_hash,
            url=target.url,
            extension=TARGET_EXTENSION,
            mime_type=TARGET_MIME_TYPE,
            size_kb=size_kb,
            compression_metadata=build_compression_metadata(
                record, self.profile, utc_now_iso()
            ),
        )
        try:
            updated = await asyncio.to_thread(
                self.store.apply_compression, record.id, record.content_hash, update
            )
        except Exception as e:
            logger.error(
                "Metadata update failed for asset %s, leaving orphan file %s: %s",
                record.id,
                target.path,
                e,
            )
            raise MetadataUpdateError(record.id, target.path, str(e)) from e

        if updated is None:
            await asyncio.to_thread(remove_partial_output, target.path)
            logger.warning(
                "Asset %s changed during compression, discarded %s",
                record.id,
                target.path,
            )
            raise ConcurrentModificationError(record.id)
        return updated

    def _delete_original(self, source_path: Path) -> bool:
        try:
            source_path.unlink()
        except OSError as e:
            logger.warning("Failed to delete original file %s: %s", source_path, e)
            return False
        return True

    def _log_failure(
        self, asset_id: int, state: CompressionState, error: Exception
    ) -> None:
        stderr = getattr(error, "stderr", "")
        logger.error(
            "Compression of asset %s failed while %s: %s",
            asset_id,
            state.value,
            error,
            extra={"state": CompressionState.FAILED.value, "failed_in": state.value},
        )
        if stderr:
            logger.error("Encoder output: %s", stderr)
