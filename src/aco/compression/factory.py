"""Assembly of the compression pipeline from configuration."""

from __future__ import annotations

from dataclasses import dataclass

from aco.compression.coordinator import CompressionCoordinator
from aco.compression.locks import AssetLockRegistry
from aco.compression.storage import PublicStorage
from aco.compression.transcode import AudioTranscoder
from aco.config.models import ACOConfig
from aco.db.store import SqliteAssetStore


@dataclass
class Pipeline:
    """The objects every entry point needs, wired together."""

    store: SqliteAssetStore
    storage: PublicStorage
    coordinator: CompressionCoordinator


def create_pipeline(
    config: ACOConfig, ffmpeg_path: str | None = None
) -> Pipeline:
    """Build store, storage and coordinator for a configuration.

    Args:
        config: Loaded configuration.
        ffmpeg_path: Encoder found by the startup probe. Falls back to the
            configured path, then to "ffmpeg" on PATH.

    The database schema is created if needed.
    """
    store = SqliteAssetStore(config.storage.database_path)
    store.initialize()
    storage = PublicStorage(config.storage.public_dir, config.storage.uploads_subdir)
    transcoder = AudioTranscoder(
        ffmpeg_path=ffmpeg_path or config.transcode.ffmpeg_path or "ffmpeg",
        timeout_seconds=config.transcode.timeout_seconds,
    )
    coordinator = CompressionCoordinator(
        store=store,
        transcoder=transcoder,
        storage=storage,
        profile=config.profile,
        locks=AssetLockRegistry(),
    )
    return Pipeline(store=store, storage=storage, coordinator=coordinator)
