"""Asset metadata store interface and its SQLite implementation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from aco.db.connection import execute_with_retry, get_connection, transaction
from aco.db.queries import (
    count_assets,
    get_asset,
    get_local_assets_page,
    insert_asset,
    update_asset_compression,
)
from aco.db.schema import create_schema
from aco.db.types import AssetRecord, CompressionUpdate

logger = logging.getLogger(__name__)


class AssetStore(Protocol):
    """Operations the compression pipeline needs from the metadata store.

    All methods are blocking; async callers wrap them in asyncio.to_thread.
    """

    def get_asset(self, asset_id: int) -> AssetRecord | None: ...

    def fetch_local_page(self, page: int, page_size: int) -> list[AssetRecord]: ...

    def apply_compression(
        self, asset_id: int, expected_hash: str, update: CompressionUpdate
    ) -> AssetRecord | None: ...

    def insert_asset(self, record: AssetRecord) -> AssetRecord: ...


class SqliteAssetStore:
    """AssetStore backed by a SQLite database file.

    Each call opens its own connection so the store can be shared between
    the event loop's worker threads.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def initialize(self) -> None:
        """Create the schema if it does not exist yet."""
        with get_connection(self.db_path) as conn:
            create_schema(conn)
        logger.debug("Asset store ready at %s", self.db_path)

    def get_asset(self, asset_id: int) -> AssetRecord | None:
        with get_connection(self.db_path) as conn:
            return get_asset(conn, asset_id)

    def fetch_local_page(self, page: int, page_size: int) -> list[AssetRecord]:
        with get_connection(self.db_path) as conn:
            return get_local_assets_page(conn, page, page_size)

    def count(self, provider: str | None = None) -> int:
        with get_connection(self.db_path) as conn:
            return count_assets(conn, provider)

    def insert_asset(self, record: AssetRecord) -> AssetRecord:
        """Insert a record and return it as stored (with its new id)."""
        with get_connection(self.db_path) as conn:

            def _insert() -> int:
                with transaction(conn):
                    return insert_asset(conn, record)

            new_id = execute_with_retry(_insert)
            stored = get_asset(conn, new_id)
        if stored is None:
            raise RuntimeError(f"Inserted asset {new_id} could not be read back")
        return stored

    def apply_compression(
        self, asset_id: int, expected_hash: str, update: CompressionUpdate
    ) -> AssetRecord | None:
        """Apply a compression update guarded by the current content hash.

        Returns:
            The updated record, or None if the record no longer carries
            ``expected_hash`` (or no longer exists).

        Raises:
            sqlite3.Error: If the update cannot be committed.
        """
        with get_connection(self.db_path) as conn:

            def _update() -> bool:
                with transaction(conn):
                    return update_asset_compression(
                        conn, asset_id, expected_hash, update
                    )

            if not execute_with_retry(_update):
                return None
            return get_asset(conn, asset_id)
