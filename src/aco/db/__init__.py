"""SQLite-backed asset metadata store."""

from aco.db.connection import (
    check_database_connectivity,
    execute_with_retry,
    get_connection,
    transaction,
)
from aco.db.schema import SCHEMA_VERSION, create_schema, get_schema_version
from aco.db.store import AssetStore, SqliteAssetStore
from aco.db.types import (
    LOCAL_PROVIDER,
    AssetRecord,
    CompressionUpdate,
    StorageProvider,
)

__all__ = [
    "LOCAL_PROVIDER",
    "SCHEMA_VERSION",
    "AssetRecord",
    "AssetStore",
    "CompressionUpdate",
    "SqliteAssetStore",
    "StorageProvider",
    "check_database_connectivity",
    "create_schema",
    "execute_with_retry",
    "get_connection",
    "get_schema_version",
    "transaction",
]
