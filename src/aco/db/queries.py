"""Query functions for the assets table.

None of these functions commit; callers own the transaction.
"""

from __future__ import annotations

import sqlite3

from aco.core.datetime_utils import utc_now_iso
from aco.db.types import LOCAL_PROVIDER, AssetRecord, CompressionUpdate, dump_json


def insert_asset(conn: sqlite3.Connection, record: AssetRecord) -> int:
    """Insert a new asset record.

    Timestamps are filled in when the record does not carry them.

    Args:
        conn: Database connection.
        record: Record to insert. Its ``id`` is ignored.

    Returns:
        The id of the inserted row.

    Note:
        This function does NOT commit. Caller must manage transactions.
    """
    now = utc_now_iso()
    created_at = record.created_at or now
    cursor = conn.execute(
        """
        INSERT INTO assets (
            name, provider, url, content_hash, extension, mime_type,
            size_kb, formats, compression_metadata, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            record.name,
            record.provider,
            record.url,
            record.content_hash,
            record.extension,
            record.mime_type,
            record.size_kb,
            dump_json(record.formats),
            dump_json(record.compression_metadata),
            created_at,
            record.updated_at or created_at,
        ),
    )
    return int(cursor.lastrowid)


def get_asset(conn: sqlite3.Connection, asset_id: int) -> AssetRecord | None:
    """Get an asset by id, or None if it does not exist."""
    cursor = conn.execute("SELECT * FROM assets WHERE id = ?", (asset_id,))
    row = cursor.fetchone()
    return AssetRecord.from_row(row) if row else None


def get_local_assets_page(
    conn: sqlite3.Connection, page: int, page_size: int
) -> list[AssetRecord]:
    """Get one page of locally stored assets, oldest first.

    Args:
        conn: Database connection.
        page: 1-based page number.
        page_size: Number of records per page.

    Returns:
        Up to ``page_size`` records ordered by (created_at, id).

    Raises:
        ValueError: If page or page_size is not positive.
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    cursor = conn.execute(
        """
        SELECT * FROM assets
        WHERE provider = ?
        ORDER BY created_at ASC, id ASC
        LIMIT ? OFFSET ?
        """,
        (LOCAL_PROVIDER, page_size, (page - 1) * page_size),
    )
    return [AssetRecord.from_row(row) for row in cursor.fetchall()]


def update_asset_compression(
    conn: sqlite3.Connection,
    asset_id: int,
    expected_hash: str,
    update: CompressionUpdate,
) -> bool:
    """Point an asset at its compressed artifact.

    The update only applies while the row still carries ``expected_hash``,
    so a record that was replaced in the meantime is left alone. Derived
    format variants are cleared.

    Returns:
        True if the row was updated, False if the guard did not match.

    Note:
        This function does NOT commit. Caller must manage transactions.
    """
    cursor = conn.execute(
        """
        UPDATE assets SET
            content_hash = ?,
            url = ?,
            extension = ?,
            mime_type = ?,
            size_kb = ?,
            formats = NULL,
            compression_metadata = ?,
            updated_at = ?
        WHERE id = ? AND content_hash = ?
        """,
        (
            update.content_hash,
            update.url,
            update.extension,
            update.mime_type,
            update.size_kb,
            dump_json(update.compression_metadata),
            utc_now_iso(),
            asset_id,
            expected_hash,
        ),
    )
    return cursor.rowcount == 1


def count_assets(conn: sqlite3.Connection, provider: str | None = None) -> int:
    """Count assets, optionally restricted to one provider."""
    if provider is None:
        cursor = conn.execute("SELECT COUNT(*) FROM assets")
    else:
        cursor = conn.execute(
            "SELECT COUNT(*) FROM assets WHERE provider = ?", (provider,)
        )
    return int(cursor.fetchone()[0])
