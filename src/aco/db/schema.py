"""Database schema for the asset store."""

import sqlite3

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS _meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

-- One row per stored media object
CREATE TABLE IF NOT EXISTS assets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    provider TEXT NOT NULL DEFAULT 'local',
    url TEXT NOT NULL,
    content_hash TEXT NOT NULL,
    extension TEXT NOT NULL DEFAULT '',
    mime_type TEXT NOT NULL DEFAULT '',
    size_kb REAL NOT NULL DEFAULT 0,      -- decimal KB, 0 = unknown
    formats TEXT,                         -- JSON: derived format variants
    compression_metadata TEXT,            -- JSON, see aco.db.types
    created_at TEXT NOT NULL,             -- ISO 8601 UTC timestamp
    updated_at TEXT NOT NULL              -- ISO 8601 UTC timestamp
);

CREATE INDEX IF NOT EXISTS idx_assets_provider_created
    ON assets(provider, created_at, id);
"""


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Get the current schema version, or None for an empty database."""
    try:
        cursor = conn.execute("SELECT value FROM _meta WHERE key = 'schema_version'")
        row = cursor.fetchone()
        return int(row[0]) if row else None
    except sqlite3.OperationalError:
        return None


def create_schema(conn: sqlite3.Connection) -> None:
    """Create tables if needed and record the schema version.

    Raises:
        RuntimeError: If the database was written by a newer ACO.
    """
    current = get_schema_version(conn)
    if current is not None and current > SCHEMA_VERSION:
        raise RuntimeError(
            f"Database schema version {current} is newer than supported "
            f"version {SCHEMA_VERSION}"
        )
    conn.executescript(SCHEMA_SQL)
    conn.execute(
        "INSERT OR REPLACE INTO _meta (key, value) VALUES ('schema_version', ?)",
        (str(SCHEMA_VERSION),),
    )
    conn.commit()
