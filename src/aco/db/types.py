"""Asset record types stored in the metadata database."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

LOCAL_PROVIDER = "local"


class StorageProvider(Enum):
    """Where an asset's bytes live."""

    LOCAL = "local"
    REMOTE = "remote"

    @classmethod
    def from_provider(cls, provider: str | None) -> StorageProvider:
        if provider == LOCAL_PROVIDER:
            return cls.LOCAL
        return cls.REMOTE


@dataclass
class AssetRecord:
    """Metadata describing one stored media object.

    Attributes:
        id: Stable database id. Never changes across compression.
        name: Display name supplied at upload time.
        provider: Storage provider name ("local" or a remote provider).
        url: Public URL, relative to the public directory for local assets.
        content_hash: Content identifier used as the stored filename stem.
        extension: File extension including the leading dot.
        mime_type: MIME type of the stored bytes.
        size_kb: Size in decimal kilobytes, 0 when unknown.
        formats: Derived format variants (cleared on compression).
        compression_metadata: Provider metadata map, see below.
        created_at: ISO-8601 UTC creation timestamp.
        updated_at: ISO-8601 UTC timestamp of the last update.

    Once compressed, ``compression_metadata`` holds ``compressed``,
    ``profile``, ``compressed_at`` and ``original_asset_descriptor``.
    """

    id: int | None
    url: str
    content_hash: str
    extension: str = ""
    mime_type: str = ""
    size_kb: float = 0.0
    provider: str = LOCAL_PROVIDER
    name: str | None = None
    formats: dict[str, Any] | None = None
    compression_metadata: dict[str, Any] | None = None
    created_at: str = ""
    updated_at: str | None = None

    @property
    def storage_provider(self) -> StorageProvider:
        return StorageProvider.from_provider(self.provider)

    @property
    def is_compressed(self) -> bool:
        """True only when the compressed flag is literally True."""
        metadata = self.compression_metadata
        return isinstance(metadata, dict) and metadata.get("compressed") is True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.provider,
            "url": self.url,
            "content_hash": self.content_hash,
            "extension": self.extension,
            "mime_type": self.mime_type,
            "size_kb": self.size_kb,
            "formats": self.formats,
            "compression_metadata": self.compression_metadata,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> AssetRecord:
        return cls(
            id=row["id"],
            name=row["name"],
            provider=row["provider"],
            url=row["url"],
            content_hash=row["content_hash"],
            extension=row["extension"],
            mime_type=row["mime_type"],
            size_kb=row["size_kb"],
            formats=_load_json(row["formats"]),
            compression_metadata=_load_json(row["compression_metadata"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


@dataclass(frozen=True)
class CompressionUpdate:
    """Field values written when a compressed artifact replaces an asset."""

    content_hash: str
    url: str
    extension: str
    mime_type: str
    size_kb: float
    compression_metadata: dict[str, Any] = field(default_factory=dict)


def _load_json(value: str | None) -> Any:
    if value is None or value == "":
        return None
    return json.loads(value)


def dump_json(value: Any) -> str | None:
    """Serialize a JSON column value, keeping None as SQL NULL."""
    if value is None:
        return None
    return json.dumps(value, sort_keys=True)
