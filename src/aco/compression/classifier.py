"""Eligibility rules for audio compression.

classify() is total: every input, including a missing record, produces a
Classification and nothing raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from aco.compression.storage import PublicStorage
from aco.config.models import CompressionProfile
from aco.db.types import AssetRecord, StorageProvider

AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".m4a", ".aac", ".ogg", ".flac"})


class SkipReason(Enum):
    """Why an asset was not compressed. Checked in declaration order."""

    MISSING_RECORD = "missing record"
    NON_LOCAL_PROVIDER = "non-local provider"
    NOT_AUDIO = "not audio"
    ALREADY_COMPRESSED = "already compressed"
    BELOW_SIZE_THRESHOLD = "below size threshold"
    SOURCE_MISSING = "source missing"


@dataclass(frozen=True)
class Classification:
    """Result of classifying one asset."""

    eligible: bool
    reason: SkipReason | None = None
    detail: str | None = None
    source_path: Path | None = None

    @classmethod
    def skip(cls, reason: SkipReason, detail: str | None = None) -> Classification:
        return cls(eligible=False, reason=reason, detail=detail)


def normalize_extension(extension: str | None) -> str:
    if not extension:
        return ""
    extension = extension.strip().lower()
    return extension if extension.startswith(".") else f".{extension}"


def is_audio_asset(record: AssetRecord) -> bool:
    """True if the MIME type is audio/* or the extension is a known audio one."""
    mime_type = (record.mime_type or "").strip().lower()
    if mime_type.startswith("audio/"):
        return True
    return normalize_extension(record.extension) in AUDIO_EXTENSIONS


def classify(
    record: AssetRecord | None,
    profile: CompressionProfile,
    storage: PublicStorage,
) -> Classification:
    """Decide whether an asset should be compressed.

    The first failing rule determines the skip reason. A size of 0 means
    unknown and never triggers the threshold rule.
    """
    if record is None or record.id is None:
        return Classification.skip(SkipReason.MISSING_RECORD)

    if record.storage_provider != StorageProvider.LOCAL:
        return Classification.skip(
            SkipReason.NON_LOCAL_PROVIDER, f"provider {record.provider!r}"
        )

    if not is_audio_asset(record):
        return Classification.skip(
            SkipReason.NOT_AUDIO,
            f"mime {record.mime_type!r}, extension {record.extension!r}",
        )

    if record.is_compressed:
        return Classification.skip(SkipReason.ALREADY_COMPRESSED)

    threshold = profile.min_size_threshold_kb
    if 0 < record.size_kb < threshold:
        return Classification.skip(
            SkipReason.BELOW_SIZE_THRESHOLD,
            f"{record.size_kb:.1f} KB < {threshold} KB",
        )

    source_path = storage.url_to_path(record.url)
    if source_path is None:
        return Classification.skip(
            SkipReason.SOURCE_MISSING,
            f"url {record.url!r} does not map into {storage.public_dir}",
        )
    try:
        exists = source_path.is_file()
    except OSError as e:
        return Classification.skip(SkipReason.SOURCE_MISSING, f"{source_path}: {e}")
    if not exists:
        return Classification.skip(SkipReason.SOURCE_MISSING, str(source_path))

    return Classification(eligible=True, source_path=source_path)
