"""Request models for the asset API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from aco.db.types import LOCAL_PROVIDER, AssetRecord


class AssetCreateRequest(BaseModel):
    """Body of POST /api/assets."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str | None = None
    provider: str = Field(default=LOCAL_PROVIDER, min_length=1)
    url: str = Field(min_length=1)
    content_hash: str = Field(min_length=1, pattern=r"^[A-Za-z0-9_.-]+$")
    extension: str = ""
    mime_type: str = ""
    size_kb: float = Field(default=0, ge=0)
    formats: dict[str, Any] | None = None
    compression_metadata: dict[str, Any] | None = None

    @field_validator("extension")
    @classmethod
    def normalize_extension(cls, v: str) -> str:
        """Store extensions lowercase with a leading dot."""
        v = v.strip().lower()
        if v and not v.startswith("."):
            v = f".{v}"
        return v

    @field_validator("mime_type")
    @classmethod
    def normalize_mime_type(cls, v: str) -> str:
        return v.strip().lower()

    def to_record(self) -> AssetRecord:
        return AssetRecord(
            id=None,
            name=self.name,
            provider=self.provider,
            url=self.url,
            content_hash=self.content_hash,
            extension=self.extension,
            mime_type=self.mime_type,
            size_kb=self.size_kb,
            formats=self.formats,
            compression_metadata=self.compression_metadata,
        )
