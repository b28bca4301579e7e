"""What the encoder probe learned about the installed ffmpeg."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

MP3_ENCODER = "libmp3lame"


class ToolStatus(Enum):
    AVAILABLE = "available"  # ran and reported a version
    MISSING = "missing"  # not at the configured path or on PATH
    ERROR = "error"  # found, but `ffmpeg -version` failed


@dataclass
class FFmpegInfo:
    """Result of one ffmpeg probe.

    ``encoders`` holds the casefolded names listed by ``ffmpeg -encoders``;
    it is empty when the list could not be read.
    """

    name: str = "ffmpeg"
    path: Path | None = None
    version: str | None = None
    version_tuple: tuple[int, ...] | None = None
    status: ToolStatus = ToolStatus.MISSING
    status_message: str | None = None
    detected_at: datetime | None = None
    encoders: set[str] = field(default_factory=set)

    def is_available(self) -> bool:
        return self.status == ToolStatus.AVAILABLE

    def has_encoder(self, name: str) -> bool:
        return name.casefold() in self.encoders

    @property
    def can_encode_mp3(self) -> bool:
        """True when this ffmpeg can produce the compressed MP3 output."""
        return self.is_available() and self.has_encoder(MP3_ENCODER)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": str(self.path) if self.path else None,
            "version": self.version,
            "status": self.status.value,
            "status_message": self.status_message,
            "detected_at": self.detected_at.isoformat() if self.detected_at else None,
            "mp3_encoder": self.can_encode_mp3,
            "encoders": sorted(self.encoders),
        }
