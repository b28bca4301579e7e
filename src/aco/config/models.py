"""Configuration data models.

This module defines dataclasses for ACO configuration options. Each model
validates itself in __post_init__ so a bad value fails at load time rather
than in the middle of a transcode.
"""

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_DATA_DIR = Path.home() / ".aco"


@dataclass(frozen=True)
class CompressionProfile:
    """Target audio profile applied uniformly to every asset in a run.

    Sourced from configuration, never from the asset itself.
    """

    min_size_threshold_kb: float = 1024
    """Assets with a known size strictly below this are skipped. 0 disables."""

    bitrate_kbps: int = 80
    """Constant bitrate passed to the encoder."""

    channels: int = 1
    """Forced output channel count (1 = mono)."""

    sample_rate_hz: int = 22050
    """Forced output sample rate."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.min_size_threshold_kb < 0:
            raise ValueError(
                "min_size_threshold_kb must be >= 0, "
                f"got {self.min_size_threshold_kb}"
            )
        if self.bitrate_kbps <= 0:
            raise ValueError(f"bitrate_kbps must be positive, got {self.bitrate_kbps}")
        if not 1 <= self.channels <= 8:
            raise ValueError(f"channels must be 1-8, got {self.channels}")
        if self.sample_rate_hz <= 0:
            raise ValueError(
                f"sample_rate_hz must be positive, got {self.sample_rate_hz}"
            )

    def to_metadata(self) -> dict[str, int]:
        """Profile snapshot stored in compression metadata."""
        return {
            "bitrate_kbps": self.bitrate_kbps,
            "channels": self.channels,
            "sample_rate_hz": self.sample_rate_hz,
        }


@dataclass
class TranscodeConfig:
    """Configuration for the external encoder invocation."""

    ffmpeg_path: Path | None = None
    """Explicit ffmpeg executable. None means look it up in PATH."""

    timeout_seconds: int = 600
    """Upper bound for one encoder run; exceeding it counts as a failure."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )


@dataclass
class StorageConfig:
    """Where asset files and asset metadata live."""

    public_dir: Path = field(default_factory=lambda: Path("public"))
    """Directory that asset URLs are relative to."""

    uploads_subdir: str = "uploads"
    """Subdirectory of public_dir receiving compressed outputs."""

    database_path: Path = field(default_factory=lambda: DEFAULT_DATA_DIR / "assets.db")
    """SQLite database holding asset records."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        subdir = self.uploads_subdir.strip("/")
        if not subdir or ".." in Path(subdir).parts:
            raise ValueError(
                "uploads_subdir must be a relative directory, "
                f"got {self.uploads_subdir!r}"
            )
        self.uploads_subdir = subdir


@dataclass
class TriggerConfig:
    """Configuration for the upload event trigger."""

    workers: int = 1
    """Concurrent compression tasks fed from the event queue."""

    queue_size: int = 100
    """Pending compression requests before new events are dropped."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {self.queue_size}")


@dataclass
class BackfillConfig:
    """Configuration for the backfill sweep."""

    page_size: int = 100

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 1 <= self.page_size <= 1000:
            raise ValueError(f"page_size must be 1-1000, got {self.page_size}")


@dataclass
class ServerConfig:
    """Configuration for daemon server mode (`aco serve`)."""

    bind: str = "127.0.0.1"
    """Network address to bind to. Default localhost for security."""

    port: int = 8331
    """Port number for the HTTP server."""

    shutdown_timeout: float = 30.0
    """Seconds to wait for in-flight compressions on shutdown."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be 1-65535, got {self.port}")
        if self.shutdown_timeout <= 0:
            raise ValueError(
                f"shutdown_timeout must be positive, got {self.shutdown_timeout}"
            )


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class ACOConfig:
    """Main configuration container for ACO."""

    profile: CompressionProfile = field(default_factory=CompressionProfile)
    transcode: TranscodeConfig = field(default_factory=TranscodeConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    trigger: TriggerConfig = field(default_factory=TriggerConfig)
    backfill: BackfillConfig = field(default_factory=BackfillConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
