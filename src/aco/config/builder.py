"""Configuration builder with explicit layering.

ConfigBuilder composes ConfigSource layers (file, env, cli) and resolves
them into an ACOConfig, later layers winning for every non-None value.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from aco.config.env import EnvReader
from aco.config.models import (
    ACOConfig,
    BackfillConfig,
    CompressionProfile,
    LoggingConfig,
    ServerConfig,
    StorageConfig,
    TranscodeConfig,
    TriggerConfig,
)


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources.
    """

    # Compression profile
    min_size_kb: float | None = None
    bitrate_kbps: int | None = None
    channels: int | None = None
    sample_rate: int | None = None

    # Transcoder
    ffmpeg_path: Path | None = None
    transcode_timeout: int | None = None

    # Storage
    public_dir: Path | None = None
    uploads_subdir: str | None = None
    database_path: Path | None = None

    # Event trigger
    trigger_workers: int | None = None
    trigger_queue_size: int | None = None

    # Backfill
    backfill_page_size: int | None = None

    # Server
    server_bind: str | None = None
    server_port: int | None = None
    server_shutdown_timeout: float | None = None

    # Logging
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None


def _opt_path(value: Any) -> Path | None:
    return Path(str(value)).expanduser() if value not in (None, "") else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create a ConfigSource from a parsed TOML config file.

    Args:
        file_config: Parsed config dict (sections as nested dicts).

    Returns:
        ConfigSource with the values present in the file.
    """
    compression = file_config.get("compression", {})
    storage = file_config.get("storage", {})
    tools = file_config.get("tools", {})
    trigger = file_config.get("trigger", {})
    backfill = file_config.get("backfill", {})
    server = file_config.get("server", {})
    logging_conf = file_config.get("logging", {})

    return ConfigSource(
        min_size_kb=compression.get("min_size_kb"),
        bitrate_kbps=compression.get("bitrate_kbps"),
        channels=compression.get("channels"),
        sample_rate=compression.get("sample_rate"),
        transcode_timeout=compression.get("timeout_seconds"),
        ffmpeg_path=_opt_path(tools.get("ffmpeg")),
        public_dir=_opt_path(storage.get("public_dir")),
        uploads_subdir=storage.get("uploads_subdir"),
        database_path=_opt_path(storage.get("database_path")),
        trigger_workers=trigger.get("workers"),
        trigger_queue_size=trigger.get("queue_size"),
        backfill_page_size=backfill.get("page_size"),
        server_bind=server.get("bind"),
        server_port=server.get("port"),
        server_shutdown_timeout=server.get("shutdown_timeout"),
        logging_level=logging_conf.get("level"),
        logging_file=_opt_path(logging_conf.get("file")),
        logging_format=logging_conf.get("format"),
        logging_include_stderr=logging_conf.get("include_stderr"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create a ConfigSource from environment variables.

    The AUDIO_* names are shared with the upload server deployment, so the
    same environment configures both sides.
    """
    return ConfigSource(
        min_size_kb=reader.get_float("AUDIO_MIN_SIZE_KB"),
        bitrate_kbps=reader.get_int("AUDIO_BITRATE_KBPS"),
        channels=reader.get_int("AUDIO_CHANNELS"),
        sample_rate=reader.get_int("AUDIO_SAMPLE_RATE"),
        transcode_timeout=reader.get_int("ACO_TRANSCODE_TIMEOUT"),
        ffmpeg_path=reader.get_path("ACO_FFMPEG_PATH"),
        public_dir=reader.get_path("ACO_PUBLIC_DIR"),
        uploads_subdir=reader.get_str("ACO_UPLOADS_SUBDIR"),
        database_path=reader.get_path("ACO_DATABASE_PATH"),
        trigger_workers=reader.get_int("ACO_TRIGGER_WORKERS"),
        trigger_queue_size=reader.get_int("ACO_TRIGGER_QUEUE_SIZE"),
        backfill_page_size=reader.get_int("ACO_BACKFILL_PAGE_SIZE"),
        server_bind=reader.get_str("ACO_SERVER_BIND"),
        server_port=reader.get_int("ACO_SERVER_PORT"),
        logging_level=reader.get_str("ACO_LOG_LEVEL"),
        logging_file=reader.get_path("ACO_LOG_FILE"),
        logging_format=reader.get_str("ACO_LOG_FORMAT"),
    )


class ConfigBuilder:
    """Builds ACOConfig by layering ConfigSources with precedence.

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(reader))
        builder.apply(cli_source)
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._sources: dict[str, str] = {}

    def apply(self, source: ConfigSource, source_name: str = "unknown") -> None:
        """Apply configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
            source_name: Label recorded for each value it sets.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value
                self._sources[field_obj.name] = source_name

    def source_of(self, key: str) -> str:
        """Return which layer supplied key ("default" if none did)."""
        return self._sources.get(key, "default")

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self) -> ACOConfig:
        """Build the final ACOConfig with defaults for unset values.

        Raises:
            ValueError: If a resolved value fails model validation.
        """
        profile_defaults = CompressionProfile()
        profile = CompressionProfile(
            min_size_threshold_kb=float(
                self._get("min_size_kb", profile_defaults.min_size_threshold_kb)
            ),
            bitrate_kbps=int(self._get("bitrate_kbps", profile_defaults.bitrate_kbps)),
            channels=int(self._get("channels", profile_defaults.channels)),
            sample_rate_hz=int(
                self._get("sample_rate", profile_defaults.sample_rate_hz)
            ),
        )

        transcode_defaults = TranscodeConfig()
        transcode = TranscodeConfig(
            ffmpeg_path=self._get("ffmpeg_path", None),
            timeout_seconds=int(
                self._get("transcode_timeout", transcode_defaults.timeout_seconds)
            ),
        )

        storage_defaults = StorageConfig()
        storage = StorageConfig(
            public_dir=self._get("public_dir", storage_defaults.public_dir),
            uploads_subdir=self._get(
                "uploads_subdir", storage_defaults.uploads_subdir
            ),
            database_path=self._get("database_path", storage_defaults.database_path),
        )

        trigger_defaults = TriggerConfig()
        trigger = TriggerConfig(
            workers=int(self._get("trigger_workers", trigger_defaults.workers)),
            queue_size=int(
                self._get("trigger_queue_size", trigger_defaults.queue_size)
            ),
        )

        backfill = BackfillConfig(
            page_size=int(
                self._get("backfill_page_size", BackfillConfig().page_size)
            ),
        )

        server_defaults = ServerConfig()
        server = ServerConfig(
            bind=self._get("server_bind", server_defaults.bind),
            port=int(self._get("server_port", server_defaults.port)),
            shutdown_timeout=float(
                self._get(
                    "server_shutdown_timeout", server_defaults.shutdown_timeout
                )
            ),
        )

        logging_defaults = LoggingConfig()
        logging_config = LoggingConfig(
            level=self._get("logging_level", logging_defaults.level),
            file=self._get("logging_file", logging_defaults.file),
            format=self._get("logging_format", logging_defaults.format),
            include_stderr=self._get(
                "logging_include_stderr", logging_defaults.include_stderr
            ),
        )

        return ACOConfig(
            profile=profile,
            transcode=transcode,
            storage=storage,
            trigger=trigger,
            backfill=backfill,
            server=server,
            logging=logging_config,
        )
