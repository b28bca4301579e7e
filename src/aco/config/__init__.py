"""Configuration management for the Audio Compression Orchestrator.

Precedence: CLI flags > environment variables > config file > defaults.
"""

from aco.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from aco.config.env import EnvReader
from aco.config.loader import (
    ConfigFileError,
    get_config,
    get_data_dir,
    get_default_config_path,
    load_config_file,
)
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

__all__ = [
    # Models
    "ACOConfig",
    "BackfillConfig",
    "CompressionProfile",
    "LoggingConfig",
    "ServerConfig",
    "StorageConfig",
    "TranscodeConfig",
    "TriggerConfig",
    # Loading
    "ConfigBuilder",
    "ConfigFileError",
    "ConfigSource",
    "EnvReader",
    "get_config",
    "get_data_dir",
    "get_default_config_path",
    "load_config_file",
    "source_from_env",
    "source_from_file",
]
