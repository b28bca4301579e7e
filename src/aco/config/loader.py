"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_config)
2. Environment variables (AUDIO_*, ACO_*)
3. Config file (~/.aco/config.toml)
4. Default values

Environment variables:
- AUDIO_MIN_SIZE_KB: Skip assets smaller than this many KB (default 1024)
- AUDIO_BITRATE_KBPS: Target constant bitrate (default 80)
- AUDIO_CHANNELS: Target channel count (default 1)
- AUDIO_SAMPLE_RATE: Target sample rate in Hz (default 22050)
- ACO_TRANSCODE_TIMEOUT: Seconds before an encoder run is abandoned
- ACO_FFMPEG_PATH: Path to ffmpeg executable
- ACO_PUBLIC_DIR: Directory that asset URLs resolve against
- ACO_DATABASE_PATH: Path to the asset database
- ACO_CONFIG_PATH: Path to config file (overrides default location)
- ACO_DATA_DIR: Path to ACO data directory (overrides ~/.aco/)
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from aco.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from aco.config.env import EnvReader
from aco.config.models import DEFAULT_DATA_DIR, ACOConfig

logger = logging.getLogger(__name__)


class ConfigFileError(ValueError):
    """Raised when the config file exists but cannot be parsed."""


def get_data_dir() -> Path:
    """Get the ACO data directory (~/.aco/ unless ACO_DATA_DIR is set)."""
    env_path = os.environ.get("ACO_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_DATA_DIR


def get_default_config_path() -> Path:
    """Get the config file path, honouring ACO_CONFIG_PATH."""
    env_path = os.environ.get("ACO_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return get_data_dir() / "config.toml"


def load_config_file(path: Path | None = None) -> dict:
    """Load configuration from a TOML file.

    Args:
        path: Path to config file. If None, uses the default location.

    Returns:
        Parsed configuration dict. Empty dict if the file doesn't exist.

    Raises:
        ConfigFileError: If the file exists but is not valid TOML.
    """
    if path is None:
        path = get_default_config_path()

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        logger.debug("No config file at %s, using defaults", path)
        return {}
    except tomllib.TOMLDecodeError as e:
        raise ConfigFileError(f"Invalid config file {path}: {e}") from e


def get_config(
    config_path: Path | None = None,
    cli_source: ConfigSource | None = None,
    env_reader: EnvReader | None = None,
) -> ACOConfig:
    """Get ACO configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides ACO_CONFIG_PATH).
        cli_source: Values supplied on the command line.
        env_reader: Optional EnvReader for testing (uses os.environ if None).

    Returns:
        ACOConfig with merged configuration.

    Raises:
        ConfigFileError: If the config file cannot be parsed.
        ValueError: If a merged value is out of range.
    """
    reader = env_reader or EnvReader()
    file_config = load_config_file(config_path)

    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config), source_name="file")
    builder.apply(source_from_env(reader), source_name="env")
    if cli_source is not None:
        builder.apply(cli_source, source_name="cli")

    return builder.build()
