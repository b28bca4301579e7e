"""Audio compression pipeline: eligibility, transcoding and asset replacement."""

from aco.compression.classifier import (
    AUDIO_EXTENSIONS,
    Classification,
    SkipReason,
    classify,
    is_audio_asset,
)
from aco.compression.coordinator import (
    CompressionCoordinator,
    CompressionOutcome,
    CompressionState,
    build_compression_metadata,
)
from aco.compression.exceptions import (
    CompressionError,
    ConcurrentModificationError,
    EncoderConfigurationError,
    EncoderUnavailableError,
    MetadataUpdateError,
    TranscodeError,
    VerificationError,
)
from aco.compression.factory import Pipeline, create_pipeline
from aco.compression.locks import AssetLockRegistry
from aco.compression.storage import PublicStorage, TargetPaths
from aco.compression.transcode import (
    TARGET_CODEC,
    TARGET_EXTENSION,
    TARGET_MIME_TYPE,
    AudioTranscoder,
    build_transcode_command,
)

__all__ = [
    "AUDIO_EXTENSIONS",
    "TARGET_CODEC",
    "TARGET_EXTENSION",
    "TARGET_MIME_TYPE",
    "AssetLockRegistry",
    "AudioTranscoder",
    "Classification",
    "CompressionCoordinator",
    "CompressionError",
    "CompressionOutcome",
    "CompressionState",
    "ConcurrentModificationError",
    "EncoderConfigurationError",
    "EncoderUnavailableError",
    "MetadataUpdateError",
    "Pipeline",
    "PublicStorage",
    "SkipReason",
    "TargetPaths",
    "TranscodeError",
    "VerificationError",
    "build_compression_metadata",
    "build_transcode_command",
    "classify",
    "create_pipeline",
    "is_audio_asset",
]
